"""Errores del dominio.

Una sola clase de error para los callers: todos reaccionan igual ante un fallo
de red o de payload (mostrar el fallo y seguir).
"""

from __future__ import annotations


class RemoteConsoleError(Exception):
    """Base de los errores propios de la aplicación."""


class TransportError(RemoteConsoleError):
    """Fallo de red, status no-2xx o body que no es un envelope válido."""

    def __init__(self, endpoint: str, message: str) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.message = message

    def __str__(self) -> str:
        return self.message
