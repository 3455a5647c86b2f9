"""Contratos de transporte y superficies de display.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- El monitor y el invoker se testean con transportes en memoria, sin httpx.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import Endpoint, Envelope


@runtime_checkable
class Transport(Protocol):
    """Contrato mínimo para hablar con el host.

    Reglas de diseño:
    - `fetch_json` es asíncrono porque hace I/O (HTTP).
    - Un único request por llamada; sin reintentos.
    - Cualquier fallo se reporta como `TransportError`.
    """

    async def fetch_json(self, endpoint: Endpoint) -> Envelope:
        ...


@runtime_checkable
class DisplaySurface(Protocol):
    """Área de display que muestra el último resultado de una acción."""

    def write(self, text: str) -> None:
        ...
