"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza base_url, timeouts, headers y verificación TLS.
- Sin redirects: un `fetch_json` es exactamente un request; un 3xx es un fallo.
- Colapsa todos los fallos (red, status, JSON, schema) en `TransportError`.
- Facilita testeo: se puede inyectar un `httpx.AsyncClient` con `MockTransport`.
"""

from __future__ import annotations

import logging
from types import TracebackType

import httpx
from pydantic import ValidationError

from core.config import AppSettings
from core.domain.errors import TransportError
from core.domain.models import Endpoint, Envelope

logger = logging.getLogger(__name__)


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` apuntando al host remoto.

    Por qué un builder:
    - Centraliza timeouts/headers para que monitor y comandos se comporten igual.
    - `transport` permite tests sin red.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    return httpx.AsyncClient(
        base_url=settings.base_url,
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        headers=headers,
        verify=settings.verify_tls,
        transport=transport,
    )


class HttpTransport:
    """`Transport` sobre httpx: un GET por llamada, sin reintentos."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client if client is not None else build_async_client(settings)

    async def fetch_json(self, endpoint: Endpoint) -> Envelope:
        path = endpoint.value
        try:
            response = await self._client.get(path)
            response.raise_for_status()
            payload = response.json()
            return Envelope.model_validate(payload)
        except httpx.HTTPError as exc:
            logger.debug("request to %s failed: %s", path, exc)
            raise TransportError(path, str(exc) or type(exc).__name__) from exc
        except ValidationError as exc:
            logger.debug("response from %s is not an envelope: %s", path, exc)
            raise TransportError(path, f"unexpected payload from {path}: missing or invalid 'data'") from exc
        except ValueError as exc:
            logger.debug("response from %s is not JSON: %s", path, exc)
            raise TransportError(path, f"invalid JSON from {path}: {exc}") from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
