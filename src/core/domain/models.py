"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validamos el envelope del host en el borde, sin lógica ad-hoc en cada caller.
- Los resultados de comandos son valores inmutables y fáciles de testear.

Nota:
- Estos modelos describen *qué* devuelve el host, no *cómo* se obtiene.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Union

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Endpoint(str, Enum):
    """Rutas fijas de la API del host."""

    GET_LOG = "/api/get_log"
    REBOOT_GUEST = "/api/reboot_guest"
    HEALTH_CHECK = "/api/health_check"

    def label(self) -> str:
        """Human readable label for panels and logging."""

        return {
            Endpoint.GET_LOG: "Log",
            Endpoint.REBOOT_GUEST: "Reboot",
            Endpoint.HEALTH_CHECK: "Health",
        }[self]


class HealthState(str, Enum):
    """Connection health as seen by the monitor."""

    UNKNOWN = "unknown"
    UP = "up"
    DOWN = "down"


class Envelope(BaseModel):
    """Respuesta de cualquier endpoint: `{"data": "<texto>"}`.

    Por qué `strict`:
    - `{"data": true}` no es un envelope válido; no convertimos tipos en silencio.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    data: str = Field(
        ...,
        strict=True,
        description="Texto opaco devuelto por el host.",
    )


class CommandSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    text: str = Field(..., description="`Envelope.data` tal cual.")

    @property
    def display_text(self) -> str:
        return self.text


class CommandFailure(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["failure"] = "failure"
    reason: str = Field(..., description="Descripción legible del fallo.")

    @property
    def display_text(self) -> str:
        return self.reason


CommandOutcome = Union[CommandSuccess, CommandFailure]
