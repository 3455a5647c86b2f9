"""One-shot commands against the remote host (log fetch, reboot).

Each call is independent: there is no in-flight guard, so two clicks on
"reboot" issue two requests. The host decides whether that is harmful.
"""

from __future__ import annotations

import logging

from core.domain.errors import TransportError
from core.domain.models import CommandFailure, CommandOutcome, CommandSuccess, Endpoint
from core.interfaces.transport import DisplaySurface, Transport

logger = logging.getLogger(__name__)


class CommandInvoker:
    """Maps a single transport exchange to a displayable outcome."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    async def invoke(
        self,
        endpoint: Endpoint,
        surface: DisplaySurface | None = None,
    ) -> CommandOutcome:
        """Run one request and write its outcome to `surface` if given.

        Never raises `TransportError`; failures become `CommandFailure`.
        """

        outcome: CommandOutcome
        try:
            envelope = await self._transport.fetch_json(endpoint)
        except TransportError as exc:
            logger.warning("%s command failed: %s", endpoint.label(), exc)
            outcome = CommandFailure(reason=f"Error: {exc}")
        else:
            outcome = CommandSuccess(text=envelope.data)

        if surface is not None:
            surface.write(outcome.display_text)
        return outcome

    async def fetch_log(self, surface: DisplaySurface | None = None) -> CommandOutcome:
        return await self.invoke(Endpoint.GET_LOG, surface)

    async def reboot_guest(self, surface: DisplaySurface | None = None) -> CommandOutcome:
        return await self.invoke(Endpoint.REBOOT_GUEST, surface)
