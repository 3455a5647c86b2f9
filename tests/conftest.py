"""Shared fixtures: settings that ignore .env files and httpx-backed
transports wired to an in-process mock host."""

from typing import Dict, Optional

import httpx
import pytest

from adapters.http_client import HttpTransport, build_async_client
from core.config import AppSettings
from core.domain.errors import TransportError
from core.domain.models import Endpoint
from mock_host import Handler, Router


@pytest.fixture
def settings():
    return AppSettings(
        _env_file=None,
        base_url="http://console.test",
        poll_interval_seconds=0.01,
        http_timeout_seconds=1.0,
    )


@pytest.fixture
def make_http_transport(settings):
    """Build an `HttpTransport` whose client talks to an `httpx.MockTransport`."""

    def factory(routes: Dict[str, Handler], app_settings: Optional[AppSettings] = None):
        router = Router(routes)
        cfg = app_settings or settings
        client = build_async_client(cfg, transport=httpx.MockTransport(router))
        return HttpTransport(cfg, client=client), router

    return factory


@pytest.fixture
def transport_error():
    def factory(message: str = "Connection refused") -> TransportError:
        return TransportError(Endpoint.HEALTH_CHECK.value, message)

    return factory
