"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.http_client import HttpTransport
from core.config import AppSettings, get_user_env_file
from core.domain.errors import TransportError
from core.domain.models import Endpoint, HealthState
from core.services.health_monitor import interpret_probe

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_health(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with HttpTransport(settings) as transport:
            envelope = await transport.fetch_json(Endpoint.HEALTH_CHECK)
        # Misma interpretación que el monitor: solo "true" cuenta como UP.
        healthy = interpret_probe(envelope.data) is HealthState.UP
        return healthy, f"data={envelope.data!r}"
    except TransportError as exc:
        return False, str(exc)


@app.command()
def run(ctx: typer.Context) -> None:
    """Show the effective configuration and check the liveness endpoint."""

    settings = ctx.obj if isinstance(ctx.obj, AppSettings) else AppSettings()

    table = Table(title="Remote Console Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("Base URL", "OK", settings.base_url)
    table.add_row("Poll interval", "OK", f"{settings.poll_interval_seconds:g}s")
    table.add_row("HTTP timeout", "OK", f"{settings.http_timeout_seconds:g}s")
    if settings.base_url.startswith("https://") and not settings.verify_tls:
        table.add_row("TLS verify", "WARN", "Certificate verification disabled")
    else:
        table.add_row("TLS verify", "OK", "on" if settings.verify_tls else "off (plain http)")
    env_file = get_user_env_file()
    table.add_row("User .env", "OK" if env_file.exists() else "OPTIONAL", str(env_file))

    # Connectivity
    ok_http, detail_http = asyncio.run(_check_health(settings))
    table.add_row(Endpoint.HEALTH_CHECK.value, "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)

    if not ok_http:
        _console.print(
            "\n[yellow]Note:[/yellow] Host unreachable or reporting unhealthy. "
            "Check RCONSOLE_BASE_URL (or pass --base-url)."
        )
        raise typer.Exit(code=1)
