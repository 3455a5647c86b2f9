"""CLI del cliente de consola remota (Typer).

Por qué Typer + Rich:
- Comandos one-shot (`log`, `reboot`, `health`) para scripts.
- Modos de larga duración (`watch`, `console`) con el monitor de salud corriendo
  en segundo plano y un indicador que se redibuja solo cuando cambia el estado.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.prompt import Prompt

from adapters.http_client import HttpTransport
from cli.doctor import app as doctor_app
from cli.ui_components import Dashboard, build_indicator, build_status_line, print_banner
from core.config import AppSettings
from core.domain.models import CommandFailure, CommandOutcome, Endpoint, HealthState
from core.services.command_invoker import CommandInvoker
from core.services.health_monitor import HealthMonitor

app = typer.Typer(no_args_is_help=True, help="Control client for a remote host: log, reboot and liveness.")
app.add_typer(doctor_app, name="doctor")

logger = logging.getLogger(__name__)

_console = Console()

# "status" solo redibuja el dashboard.
CONSOLE_ACTIONS = ["log", "reboot", "status", "quit"]


def configure_logging(level: str) -> None:
    """Configura el root logger una sola vez (el Core nunca añade handlers)."""

    root = logging.getLogger()
    if any(isinstance(h, RichHandler) for h in root.handlers):
        root.setLevel(level)
        return
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
    )


def build_transport(settings: AppSettings) -> HttpTransport:
    return HttpTransport(settings)


def _settings(ctx: typer.Context) -> AppSettings:
    settings = ctx.obj
    if not isinstance(settings, AppSettings):
        settings = AppSettings()
        ctx.obj = settings
    return settings


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        help="Base URL del host (por defecto RCONSOLE_BASE_URL o http://localhost:8080).",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Logging en nivel DEBUG."),
) -> None:
    overrides: dict[str, object] = {}
    if base_url:
        overrides["base_url"] = base_url
    if verbose:
        overrides["log_level"] = "DEBUG"
    try:
        settings = AppSettings(**overrides)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc

    configure_logging(settings.log_level)
    ctx.obj = settings


async def _run_command(settings: AppSettings, endpoint: Endpoint) -> tuple[CommandOutcome, Dashboard]:
    dashboard = Dashboard()
    async with build_transport(settings) as transport:
        outcome = await CommandInvoker(transport).invoke(endpoint, dashboard.surface(endpoint))
    return outcome, dashboard


def _one_shot(ctx: typer.Context, endpoint: Endpoint) -> None:
    outcome, dashboard = asyncio.run(_run_command(_settings(ctx), endpoint))
    _console.print(dashboard.surface(endpoint).render())
    if isinstance(outcome, CommandFailure):
        raise typer.Exit(code=1)


@app.command()
def log(ctx: typer.Context) -> None:
    """Fetch the host log once."""

    _one_shot(ctx, Endpoint.GET_LOG)


@app.command()
def reboot(ctx: typer.Context) -> None:
    """Ask the host to reboot the guest."""

    _one_shot(ctx, Endpoint.REBOOT_GUEST)


async def _probe(settings: AppSettings) -> HealthState:
    async with build_transport(settings) as transport:
        monitor = HealthMonitor(transport, interval_seconds=settings.poll_interval_seconds)
        return await monitor.tick()


@app.command()
def health(ctx: typer.Context) -> None:
    """Run a single liveness probe (exit code 0 only when the host is up)."""

    state = asyncio.run(_probe(_settings(ctx)))
    _console.print(build_indicator(state))
    if state is not HealthState.UP:
        raise typer.Exit(code=1)


async def _watch(settings: AppSettings, duration: float | None) -> HealthState:
    async with build_transport(settings) as transport:
        monitor = HealthMonitor(transport, interval_seconds=settings.poll_interval_seconds)
        with Live(build_indicator(monitor.state), console=_console, auto_refresh=False) as live:
            monitor.subscribe(lambda state: live.update(build_indicator(state), refresh=True))
            async with monitor:
                if duration is None:
                    await asyncio.Event().wait()
                else:
                    await asyncio.sleep(duration)
        return monitor.state


@app.command()
def watch(
    ctx: typer.Context,
    duration: Optional[float] = typer.Option(
        None,
        "--duration",
        min=0,
        help="Segundos a monitorizar (por defecto hasta Ctrl+C).",
    ),
) -> None:
    """Poll the liveness endpoint and show a live connection indicator."""

    settings = _settings(ctx)
    try:
        asyncio.run(_watch(settings, duration))
    except KeyboardInterrupt:
        _console.print("[dim]stopped[/dim]")


async def _ask_action() -> str:
    """Lee la siguiente acción sin bloquear el event loop.

    `Prompt.ask` bloquea en `input()`: corre en un thread daemon y entrega la
    respuesta al loop. Un thread del executor por defecto haría que
    `asyncio.run` esperase a que el usuario pulse Enter tras un Ctrl+C.
    """

    loop = asyncio.get_running_loop()
    answer: asyncio.Future[str] = loop.create_future()

    def deliver(value: str | None, exc: Exception | None) -> None:
        if answer.done():
            return
        if exc is not None:
            answer.set_exception(exc)
        else:
            answer.set_result(value)

    def read() -> None:
        value: str | None = None
        error: Exception | None = None
        try:
            value = Prompt.ask(
                "[bold]action[/bold]",
                choices=CONSOLE_ACTIONS,
                default="status",
                console=_console,
            )
        except Exception as exc:
            error = exc
        try:
            loop.call_soon_threadsafe(deliver, value, error)
        except RuntimeError:
            # Loop ya cerrado (Ctrl+C): nadie espera la respuesta.
            logger.debug("console prompt answered after shutdown")

    threading.Thread(target=read, name="console-prompt", daemon=True).start()
    return await answer


async def _console_loop(settings: AppSettings) -> None:
    dashboard = Dashboard()

    def on_health(state: HealthState) -> None:
        dashboard.set_health(state)
        _console.print(build_status_line(state))

    async with build_transport(settings) as transport:
        invoker = CommandInvoker(transport)
        monitor = HealthMonitor(transport, interval_seconds=settings.poll_interval_seconds)
        monitor.subscribe(on_health)
        async with monitor:
            while True:
                _console.print(dashboard.render())
                choice = await _ask_action()
                if choice == "quit":
                    break
                if choice == "log":
                    await invoker.fetch_log(dashboard.surface(Endpoint.GET_LOG))
                elif choice == "reboot":
                    await invoker.reboot_guest(dashboard.surface(Endpoint.REBOOT_GUEST))


@app.command(name="console")
def console_cmd(ctx: typer.Context) -> None:
    """Interactive dashboard: health indicator, log and reboot panels."""

    settings = _settings(ctx)
    print_banner(_console, settings.base_url)
    try:
        asyncio.run(_console_loop(settings))
    except (KeyboardInterrupt, EOFError):
        _console.print("[dim]bye[/dim]")


def run() -> None:
    app()
