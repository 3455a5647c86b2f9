"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- El indicador es una función pura del `HealthState`: mismo estado, mismo render.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from core.domain.models import Endpoint, HealthState

# (label, style) por estado. UNKNOWN no se parece ni a UP ni a DOWN.
INDICATOR_STYLES: dict[HealthState, tuple[str, str]] = {
    HealthState.UNKNOWN: ("● checking…", "dim"),
    HealthState.UP: ("● connected", "bold green"),
    HealthState.DOWN: ("● disconnected", "bold red"),
}


def print_banner(console: Console, base_url: str) -> None:
    """Imprime el banner de bienvenida con el host configurado."""

    title = Text("Remote Console", style="bold cyan")
    subtitle = Text(base_url, style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_indicator(state: HealthState) -> Text:
    label, style = INDICATOR_STYLES[state]
    return Text(label, style=style)


def build_status_line(state: HealthState) -> Text:
    return Text.assemble(("Host: ", "bold"), build_indicator(state))


def build_result_panel(title: str, text: str) -> Panel:
    """Panel de resultado; el texto se muestra literal (sin markup)."""

    body = Text(text) if text else Text("—", style="dim")
    return Panel(body, title=Text(title, style="bold yellow"), border_style="yellow")


class ResultSurface:
    """Superficie de display de una acción: guarda el último texto mostrado."""

    def __init__(self, title: str) -> None:
        self.title = title
        self.text = ""

    def write(self, text: str) -> None:
        self.text = text

    def render(self) -> Panel:
        return build_result_panel(self.title, self.text)


class Dashboard:
    """Indicador de salud + un panel por acción.

    El estado se pasa explícitamente (normalmente desde `HealthMonitor.state`),
    el dashboard no guarda referencias globales.
    """

    def __init__(self) -> None:
        self.health = HealthState.UNKNOWN
        self.surfaces: dict[Endpoint, ResultSurface] = {
            Endpoint.GET_LOG: ResultSurface(Endpoint.GET_LOG.label()),
            Endpoint.REBOOT_GUEST: ResultSurface(Endpoint.REBOOT_GUEST.label()),
        }

    def surface(self, endpoint: Endpoint) -> ResultSurface:
        return self.surfaces[endpoint]

    def set_health(self, state: HealthState) -> None:
        self.health = state

    def render(self) -> Group:
        header = build_status_line(self.health)
        panels = [s.render() for s in self.surfaces.values()]
        return Group(header, *panels)
