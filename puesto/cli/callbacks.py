"""
Callbacks de progreso y confirmación para la terminal (Rich).
"""

import threading
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm

from puesto.core.runtime.state import ApplyResult, OutcomeKind

BOUNDARY_LIMIT = 10

_STYLES = {
    OutcomeKind.NO_CHANGE: "dim",
    OutcomeKind.CREATED: "green",
    OutcomeKind.MODIFIED: "green",
    OutcomeKind.REMOVED: "green",
    OutcomeKind.FAILED: "red",
    OutcomeKind.SKIPPED: "yellow",
}


class RichProgress:
    """Una línea por recurso iniciado y otra por recurso terminado."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._lock = threading.Lock()

    def on_batch_start(self, count: int, privileged: bool) -> None:
        label = "con privilegios" if privileged else "sin privilegios"
        with self._lock:
            self.console.print(f"\n[bold cyan]▶ Lote {label}: {count} recurso(s)[/bold cyan]")

    def on_resource_start(self, resource_id: str, description: str) -> None:
        with self._lock:
            self.console.print(f"  [dim]… {escape(resource_id)}[/dim] {escape(description)}")

    def on_resource_complete(self, resource_id: str, result: ApplyResult) -> None:
        style = _STYLES.get(result.kind, "white")
        with self._lock:
            self.console.print(
                f"  [{style}]{result.symbol}[/{style}] {escape(resource_id)} "
                f"[{style}]{escape(str(result))}[/{style}]"
            )

    def on_batch_complete(self) -> None:
        pass

    def on_privilege_boundary(self, descriptions: List[str]) -> None:
        shown = [f"• {escape(d)}" for d in descriptions[:BOUNDARY_LIMIT]]
        if len(descriptions) > BOUNDARY_LIMIT:
            shown.append(f"[dim]... and {len(descriptions) - BOUNDARY_LIMIT} more[/dim]")
        with self._lock:
            self.console.print(Panel.fit(
                "\n".join(shown),
                title=f"🔐 Cambios que requieren sudo ({len(descriptions)})",
                border_style="yellow",
            ))


class RichConfirm:
    """Confirmación interactiva (por defecto: no)."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def confirm(self, prompt: str) -> bool:
        return Confirm.ask(prompt, default=False, console=self.console)
