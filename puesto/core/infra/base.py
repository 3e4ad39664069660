"""
Base opcional para recursos y callbacks por defecto.

Los recursos pueden heredar de aquí o implementar solo el contrato (Protocol).
"""

from typing import List, Optional, Tuple

from puesto.core.infra.contracts import ApplyContext
from puesto.core.runtime.state import ApplyResult, ResourceState


class BaseResource:
    """Base opcional para recursos; no obligatorio usar herencia."""

    kind: str = "base"
    parallel_safe: bool = True

    def __init__(self, id: str, description: str = "", privileged: bool = False,
                 restarts: Tuple[str, ...] = ()):
        self.id = id
        self.description = description or id
        self.privileged = privileged
        self.restarts = tuple(restarts)

    @property
    def privilege_hint(self) -> Optional[str]:
        """Por defecto: sin requisito estático."""
        return None

    def desired_state(self) -> ResourceState:
        return ResourceState.present()

    def current_state(self) -> ResourceState:
        return ResourceState.unknown()

    def needs_apply(self) -> bool:
        return self.current_state() != self.desired_state()

    def apply(self, ctx: ApplyContext) -> ApplyResult:
        """Por defecto: no aplica nada."""
        return ApplyResult.no_change()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind}:{self.id})"


class NoProgress:
    """Progreso silencioso."""

    def on_batch_start(self, count: int, privileged: bool) -> None:
        pass

    def on_resource_start(self, resource_id: str, description: str) -> None:
        pass

    def on_resource_complete(self, resource_id: str, result: ApplyResult) -> None:
        pass

    def on_batch_complete(self) -> None:
        pass

    def on_privilege_boundary(self, descriptions: List[str]) -> None:
        pass


class AutoConfirm:
    """Confirma siempre (--yes)."""

    def confirm(self, prompt: str) -> bool:
        return True


class AutoDecline:
    """Rechaza siempre."""

    def confirm(self, prompt: str) -> bool:
        return False
