"""
Recurso de servicio: reinicio de un proceso tras la convergencia.

No tiene estado propio; siempre necesita aplicarse y corre en la fase de
post_actions, nunca en los lotes principales.
"""

from typing import Optional

from puesto.core.infra.contracts import ApplyContext, CommandRunner
from puesto.core.project import kinds
from puesto.core.runtime.state import ApplyResult, ResourceState
from puesto.resources.base import CommandResource


class ServiceResource(CommandResource):
    """Reinicio de un proceso del sistema (killall; launchd lo relanza)."""

    kind = kinds.SERVICE
    parallel_safe = False

    def __init__(self, name: str, runner: Optional[CommandRunner] = None):
        super().__init__(name, f"Restart {name}", runner=runner)
        self.name = name

    def current_state(self) -> ResourceState:
        return ResourceState.present("running")

    def desired_state(self) -> ResourceState:
        return ResourceState.present("restarted")

    def apply(self, ctx: ApplyContext) -> ApplyResult:
        if ctx.dry_run:
            return ApplyResult.skipped("dry-run")
        out = self.runner.run(["killall", self.name])
        if out.success:
            return ApplyResult.modified()
        return ApplyResult.skipped(f"{self.name} was not running")
