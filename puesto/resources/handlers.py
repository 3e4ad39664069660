"""
Recurso de aplicación por defecto para un tipo de archivo (UTI), vía duti.
"""

from typing import Optional, Tuple

from puesto.core.infra.contracts import ApplyContext, CommandRunner
from puesto.core.project import kinds
from puesto.core.runtime.state import ApplyResult, ResourceState
from puesto.resources.base import CommandResource


class FileHandlerResource(CommandResource):
    """Asocia un UTI a una aplicación (bundle id)."""

    kind = kinds.FILE_HANDLER
    # duti escribe en el registro de LaunchServices, que serializa mal
    parallel_safe = False

    def __init__(self, bundle_id: str, uti: str, runner: Optional[CommandRunner] = None,
                 restarts: Tuple[str, ...] = ()):
        self.bundle_id = bundle_id
        self.uti = uti
        super().__init__(f"{bundle_id}:{uti}", f"Open {uti} with {bundle_id}",
                         runner=runner, restarts=restarts)

    def desired_state(self) -> ResourceState:
        return ResourceState.present(self.bundle_id)

    def current_state(self) -> ResourceState:
        out = self._read(["duti", "-x", self.uti])
        if not out.success:
            return ResourceState.absent()
        if self.bundle_id.lower() in out.stdout.lower():
            return ResourceState.present(self.bundle_id)
        lines = [line.strip() for line in out.stdout.splitlines() if line.strip()]
        if not lines:
            return ResourceState.absent()
        # duti -x: nombre, ruta y bundle id de la app actual
        return ResourceState.modified(lines[-1], self.bundle_id)

    def apply(self, ctx: ApplyContext) -> ApplyResult:
        if ctx.dry_run:
            return ApplyResult.skipped("dry-run")
        current = self.current_state()
        if current == self.desired_state():
            return ApplyResult.no_change()
        self._write_checked(ctx, ["duti", "-s", self.bundle_id, self.uti, "all"], self.id)
        return ApplyResult.created() if current.is_absent else ApplyResult.modified()
