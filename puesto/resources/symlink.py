"""
Recurso de enlace simbólico.

Estados:
- destino inexistente → ABSENT
- enlace al origen (rutas canónicas iguales) → PRESENT
- enlace a otro destino → MODIFIED(actual → origen)
- archivo o directorio normal → MODIFIED("regular" → "symlink→origen")
"""

import logging
import os
from pathlib import Path
from typing import Union

from puesto.core.errors import NotFoundError, PermissionDeniedError
from puesto.core.infra.base import BaseResource
from puesto.core.infra.contracts import ApplyContext
from puesto.core.project import kinds
from puesto.core.runtime.state import ApplyResult, ResourceState, StateKind

logger = logging.getLogger(__name__)

REGULAR = "regular"


def read_link(target: Path) -> str:
    """Destino de un enlace; los relativos se resuelven contra su directorio."""
    dest = os.readlink(target)
    if not os.path.isabs(dest):
        dest = os.path.join(os.path.dirname(target), dest)
    return os.path.normpath(dest)


class SymlinkResource(BaseResource):
    """Enlace simbólico target → source."""

    kind = kinds.SYMLINK
    parallel_safe = True

    def __init__(self, source: Union[str, Path], target: Union[str, Path], force: bool = False):
        self.source = Path(source)
        self.target = Path(target)
        self.force = force
        super().__init__(str(self.target), f"Link {self.target} → {self.source}")

    def desired_state(self) -> ResourceState:
        return ResourceState.present(str(self.source))

    def current_state(self) -> ResourceState:
        if self.target.is_symlink():
            actual = read_link(self.target)
            if os.path.realpath(actual) == os.path.realpath(self.source):
                return ResourceState.present(str(self.source))
            return ResourceState.modified(actual, str(self.source))
        if self.target.exists():
            return ResourceState.modified(REGULAR, f"symlink→{self.source}")
        return ResourceState.absent()

    def apply(self, ctx: ApplyContext) -> ApplyResult:
        if ctx.dry_run:
            return ApplyResult.skipped("dry-run")
        current = self.current_state()
        if current == self.desired_state():
            return ApplyResult.no_change()
        if not self.source.exists():
            raise NotFoundError(str(self.source), f"el origen no existe: {self.source}")

        try:
            if current.kind == StateKind.ABSENT:
                self.target.parent.mkdir(parents=True, exist_ok=True)
                os.symlink(self.source, self.target)
                return ApplyResult.created()

            if current.from_ == REGULAR:
                if not self.force:
                    return ApplyResult.skipped(f"File exists at {self.target}")
                backup = self._backup_path()
                logger.info("Respaldando %s en %s", self.target, backup)
                os.replace(self.target, backup)
                os.symlink(self.source, self.target)
                return ApplyResult.modified()

            self._replace_link()
            return ApplyResult.modified()
        except PermissionError as e:
            raise PermissionDeniedError(e.filename or str(self.target), str(e)) from None

    def _backup_path(self) -> Path:
        """<target>.bak, o .bak.1, .bak.2... si ya hay un respaldo anterior."""
        backup = self.target.with_name(self.target.name + ".bak")
        n = 0
        while backup.exists() or backup.is_symlink():
            n += 1
            backup = self.target.with_name(f"{self.target.name}.bak.{n}")
        return backup

    def _replace_link(self) -> None:
        # Enlace temporal + rename: el destino nunca queda ausente
        tmp = self.target.with_name(f".{self.target.name}.puesto-tmp")
        if tmp.is_symlink() or tmp.exists():
            tmp.unlink()
        os.symlink(self.source, tmp)
        os.replace(tmp, self.target)
