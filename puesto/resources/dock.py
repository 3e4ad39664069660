"""
Recursos del Dock: aplicaciones y carpetas (vía dockutil).

La lista persistente del Dock es un registro único; estos recursos no son
paralelizables y se añaden con --no-restart (el reinicio va en post_actions).
"""

import re
from typing import List, Optional, Tuple
from urllib.parse import unquote, urlparse

from puesto.core.infra.contracts import ApplyContext, CommandRunner
from puesto.core.project import kinds
from puesto.core.runtime.state import ApplyResult, ResourceState
from puesto.resources.base import CommandResource

DOCK_DOMAIN = "com.apple.dock"

_URL_RE = re.compile(r'"?_CFURLString"?\s*=\s*"?([^";\n]+)"?;')


def dock_paths(listing: str) -> List[str]:
    """Rutas de las entradas de una lista persistente del Dock (salida de defaults read)."""
    paths = []
    for url in _URL_RE.findall(listing):
        url = url.strip()
        path = urlparse(url).path if url.startswith("file://") else url
        path = unquote(path)
        paths.append(path.rstrip("/") or path)
    return paths


class _DockEntry(CommandResource):
    parallel_safe = False
    persistent_key = "persistent-apps"

    def __init__(self, path: str, description: str, runner: Optional[CommandRunner] = None,
                 restarts: Tuple[str, ...] = ()):
        self.path = path.rstrip("/") or path
        super().__init__(self.path, description, runner=runner, restarts=restarts)

    def desired_state(self) -> ResourceState:
        return ResourceState.present(self.path)

    def current_state(self) -> ResourceState:
        out = self._read(["defaults", "read", DOCK_DOMAIN, self.persistent_key])
        if not out.success:
            return ResourceState.absent()
        # El Dock guarda URLs file:// (espacios como %20, con / final)
        if self.path in dock_paths(out.stdout):
            return ResourceState.present(self.path)
        return ResourceState.absent()

    def _add_args(self) -> List[str]:
        return []

    def apply(self, ctx: ApplyContext) -> ApplyResult:
        if ctx.dry_run:
            return ApplyResult.skipped("dry-run")
        if self.current_state() == self.desired_state():
            return ApplyResult.no_change()
        argv = ["dockutil", "--add", self.path, *self._add_args(), "--no-restart"]
        self._write_checked(ctx, argv, self.path)
        return ApplyResult.created()


class DockAppResource(_DockEntry):
    """Aplicación fijada en el Dock."""

    kind = kinds.DOCK_APP
    persistent_key = "persistent-apps"

    def __init__(self, path: str, position: Optional[int] = None,
                 runner: Optional[CommandRunner] = None, restarts: Tuple[str, ...] = ()):
        self.position = position
        super().__init__(path, f"Add {path} to the Dock", runner=runner, restarts=restarts)

    def _add_args(self) -> List[str]:
        if self.position is None:
            return []
        return ["--position", str(self.position)]


class DockFolderResource(_DockEntry):
    """Carpeta (stack) en el Dock."""

    kind = kinds.DOCK_FOLDER
    persistent_key = "persistent-others"

    def __init__(self, path: str, view: str = "grid", display: str = "stack", sort: str = "dateadded",
                 runner: Optional[CommandRunner] = None, restarts: Tuple[str, ...] = ()):
        self.view = view
        self.display = display
        self.sort = sort
        super().__init__(path, f"Add folder {path} to the Dock", runner=runner, restarts=restarts)

    def _add_args(self) -> List[str]:
        return ["--view", self.view, "--display", self.display, "--sort", self.sort]
