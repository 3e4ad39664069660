"""
Recursos de paquete: fórmulas, casks, taps, apps de la tienda, extensiones del
editor, extensiones de gh y paquetes globales de node.

Cada tipo se describe en una tabla (TOOLS) con su verbo de consulta y su verbo
de instalación; PackageResource despacha sobre ella.
"""

import json
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from puesto.core.errors import (
    InspectionFailedError,
    NotFoundError,
    PuestoError,
    classify_tool_error,
)
from puesto.core.infra.contracts import ApplyContext, CommandRunner
from puesto.core.project import kinds
from puesto.core.retry import NO_RETRY, RetryPolicy, run_with_retry
from puesto.core.runtime.state import ApplyResult, CommandOutput, ResourceState
from puesto.resources.base import CommandResource

logger = logging.getLogger(__name__)

Read = Callable[[List[str]], CommandOutput]


@dataclass(frozen=True)
class PackageTool:
    """Cómo consultar e instalar un tipo de paquete."""
    binary: str
    is_installed: Callable[[Read, str, str], bool]
    install: Callable[[str], List[str]]


def _lines(out: CommandOutput) -> List[str]:
    return [line.strip() for line in out.stdout.splitlines() if line.strip()]


def _checked(out: CommandOutput, kind: str, name: str) -> CommandOutput:
    if not out.success:
        raise InspectionFailedError(kind, out.stderr_tail() or f"código de salida {out.returncode}")
    return out


def _brew_info(read: Read, kind: str, name: str) -> bool:
    flag = "--formula" if kind == kinds.FORMULA else "--cask"
    out = read(["brew", "info", "--json=v2", flag, name])
    if not out.success:
        # Un paquete que brew no conoce no está instalado; apply informará NotFound
        if isinstance(classify_tool_error(out.stderr, name), NotFoundError):
            return False
        raise InspectionFailedError(kind, out.stderr_tail() or f"código de salida {out.returncode}")
    try:
        data = json.loads(out.stdout or "{}")
    except json.JSONDecodeError as e:
        raise InspectionFailedError(kind, f"JSON inválido de brew info: {e}") from None

    if kind == kinds.FORMULA:
        formulae = data.get("formulae") or []
        return bool(formulae and formulae[0].get("installed"))
    casks = data.get("casks") or []
    return bool(casks and casks[0].get("installed"))


def _brew_tap(read: Read, kind: str, name: str) -> bool:
    out = _checked(read(["brew", "tap"]), kind, name)
    return name.lower() in (line.lower() for line in _lines(out))


def _mas_list(read: Read, kind: str, name: str) -> bool:
    out = _checked(read(["mas", "list"]), kind, name)
    return any(line.split()[0] == name for line in _lines(out))


def _code_extensions(read: Read, kind: str, name: str) -> bool:
    out = _checked(read(["code", "--list-extensions"]), kind, name)
    return name.lower() in (line.lower() for line in _lines(out))


def _gh_extensions(read: Read, kind: str, name: str) -> bool:
    out = _checked(read(["gh", "extension", "list"]), kind, name)
    # Columnas: nombre, repositorio, versión
    return any(name in line.split() for line in _lines(out))


def _pnpm_globals(read: Read, kind: str, name: str) -> bool:
    out = _checked(read(["pnpm", "list", "-g", "--depth=0"]), kind, name)
    return any(line.split()[0] == name for line in _lines(out))


TOOLS: Dict[str, PackageTool] = {
    kinds.FORMULA: PackageTool("brew", _brew_info, lambda n: ["brew", "install", "--formula", n]),
    kinds.CASK: PackageTool("brew", _brew_info, lambda n: ["brew", "install", "--cask", n]),
    kinds.TAP: PackageTool("brew", _brew_tap, lambda n: ["brew", "tap", n]),
    kinds.STORE_APP: PackageTool("mas", _mas_list, lambda n: ["mas", "install", n]),
    kinds.EDITOR_EXTENSION: PackageTool(
        "code", _code_extensions, lambda n: ["code", "--install-extension", n, "--force"]
    ),
    kinds.CLI_EXTENSION: PackageTool("gh", _gh_extensions, lambda n: ["gh", "extension", "install", n]),
    kinds.NODE_GLOBAL: PackageTool("pnpm", _pnpm_globals, lambda n: ["pnpm", "add", "-g", n]),
}


class PackageResource(CommandResource):
    """Paquete instalado a través de su gestor (brew, mas, code, gh, pnpm)."""

    parallel_safe = True

    def __init__(
        self,
        kind: str,
        name: str,
        runner: Optional[CommandRunner] = None,
        privileged: bool = False,
        retry: RetryPolicy = NO_RETRY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if kind not in TOOLS:
            raise ValueError(f"tipo de paquete desconocido: {kind}")
        self.kind = kind
        super().__init__(name, f"Install {kind} {name}", runner=runner, privileged=privileged)
        self.name = name
        self.tool = TOOLS[kind]
        self.retry = retry
        self._sleep = sleep

    def desired_state(self) -> ResourceState:
        return ResourceState.present()

    def current_state(self) -> ResourceState:
        if self.tool.is_installed(self._read, self.kind, self.name):
            return ResourceState.present()
        return ResourceState.absent()

    def apply(self, ctx: ApplyContext) -> ApplyResult:
        if ctx.dry_run:
            return ApplyResult.skipped("dry-run")
        # Sin la herramienta, is_installed deja pasar ToolMissing en lugar de Unsupported
        if self.tool.is_installed(self.runner.run, self.kind, self.name):
            return ApplyResult.no_change()

        argv = self.tool.install(self.name)
        try:
            run_with_retry(lambda: self._write_checked(ctx, argv, self.name), self.retry, self._sleep)
        except PuestoError as e:
            if e.ignorable:
                logger.info("%s ya estaba instalado", self.name)
                return ApplyResult.no_change()
            raise
        return ApplyResult.created()
