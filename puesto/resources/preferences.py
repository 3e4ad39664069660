"""
Recurso de preferencia del sistema (defaults domain key).

El valor tiene tipo en tiempo de ejecución (bool, int, float, string); la lectura
se interpreta según el tipo deseado y la huella es la forma canónica del valor.
"""

from enum import Enum
from typing import Any, Optional, Tuple, Union

from puesto.core.infra.contracts import ApplyContext, CommandRunner
from puesto.core.project import kinds
from puesto.core.runtime.state import ApplyResult, ResourceState
from puesto.resources.base import CommandResource

Value = Union[bool, int, float, str]

# Procesos dueños de dominios conocidos (se reinician tras cambiar sus claves)
DOMAIN_OWNERS = {
    "com.apple.finder": "Finder",
    "com.apple.dock": "Dock",
    "com.apple.systemuiserver": "SystemUIServer",
    "com.apple.screencapture": "SystemUIServer",
}

_TRUE = ("1", "true", "yes")
_FALSE = ("0", "false", "no")


class PreferenceType(str, Enum):
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"

    @property
    def flag(self) -> str:
        return f"-{self.value}"


def coerce_value(value: Any, value_type: PreferenceType) -> Value:
    """
    Convierte el valor del documento al tipo declarado

    Raises:
        ValueError: si el valor no es compatible con el tipo
    """
    if value_type == PreferenceType.BOOL:
        if isinstance(value, bool):
            return value
        parsed = parse_value(str(value), value_type)
        if parsed is None:
            raise ValueError(f"{value!r} no es un booleano")
        return parsed
    if value_type == PreferenceType.INT:
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise ValueError(f"{value!r} no es un entero")
        return int(value)
    if value_type == PreferenceType.FLOAT:
        if isinstance(value, bool):
            raise ValueError(f"{value!r} no es un número")
        return float(value)
    return str(value)


def parse_value(raw: str, value_type: PreferenceType) -> Optional[Value]:
    """Interpreta la salida de `defaults read`; None si no encaja con el tipo."""
    if value_type == PreferenceType.STRING:
        # Solo el salto de línea que añade defaults; los espacios son parte del valor
        return raw.rstrip("\n")
    raw = raw.strip()
    if value_type == PreferenceType.BOOL:
        lowered = raw.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        return None
    if value_type == PreferenceType.INT:
        try:
            return int(raw)
        except ValueError:
            return None
    if value_type == PreferenceType.FLOAT:
        try:
            return float(raw)
        except ValueError:
            return None
    return raw


def canonical(value: Value, value_type: PreferenceType) -> str:
    """Forma canónica (huella y argumento de escritura)."""
    if value_type == PreferenceType.BOOL:
        return "true" if value else "false"
    if value_type == PreferenceType.FLOAT:
        return repr(float(value))
    return str(value)


class PreferenceResource(CommandResource):
    """Preferencia `defaults` con tipo."""

    kind = kinds.PREFERENCE
    parallel_safe = True

    def __init__(
        self,
        domain: str,
        key: str,
        value_type: PreferenceType,
        value: Any,
        runner: Optional[CommandRunner] = None,
        privileged: bool = False,
        restarts: Tuple[str, ...] = (),
    ):
        self.domain = domain
        self.key = key
        self.value_type = PreferenceType(value_type)
        self.value = coerce_value(value, self.value_type)
        super().__init__(
            f"{domain}.{key}",
            f"Set {domain} {key} = {canonical(self.value, self.value_type)}",
            runner=runner,
            privileged=privileged,
            restarts=restarts,
        )

    def desired_state(self) -> ResourceState:
        return ResourceState.present(canonical(self.value, self.value_type))

    def current_state(self) -> ResourceState:
        out = self._read(["defaults", "read", self.domain, self.key])
        if not out.success:
            return ResourceState.absent()
        parsed = parse_value(out.stdout, self.value_type)
        if parsed is None:
            return ResourceState.absent()
        return ResourceState.present(canonical(parsed, self.value_type))

    def apply(self, ctx: ApplyContext) -> ApplyResult:
        if ctx.dry_run:
            return ApplyResult.skipped("dry-run")
        current = self.current_state()
        if current == self.desired_state():
            return ApplyResult.no_change()

        argv = ["defaults", "write", self.domain, self.key,
                self.value_type.flag, canonical(self.value, self.value_type)]
        self._write_checked(ctx, argv, self.id)
        return ApplyResult.created() if current.is_absent else ApplyResult.modified()
