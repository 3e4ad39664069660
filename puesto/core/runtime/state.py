"""
Valores de estado: estado de recurso, resultado de aplicar y resumen de ejecución.

Son valores inmutables y de vida corta; se crean en cada invocación y nunca se persisten.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from puesto.core.errors import PuestoError, stderr_tail


class StateKind(str, Enum):
    ABSENT = "absent"
    PRESENT = "present"
    MODIFIED = "modified"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ResourceState:
    """
    Estado observado o deseado de un recurso.

    Dos estados son iguales solo si coinciden en variante y, para PRESENT,
    su huella (details) es idéntica byte a byte.
    """
    kind: StateKind
    details: Optional[str] = None
    from_: Optional[str] = None
    to: Optional[str] = None

    @classmethod
    def absent(cls) -> "ResourceState":
        return cls(StateKind.ABSENT)

    @classmethod
    def present(cls, details: Optional[str] = None) -> "ResourceState":
        return cls(StateKind.PRESENT, details=details)

    @classmethod
    def modified(cls, from_: str, to: str) -> "ResourceState":
        return cls(StateKind.MODIFIED, from_=from_, to=to)

    @classmethod
    def unknown(cls) -> "ResourceState":
        return cls(StateKind.UNKNOWN)

    @property
    def is_absent(self) -> bool:
        return self.kind == StateKind.ABSENT

    @property
    def is_present(self) -> bool:
        return self.kind == StateKind.PRESENT

    def __str__(self) -> str:
        if self.kind == StateKind.PRESENT:
            return f"present ({self.details})" if self.details else "present"
        if self.kind == StateKind.MODIFIED:
            return f"{self.from_} → {self.to}"
        return self.kind.value


class OutcomeKind(str, Enum):
    NO_CHANGE = "no_change"
    CREATED = "created"
    MODIFIED = "modified"
    REMOVED = "removed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class ApplyResult:
    """Resultado de aplicar un único recurso."""
    kind: OutcomeKind
    error: Optional[PuestoError] = None
    reason: Optional[str] = None

    @classmethod
    def no_change(cls) -> "ApplyResult":
        return cls(OutcomeKind.NO_CHANGE)

    @classmethod
    def created(cls) -> "ApplyResult":
        return cls(OutcomeKind.CREATED)

    @classmethod
    def modified(cls) -> "ApplyResult":
        return cls(OutcomeKind.MODIFIED)

    @classmethod
    def removed(cls) -> "ApplyResult":
        return cls(OutcomeKind.REMOVED)

    @classmethod
    def failed(cls, error: PuestoError) -> "ApplyResult":
        return cls(OutcomeKind.FAILED, error=error)

    @classmethod
    def skipped(cls, reason: str) -> "ApplyResult":
        return cls(OutcomeKind.SKIPPED, reason=reason)

    @property
    def is_success(self) -> bool:
        return self.kind != OutcomeKind.FAILED

    @property
    def is_change(self) -> bool:
        return self.kind in (OutcomeKind.CREATED, OutcomeKind.MODIFIED, OutcomeKind.REMOVED)

    @property
    def symbol(self) -> str:
        if self.kind == OutcomeKind.NO_CHANGE:
            return "○"
        if self.kind == OutcomeKind.FAILED:
            return "✗"
        if self.kind == OutcomeKind.SKIPPED:
            return "⊘"
        return "✓"

    def __str__(self) -> str:
        if self.kind == OutcomeKind.FAILED and self.error is not None:
            return f"failed: {self.error}"
        if self.kind == OutcomeKind.SKIPPED:
            return f"skipped: {self.reason}"
        return self.kind.value.replace("_", " ")


@dataclass(frozen=True)
class FailureRecord:
    """Fallo de un recurso, para el informe final."""
    resource_id: str
    error: PuestoError

    @property
    def error_kind(self) -> str:
        return self.error.kind

    @property
    def stderr_tail(self) -> str:
        return getattr(self.error, "stderr_tail", "") or ""


@dataclass
class ExecuteSummary:
    """Contadores agregados de una ejecución."""
    created: int = 0
    modified: int = 0
    removed: int = 0
    skipped: int = 0
    failed: int = 0
    no_change: int = 0
    failures: List[FailureRecord] = field(default_factory=list)
    privilege_denied: bool = False
    # Ids de los recursos con Created/Modified/Removed (disparan post_actions)
    changed: List[str] = field(default_factory=list)

    def add_result(self, resource_id: str, result: ApplyResult) -> None:
        if result.is_change:
            self.changed.append(resource_id)
        if result.kind == OutcomeKind.CREATED:
            self.created += 1
        elif result.kind == OutcomeKind.MODIFIED:
            self.modified += 1
        elif result.kind == OutcomeKind.REMOVED:
            self.removed += 1
        elif result.kind == OutcomeKind.SKIPPED:
            self.skipped += 1
        elif result.kind == OutcomeKind.NO_CHANGE:
            self.no_change += 1
        else:
            self.failed += 1
            if result.error is not None:
                self.failures.append(FailureRecord(resource_id, result.error))

    def merge(self, other: "ExecuteSummary") -> None:
        self.created += other.created
        self.modified += other.modified
        self.removed += other.removed
        self.skipped += other.skipped
        self.failed += other.failed
        self.no_change += other.no_change
        self.failures.extend(other.failures)
        self.changed.extend(other.changed)
        self.privilege_denied = self.privilege_denied or other.privilege_denied

    @property
    def total_changes(self) -> int:
        return self.created + self.modified + self.removed

    @property
    def total(self) -> int:
        return self.total_changes + self.skipped + self.failed + self.no_change

    @property
    def is_success(self) -> bool:
        return self.failed == 0

    def exit_code(self) -> int:
        """0 éxito, 1 algún fallo, 3 privilegios rechazados."""
        if self.privilege_denied:
            return 3
        return 0 if self.is_success else 1


@dataclass(frozen=True)
class CommandOutput:
    """Salida capturada de un proceso hijo."""
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0

    @property
    def success(self) -> bool:
        return self.returncode == 0

    def stderr_tail(self, lines: int = 5) -> str:
        return stderr_tail(self.stderr, lines)
