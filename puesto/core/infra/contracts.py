"""
Contratos que deben implementar los recursos y los colaboradores del executor.

El core solo define interfaces; la implementación vive en puesto/resources/*,
puesto/system/* y puesto/cli/*.
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

from puesto.core.errors import NotValidatedError
from puesto.core.runtime.state import ApplyResult, CommandOutput, ResourceState


class CommandRunner(Protocol):
    """Protocolo: quien ejecuta comandos externos (un proceso hijo por llamada)."""
    def run(self, argv: Sequence[str], capture: bool = True) -> CommandOutput:
        ...


class PrivilegeRunner(Protocol):
    """Protocolo: quien ejecuta comandos a través del envoltorio de elevación."""
    def run(self, cmd: str, args: Sequence[str]) -> CommandOutput:
        ...


@dataclass
class ApplyContext:
    """Contexto que recibe cada apply()."""
    dry_run: bool = False
    verbose: bool = False
    privileged_runner: Optional[PrivilegeRunner] = None

    def require_privilege(self) -> PrivilegeRunner:
        """Devuelve el runner elevado o falla si no hay contexto de privilegios."""
        if self.privileged_runner is None:
            raise NotValidatedError("se requieren privilegios pero no hay contexto disponible")
        return self.privileged_runner


@dataclass(frozen=True)
class ExecuteOptions:
    """Opciones de ejecución del plan."""
    dry_run: bool = False
    parallelism: int = 4
    verbose: bool = False

    def __post_init__(self):
        if self.parallelism < 1:
            raise ValueError("parallelism debe ser >= 1")


class Resource(Protocol):
    """
    Contrato mínimo de un recurso (paquete, preferencia, enlace, servicio...).
    Identidad para planificación: (kind, id).
    """
    id: str
    kind: str
    description: str
    privileged: bool
    parallel_safe: bool
    restarts: Tuple[str, ...]

    @property
    def privilege_hint(self) -> Optional[str]:
        """Motivo estático por el que requiere privilegios, o None."""
        ...

    def desired_state(self) -> ResourceState:
        """Estado declarado en el documento de configuración."""
        ...

    def current_state(self) -> ResourceState:
        """Inspecciona el sistema (solo lectura); puede lanzar PuestoError."""
        ...

    def apply(self, ctx: ApplyContext) -> ApplyResult:
        """Converge el estado actual al deseado; idempotente."""
        ...


class ProgressCallback(Protocol):
    """Protocolo: notificación de progreso (se llama desde varios hilos)."""
    def on_batch_start(self, count: int, privileged: bool) -> None:
        ...

    def on_resource_start(self, resource_id: str, description: str) -> None:
        ...

    def on_resource_complete(self, resource_id: str, result: ApplyResult) -> None:
        ...

    def on_batch_complete(self) -> None:
        ...

    def on_privilege_boundary(self, descriptions: List[str]) -> None:
        """Antes del lote privilegiado: qué se va a ejecutar con privilegios."""
        ...


class ConfirmCallback(Protocol):
    """Protocolo: confirmación del usuario."""
    def confirm(self, prompt: str) -> bool:
        ...
