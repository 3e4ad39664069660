"""
Planificación: genera un plan de ejecución (qué aplicar) sin ejecutar.

Lógica pura: entrada = diffs + clasificador; salida = plan particionado en
lote sin privilegios y lote privilegiado, más los reinicios de servicios
(post_actions) que aportan los recursos. La ejecución la hace el executor.
"""

from dataclasses import dataclass, field
from typing import Callable, FrozenSet, Iterator, List, Optional, Tuple

from puesto.core.infra.contracts import Resource
from puesto.core.project.classifier import PrivilegeClassifier
from puesto.core.project.detector import ResourceDiff, is_privileged
from puesto.core.project.kinds import resolve_kinds


@dataclass
class ExecutionPlan:
    """Plan particionado: cada recurso aparece en exactamente un lote."""
    unprivileged: List[Resource] = field(default_factory=list)
    privileged: List[Resource] = field(default_factory=list)
    post_actions: List[str] = field(default_factory=list)

    def add_resource(self, resource: Resource, privileged: bool) -> None:
        if privileged:
            self.privileged.append(resource)
        else:
            self.unprivileged.append(resource)
        for service in getattr(resource, "restarts", ()):
            self.add_post_action(service)

    def add_post_action(self, service: str) -> None:
        """Añade un reinicio de servicio sin duplicados, conservando el orden."""
        if service not in self.post_actions:
            self.post_actions.append(service)

    def resources(self) -> Iterator[Resource]:
        yield from self.unprivileged
        yield from self.privileged

    @property
    def total_resources(self) -> int:
        return len(self.unprivileged) + len(self.privileged)

    @property
    def is_empty(self) -> bool:
        return self.total_resources == 0

    @property
    def has_privileged(self) -> bool:
        return bool(self.privileged)

    def filter(self, keep: Callable[[Resource], bool]) -> "ExecutionPlan":
        """Nuevo plan con los recursos que cumplen `keep`; respeta orden y lote."""
        unprivileged = [r for r in self.unprivileged if keep(r)]
        privileged = [r for r in self.privileged if keep(r)]
        contributed = {s for r in unprivileged + privileged for s in getattr(r, "restarts", ())}
        return ExecutionPlan(
            unprivileged=unprivileged,
            privileged=privileged,
            post_actions=[s for s in self.post_actions if s in contributed],
        )

    def filter_by_target(self, target: Optional[str]) -> "ExecutionPlan":
        """Filtra por una cadena `kind` o `kind.fragmento` (ver parse_target)."""
        if not target:
            return self
        kinds, fragment = parse_target(target)
        return self.filter(lambda r: matches_target(r, kinds, fragment))


def parse_target(target: str) -> Tuple[Optional[FrozenSet[str]], Optional[str]]:
    """
    Interpreta la cadena de --target

    Args:
        target: "kind", "kind.fragmento" o un fragmento de id suelto

    Returns:
        Tuple (tipos o None si no se especifica, fragmento o None)

    Solo se separa por el primer punto si el prefijo es un tipo o alias conocido;
    así "com.x.Y" se trata como fragmento y "defaults.com.x.Y" como preferencia.
    """
    target = target.strip()
    head, sep, rest = target.partition(".")
    kinds = resolve_kinds(head)
    if kinds is None:
        return None, target or None
    return kinds, (rest or None) if sep else None


def matches_target(resource: Resource, kinds: Optional[FrozenSet[str]], fragment: Optional[str]) -> bool:
    if kinds is not None and resource.kind not in kinds:
        return False
    if fragment is not None and fragment not in resource.id:
        return False
    return True


def build_plan(diffs: List[ResourceDiff], classifier: Optional[PrivilegeClassifier] = None) -> ExecutionPlan:
    """
    Convierte una lista de diffs en un plan de ejecución.
    No ejecuta nada.
    """
    plan = ExecutionPlan()
    for d in diffs:
        privileged = d.privileged or is_privileged(d.resource, classifier)
        plan.add_resource(d.resource, privileged)
    return plan
