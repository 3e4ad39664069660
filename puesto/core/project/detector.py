"""
Detección de drift (diferencias entre estado deseado y actual).

Un diff existe si y solo si current_state != desired_state. Los fallos de
inspección no se descartan: generan un diff con estado actual UNKNOWN y el
error adjunto, para que el executor lo informe como fallo.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from puesto.core.errors import InspectionFailedError, PuestoError
from puesto.core.infra.contracts import Resource
from puesto.core.project.classifier import PrivilegeClassifier
from puesto.core.runtime.state import ResourceState, StateKind

logger = logging.getLogger(__name__)


@dataclass
class ResourceDiff:
    """Diferencia entre estado deseado y actual de un recurso."""
    resource_id: str
    kind: str
    description: str
    current: ResourceState
    desired: ResourceState
    privileged: bool
    resource: Resource
    error: Optional[PuestoError] = None

    @property
    def is_addition(self) -> bool:
        return self.current.kind == StateKind.ABSENT and self.desired.kind == StateKind.PRESENT

    @property
    def is_removal(self) -> bool:
        return self.current.kind == StateKind.PRESENT and self.desired.kind == StateKind.ABSENT

    @property
    def is_modification(self) -> bool:
        return not (self.is_addition or self.is_removal)

    @property
    def is_failing(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class DiffSummary:
    """Proyección barata sobre la lista de diffs."""
    additions: int = 0
    removals: int = 0
    modifications: int = 0
    privileged: int = 0
    failing: int = 0

    @classmethod
    def from_diffs(cls, diffs: Iterable[ResourceDiff]) -> "DiffSummary":
        additions = removals = modifications = privileged = failing = 0
        for d in diffs:
            if d.is_addition:
                additions += 1
            elif d.is_removal:
                removals += 1
            else:
                modifications += 1
            if d.privileged:
                privileged += 1
            if d.is_failing:
                failing += 1
        return cls(additions, removals, modifications, privileged, failing)

    @property
    def total(self) -> int:
        return self.additions + self.removals + self.modifications

    @property
    def has_changes(self) -> bool:
        return self.total > 0


def is_privileged(resource: Resource, classifier: Optional[PrivilegeClassifier]) -> bool:
    """Un recurso es privilegiado por su marca, su pista estática o el clasificador."""
    if getattr(resource, "privileged", False) or resource.privilege_hint:
        return True
    if classifier is None:
        return False
    return classifier.requires_privilege(resource.kind, resource.id)


def diff_resource(resource: Resource, classifier: Optional[PrivilegeClassifier] = None) -> Optional[ResourceDiff]:
    """Calcula el diff de un recurso, o None si ya está convergido."""
    desired = resource.desired_state()
    error: Optional[PuestoError] = None
    try:
        current = resource.current_state()
    except PuestoError as e:
        error = e
    except Exception as e:
        error = InspectionFailedError(resource.kind, str(e))

    if error is not None:
        logger.warning("No se pudo inspeccionar %s:%s: %s", resource.kind, resource.id, error)
        current = ResourceState.unknown()
    elif current == desired:
        return None

    return ResourceDiff(
        resource_id=resource.id,
        kind=resource.kind,
        description=resource.description,
        current=current,
        desired=desired,
        privileged=is_privileged(resource, classifier),
        resource=resource,
        error=error,
    )


def compute_diffs(
    resources: Iterable[Resource],
    classifier: Optional[PrivilegeClassifier] = None,
) -> List[ResourceDiff]:
    """
    Compara estado actual y deseado de cada recurso

    Args:
        resources: Recursos en orden de configuración
        classifier: Clasificador de privilegios (marca el flag privileged)

    Returns:
        Lista de diffs en el mismo orden que la entrada
    """
    out: List[ResourceDiff] = []
    for resource in resources:
        d = diff_resource(resource, classifier)
        if d is not None:
            out.append(d)
    return out


def group_by_kind(diffs: Iterable[ResourceDiff]) -> Dict[str, List[ResourceDiff]]:
    """Agrupa diffs por tipo de recurso conservando el orden."""
    groups: Dict[str, List[ResourceDiff]] = {}
    for d in diffs:
        groups.setdefault(d.kind, []).append(d)
    return groups
