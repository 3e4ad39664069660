"""
Clasificador de privilegios: decide, a partir de la allowlist del documento,
qué recursos requieren elevación.

Función pura: nunca inspecciona el sistema y nunca falla; tipos desconocidos → False.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable

from puesto.core.project.kinds import PACKAGE_KINDS, PREFERENCE


@dataclass(frozen=True)
class PrivilegeClassifier:
    """Allowlist de paquetes y preferencias (domain.key) que requieren privilegios."""
    privileged_packages: FrozenSet[str] = field(default_factory=frozenset)
    privileged_preferences: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_lists(cls, packages: Iterable[str] = (), preferences: Iterable[str] = ()) -> "PrivilegeClassifier":
        return cls(frozenset(packages), frozenset(preferences))

    def requires_privilege(self, kind: str, resource_id: str) -> bool:
        return requires_privilege(kind, resource_id, self)


NO_PRIVILEGE = PrivilegeClassifier()


def requires_privilege(kind: str, resource_id: str, config: PrivilegeClassifier) -> bool:
    """
    Indica si un recurso requiere privilegios elevados

    Args:
        kind: Tipo de recurso (formula, cask, preference...)
        resource_id: Identificador del recurso
        config: Allowlist de privilegios

    Returns:
        True si el recurso está en la allowlist de su familia
    """
    if kind in PACKAGE_KINDS:
        return resource_id in config.privileged_packages
    if kind == PREFERENCE:
        return resource_id in config.privileged_preferences
    return False
