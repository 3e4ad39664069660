"""
Validación del documento de configuración (lógica pura).

Sin I/O; solo reglas sobre estructuras de datos.
"""

from typing import Iterable, List, Tuple

from puesto.core.errors import InvalidConfigError
from puesto.core.project.models import ConfigDocument


def validate_preference_id(resource_id: str) -> None:
    """Valida que una entrada de allowlist tenga la forma domain.key."""
    domain, sep, key = resource_id.rpartition(".")
    if not sep or not domain or not key:
        raise InvalidConfigError("privilege_allowlist.preferences", f"se esperaba 'domain.key': {resource_id!r}")


def find_duplicates(identities: Iterable[Tuple[str, str]]) -> List[Tuple[str, str]]:
    """Pares (kind, id) repetidos, en orden de primera repetición."""
    seen = set()
    dupes: List[Tuple[str, str]] = []
    for identity in identities:
        if identity in seen and identity not in dupes:
            dupes.append(identity)
        seen.add(identity)
    return dupes


def validate_document(doc: ConfigDocument) -> List[str]:
    """
    Valida reglas que pydantic no expresa.
    Devuelve lista de mensajes de error; si vacía, es válido.
    """
    errors: List[str] = []
    for entry in doc.privilege_allowlist.preferences:
        try:
            validate_preference_id(entry)
        except InvalidConfigError as e:
            errors.append(str(e))

    for i, entry in enumerate(doc.preferences):
        if not entry.domain.strip() or not entry.key.strip():
            errors.append(f"preferences[{i}]: domain y key no pueden estar vacíos")

    for name in doc.locations:
        if not name or "." in name or "}" in name:
            errors.append(f"locations: nombre de variable inválido {name!r}")
    return errors


def ensure_unique(identities: Iterable[Tuple[str, str]]) -> None:
    """Falla si algún par (kind, id) aparece dos veces."""
    dupes = find_duplicates(identities)
    if dupes:
        listed = ", ".join(f"{kind}:{rid}" for kind, rid in dupes)
        raise InvalidConfigError("recursos", f"recursos duplicados: {listed}")
