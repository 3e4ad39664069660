"""
Expansión de rutas: ~, variables de entorno y ${locations.NOMBRE}.

La sustitución de locations es recursiva pero acotada, para cortar ciclos.
"""

import os
import re
from typing import Dict

from puesto.core.errors import InvalidConfigError

LOCATION_RE = re.compile(r"\$\{locations\.([^}]+)\}")
MAX_DEPTH = 8


def expand_locations(value: str, locations: Dict[str, str], where: str = "locations") -> str:
    """
    Sustituye ${locations.NOMBRE} hasta MAX_DEPTH niveles

    Args:
        value: Cadena a expandir
        locations: Mapa nombre → ruta del documento
        where: Ubicación en el documento (para el mensaje de error)

    Returns:
        Cadena sin referencias a locations

    Raises:
        InvalidConfigError: variable no definida o anidamiento demasiado profundo
    """
    def _sub(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in locations:
            raise InvalidConfigError(where, f"variable no definida: locations.{name}")
        return locations[name]

    for _ in range(MAX_DEPTH):
        if not LOCATION_RE.search(value):
            return value
        value = LOCATION_RE.sub(_sub, value)

    if LOCATION_RE.search(value):
        raise InvalidConfigError(where, f"expansión de locations demasiado profunda (¿ciclo?): {value}")
    return value


def expand_path(value: str, locations: Dict[str, str], where: str = "locations") -> str:
    """Expande locations, variables de entorno y ~, en ese orden."""
    value = expand_locations(value, locations, where)
    return os.path.expanduser(os.path.expandvars(value))
