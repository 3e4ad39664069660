"""
Core: motor de convergencia.

ENFORCEMENT (arquitectura limpia):
- Este paquete NO debe importar: puesto.cli, puesto.resources, puesto.declarative ni puesto.system.
- Permitido: typing, dataclasses, concurrent.futures, pydantic, puesto.core.*.
- Los recursos y la CLI importan desde core; nunca al revés.
"""

from puesto.core.errors import InvalidConfigError, PrivilegeDeniedError, PuestoError

__all__ = ["PuestoError", "InvalidConfigError", "PrivilegeDeniedError"]
