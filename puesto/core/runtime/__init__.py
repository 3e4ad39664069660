"""
Runtime: valores de estado y resolución de la ruta de configuración.

Nada de lo que hay aquí se persiste; el único estado entre invocaciones es la propia máquina.
"""

from puesto.core.runtime.resolver import config_dir, config_path
from puesto.core.runtime.state import (
    ApplyResult,
    CommandOutput,
    ExecuteSummary,
    FailureRecord,
    OutcomeKind,
    ResourceState,
    StateKind,
)

__all__ = [
    "config_dir",
    "config_path",
    "ApplyResult",
    "CommandOutput",
    "ExecuteSummary",
    "FailureRecord",
    "OutcomeKind",
    "ResourceState",
    "StateKind",
]
