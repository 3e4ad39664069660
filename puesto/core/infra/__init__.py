"""
Contratos y base para recursos.

Las variantes (paquetes, preferencias, enlaces, servicios...) implementan estos contratos;
el core no depende de ninguna variante concreta.
"""

from puesto.core.infra.contracts import (
    ApplyContext,
    CommandRunner,
    ConfirmCallback,
    ExecuteOptions,
    PrivilegeRunner,
    ProgressCallback,
    Resource,
)
from puesto.core.infra.base import AutoConfirm, AutoDecline, BaseResource, NoProgress

__all__ = [
    "ApplyContext",
    "CommandRunner",
    "ConfirmCallback",
    "ExecuteOptions",
    "PrivilegeRunner",
    "ProgressCallback",
    "Resource",
    "AutoConfirm",
    "AutoDecline",
    "BaseResource",
    "NoProgress",
]
