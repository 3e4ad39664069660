"""
Project: modelos, validación, diffs, clasificación, planificación y ejecución.

Lógica pura salvo el executor, que delega todo I/O en los recursos.
"""

from puesto.core.project.classifier import PrivilegeClassifier, requires_privilege
from puesto.core.project.detector import DiffSummary, ResourceDiff, compute_diffs, group_by_kind
from puesto.core.project.executor import execute
from puesto.core.project.models import ConfigDocument
from puesto.core.project.planner import ExecutionPlan, build_plan, parse_target
from puesto.core.project.validator import ensure_unique, validate_document

__all__ = [
    "PrivilegeClassifier",
    "requires_privilege",
    "DiffSummary",
    "ResourceDiff",
    "compute_diffs",
    "group_by_kind",
    "execute",
    "ConfigDocument",
    "ExecutionPlan",
    "build_plan",
    "parse_target",
    "ensure_unique",
    "validate_document",
]
