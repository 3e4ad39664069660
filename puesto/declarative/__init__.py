"""
Sistema declarativo: documento YAML → recursos.
"""

from puesto.declarative.loader import Workspace, build_resources, load_document, load_workspace
from puesto.declarative.paths import expand_path

__all__ = ["Workspace", "build_resources", "load_document", "load_workspace", "expand_path"]
