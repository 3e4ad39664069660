"""
Variantes de recurso.

Todas implementan el contrato Resource de puesto.core.infra.contracts.
"""

from puesto.resources.dock import DockAppResource, DockFolderResource
from puesto.resources.handlers import FileHandlerResource
from puesto.resources.packages import TOOLS, PackageResource
from puesto.resources.preferences import PreferenceResource, PreferenceType
from puesto.resources.service import ServiceResource
from puesto.resources.symlink import SymlinkResource

__all__ = [
    "DockAppResource",
    "DockFolderResource",
    "FileHandlerResource",
    "PackageResource",
    "PreferenceResource",
    "PreferenceType",
    "ServiceResource",
    "SymlinkResource",
    "TOOLS",
]
