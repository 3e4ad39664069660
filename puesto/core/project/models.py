"""
Modelos del documento de configuración (agnósticos de interfaz y filesystem).

Las claves desconocidas se conservan en model_extra para avisar de ellas;
los campos obligatorios ausentes hacen fallar la validación.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from puesto.core.project.kinds import PACKAGE_KINDS

PreferenceTypeName = Literal["bool", "int", "float", "string"]


class _Section(BaseModel):
    model_config = ConfigDict(extra="allow")


class PackageEntry(_Section):
    kind: str = Field(..., description="Tipo de paquete (formula, cask, tap, store-app...)")
    name: str = Field(..., description="Nombre o identificador del paquete")
    privileged: bool = Field(False, description="Instalar con privilegios elevados")

    @field_validator("kind")
    @classmethod
    def _known_kind(cls, v: str) -> str:
        if v not in PACKAGE_KINDS:
            raise ValueError(f"tipo de paquete desconocido '{v}' (válidos: {', '.join(sorted(PACKAGE_KINDS))})")
        return v


class PreferenceEntry(_Section):
    domain: str = Field(..., description="Dominio de defaults (com.apple.finder, NSGlobalDomain...)")
    key: str = Field(..., description="Clave dentro del dominio")
    type: PreferenceTypeName = Field(..., description="Tipo del valor")
    value: Any = Field(..., description="Valor deseado")
    privileged: bool = Field(False, description="Escribir con privilegios elevados")

    @property
    def id(self) -> str:
        return f"{self.domain}.{self.key}"


class SymlinkEntry(_Section):
    source: str = Field(..., description="Ruta de origen (admite ~, $VAR y ${locations.X})")
    target: str = Field(..., description="Ruta del enlace")
    force: bool = Field(False, description="Respaldar en <target>.bak un archivo existente")


class ServiceEntry(_Section):
    name: str = Field(..., description="Proceso a reiniciar (killall)")
    domains: List[str] = Field(default_factory=list, description="Dominios de preferencias que lo disparan")


class PrivilegeAllowlist(_Section):
    packages: List[str] = Field(default_factory=list)
    preferences: List[str] = Field(default_factory=list, description="Entradas domain.key")


class HandlerEntry(_Section):
    bundle_id: str = Field(..., description="Bundle id de la aplicación")
    uti: str = Field(..., description="Tipo de archivo (UTI o extensión)")


class DockAppEntry(_Section):
    path: str
    position: Optional[int] = None


class DockFolderEntry(_Section):
    path: str
    view: str = "grid"
    display: str = "stack"
    sort: str = "dateadded"


class DockConfig(_Section):
    apps: List[DockAppEntry] = Field(default_factory=list)
    folders: List[DockFolderEntry] = Field(default_factory=list)


class RetryConfig(_Section):
    attempts: int = Field(5, ge=1)
    base_delay: float = Field(10.0, ge=0)
    backoff: float = Field(2.0, ge=1)
    max_delay: float = Field(300.0, ge=0)


class ConfigDocument(_Section):
    """Documento completo (puesto.yaml)."""
    locations: Dict[str, str] = Field(default_factory=dict, description="Variables de ruta")
    packages: List[PackageEntry] = Field(default_factory=list)
    preferences: List[PreferenceEntry] = Field(default_factory=list)
    symlinks: List[SymlinkEntry] = Field(default_factory=list)
    services: List[Union[str, ServiceEntry]] = Field(default_factory=list)
    privilege_allowlist: PrivilegeAllowlist = Field(default_factory=PrivilegeAllowlist)
    handlers: List[HandlerEntry] = Field(default_factory=list)
    dock: DockConfig = Field(default_factory=DockConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)

    def service_entries(self) -> List[ServiceEntry]:
        return [ServiceEntry(name=s) if isinstance(s, str) else s for s in self.services]


def unknown_fields(model: BaseModel, where: str = "") -> List[str]:
    """Rutas (a.b[0].c) de las claves desconocidas, recorriendo submodelos."""
    found: List[str] = []
    for key in (model.model_extra or {}):
        found.append(f"{where}.{key}" if where else key)
    for name in type(model).model_fields:
        value = getattr(model, name)
        path = f"{where}.{name}" if where else name
        if isinstance(value, BaseModel):
            found.extend(unknown_fields(value, path))
        elif isinstance(value, list):
            for i, item in enumerate(value):
                if isinstance(item, BaseModel):
                    found.extend(unknown_fields(item, f"{path}[{i}]"))
    return found
