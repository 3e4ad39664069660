"""
Errores del motor de convergencia.

El core solo define excepciones y su clasificación; las capas (CLI) se encargan
del formato de salida. Cada error lleva campos estructurados, no prosa, y dos
atributos de clasificación:

- retryable: solo NetworkError
- ignorable: solo AlreadyInstalledError
"""

import re
from typing import List, Optional


def stderr_tail(stderr: str, lines: int = 5) -> str:
    """Devuelve las últimas líneas no vacías de una salida de error."""
    kept = [line.rstrip() for line in (stderr or "").splitlines() if line.strip()]
    return "\n".join(kept[-lines:])


class PuestoError(Exception):
    """Error base de puesto."""

    kind: str = "Error"
    retryable: bool = False
    ignorable: bool = False
    description: str = "Error inesperado"
    advice: str = "Revisa la salida detallada con --verbose"

    def __init__(self, message: str = ""):
        super().__init__(message or self.description)
        self.message = message or self.description


class NetworkError(PuestoError):
    """Fallo de red al descargar o resolver (reintentable)."""

    kind = "Network"
    retryable = True
    description = "Error de red"
    advice = "Comprueba la conexión a internet y vuelve a intentarlo"


class NotFoundError(PuestoError):
    """El paquete o recurso no existe en su registro."""

    kind = "NotFound"
    description = "No encontrado"
    advice = "Revisa el nombre en el documento de configuración"

    def __init__(self, name: str, message: str = ""):
        super().__init__(message or f"{name} no encontrado")
        self.name = name


class ConflictError(PuestoError):
    """Conflicto con otro paquete o dependencia."""

    kind = "Conflict"
    description = "Conflicto de dependencias"
    advice = "Resuelve el conflicto manualmente y vuelve a aplicar"


class PermissionDeniedError(PuestoError):
    """Permiso denegado sobre una ruta."""

    kind = "Permission"
    description = "Permiso denegado"
    advice = "Añade el recurso a privilege_allowlist o corrige los permisos de la ruta"

    def __init__(self, path: str, message: str = ""):
        super().__init__(message or f"permiso denegado: {path}")
        self.path = path


class AlreadyInstalledError(PuestoError):
    """El paquete ya estaba instalado (ignorable)."""

    kind = "AlreadyInstalled"
    ignorable = True
    description = "Ya instalado"
    advice = "No se requiere ninguna acción"

    def __init__(self, name: str):
        super().__init__(f"{name} ya está instalado")
        self.name = name


class ToolMissingError(PuestoError):
    """La herramienta externa no está disponible en el PATH."""

    kind = "ToolMissing"
    description = "Herramienta no disponible"
    advice = "Instala la herramienta o elimina los recursos que la necesitan"

    def __init__(self, tool: str):
        super().__init__(f"comando no encontrado: {tool}")
        self.tool = tool


class InspectionFailedError(PuestoError):
    """No se pudo leer el estado actual de un recurso."""

    kind = "InspectionFailed"
    description = "Fallo al inspeccionar el estado actual"
    advice = "Ejecuta 'puesto diff --verbose' para ver el comando que falló"

    def __init__(self, resource_kind: str, cause: str):
        super().__init__(f"{resource_kind}: {cause}")
        self.resource_kind = resource_kind
        self.cause = cause


class InvalidConfigError(PuestoError):
    """Documento de configuración inválido (archivo faltante, formato, campos)."""

    kind = "InvalidConfig"
    description = "Configuración inválida"
    advice = "Corrige el documento de configuración"

    def __init__(self, where: str, why: str):
        super().__init__(f"{where}: {why}")
        self.where = where
        self.why = why


class PrivilegeDeniedError(PuestoError):
    """No se pudieron obtener credenciales elevadas."""

    kind = "PrivilegeDenied"
    description = "Privilegios denegados"
    advice = "Vuelve a ejecutar e introduce la contraseña de sudo"


class NotValidatedError(PuestoError):
    """El contexto de privilegios ya no es válido."""

    kind = "NotValidated"
    description = "Contexto de privilegios no validado"
    advice = "Vuelve a ejecutar apply para adquirir privilegios de nuevo"


class CommandFailedError(PuestoError):
    """Un comando externo terminó con error no clasificado."""

    kind = "CommandFailed"
    description = "El comando falló"

    def __init__(self, cmd: List[str], stderr: str = "", message: str = ""):
        self.cmd = list(cmd)
        self.stderr_tail = stderr_tail(stderr)
        super().__init__(message or f"{' '.join(self.cmd)} falló")


class UnsupportedError(PuestoError):
    """El entorno no soporta la funcionalidad pedida."""

    kind = "Unsupported"
    description = "No soportado en este entorno"
    advice = "Instala la herramienta necesaria o elimina estos recursos"

    def __init__(self, feature: str, message: str = ""):
        super().__init__(message or f"{feature} no soportado")
        self.feature = feature


# Tabla fija de patrones (sobre stderr en minúsculas); el orden importa
_NETWORK_PATTERNS = (
    "curl", "could not resolve", "connection refused", "timed out", "network",
    "ssl", "certificate", "failed to download", "sha256 mismatch",
)
_NOT_FOUND_PATTERNS = (
    "no available formula", "no formulae found", "no cask with this name",
    "unknown", "no such keg", "couldn't find",
)
_ALREADY_INSTALLED_PATTERNS = ("already installed", "is already an installed")
_CONFLICT_PATTERNS = ("conflicts with", "conflict", "depends on", "dependency")
_PERMISSION_PATTERNS = ("permission denied", "operation not permitted", "cannot write")

_PATH_RE = re.compile(r"(/[^\s:'\"]+)")


def _first_line(stderr: str) -> str:
    for line in (stderr or "").splitlines():
        if line.strip():
            return line.strip()
    return ""


def classify_tool_error(stderr: str, name: str, cmd: Optional[List[str]] = None) -> PuestoError:
    """
    Traduce la salida de error de una herramienta a un error tipado

    Args:
        stderr: Salida de error del comando
        name: Nombre del paquete/recurso afectado
        cmd: Comando ejecutado (para CommandFailed)

    Returns:
        Instancia de PuestoError (no se lanza)
    """
    lowered = (stderr or "").lower()
    if any(p in lowered for p in _NETWORK_PATTERNS):
        return NetworkError(_first_line(stderr))
    if any(p in lowered for p in _NOT_FOUND_PATTERNS):
        return NotFoundError(name, _first_line(stderr))
    if any(p in lowered for p in _ALREADY_INSTALLED_PATTERNS):
        return AlreadyInstalledError(name)
    if any(p in lowered for p in _CONFLICT_PATTERNS):
        return ConflictError(_first_line(stderr))
    if any(p in lowered for p in _PERMISSION_PATTERNS):
        match = _PATH_RE.search(stderr)
        return PermissionDeniedError(match.group(1) if match else name, _first_line(stderr))
    return CommandFailedError(cmd or [name], stderr)
