"""
Loader del documento de configuración.
Carga YAML, lo valida con los modelos Pydantic y construye los recursos.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import yaml
from pydantic import ValidationError
from rich.console import Console

from puesto.core.errors import InvalidConfigError
from puesto.core.infra.contracts import CommandRunner, Resource
from puesto.core.project.classifier import PrivilegeClassifier
from puesto.core.project.models import ConfigDocument, unknown_fields
from puesto.core.project.validator import ensure_unique, validate_document
from puesto.core.retry import RetryPolicy
from puesto.declarative.paths import expand_path
from puesto.resources import (
    DockAppResource,
    DockFolderResource,
    FileHandlerResource,
    PackageResource,
    PreferenceResource,
    PreferenceType,
    ServiceResource,
    SymlinkResource,
)
from puesto.resources.preferences import DOMAIN_OWNERS
from puesto.system.commands import SubprocessRunner

logger = logging.getLogger(__name__)

DOCK_SERVICE = "Dock"


@dataclass
class Workspace:
    """Documento cargado y los recursos que describe."""
    document: ConfigDocument
    resources: List[Resource]
    classifier: PrivilegeClassifier
    services: List[str] = field(default_factory=list)
    runner: CommandRunner = field(default_factory=SubprocessRunner)

    def service_resource(self, name: str) -> ServiceResource:
        """Fábrica de reinicios para post_actions."""
        return ServiceResource(name, runner=self.runner)


def _format_validation_error(e: ValidationError) -> Tuple[str, str]:
    first = e.errors()[0]
    where = ".".join(str(part) for part in first.get("loc", ())) or "documento"
    why = first.get("msg", str(e))
    if len(e.errors()) > 1:
        why += f" (y {len(e.errors()) - 1} error(es) más)"
    return where, why


def parse_document(data: object, source: str = "documento", console: Optional[Console] = None) -> ConfigDocument:
    """
    Valida un documento ya deserializado

    Args:
        data: Resultado de yaml.safe_load
        source: Nombre del origen (para los mensajes)
        console: Console de Rich para avisos

    Returns:
        ConfigDocument validado

    Raises:
        InvalidConfigError: si falta un campo obligatorio o hay tipos inválidos
    """
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidConfigError(source, "el documento debe ser un mapa YAML")
    try:
        doc = ConfigDocument(**data)
    except ValidationError as e:
        where, why = _format_validation_error(e)
        raise InvalidConfigError(where, why) from None

    for key in unknown_fields(doc):
        logger.warning("Campo desconocido ignorado: %s", key)
        if console:
            console.print(f"[yellow]⚠️ Campo desconocido ignorado: {key}[/yellow]")

    errors = validate_document(doc)
    if errors:
        raise InvalidConfigError(source, "; ".join(errors))
    return doc


def load_document(path: Path, console: Optional[Console] = None) -> ConfigDocument:
    """Lee y valida el YAML de configuración."""
    if not path.exists():
        raise InvalidConfigError(str(path), "el archivo no existe")
    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidConfigError(str(path), f"YAML inválido: {e}") from None
    except OSError as e:
        raise InvalidConfigError(str(path), f"no se pudo leer: {e}") from None
    return parse_document(data, str(path), console)


def build_classifier(doc: ConfigDocument) -> PrivilegeClassifier:
    """Allowlist del documento más las entradas marcadas con privileged: true."""
    packages = list(doc.privilege_allowlist.packages)
    packages += [p.name for p in doc.packages if p.privileged]
    preferences = list(doc.privilege_allowlist.preferences)
    preferences += [p.id for p in doc.preferences if p.privileged]
    return PrivilegeClassifier.from_lists(packages, preferences)


def _domain_restarts(doc: ConfigDocument) -> Tuple[Set[str], Dict[str, List[str]]]:
    declared = set()
    owners: Dict[str, List[str]] = {}
    for domain, service in DOMAIN_OWNERS.items():
        owners.setdefault(domain, []).append(service)
    for entry in doc.service_entries():
        declared.add(entry.name)
        for domain in entry.domains:
            owners.setdefault(domain, [])
            if entry.name not in owners[domain]:
                owners[domain].append(entry.name)
    return declared, owners


def build_resources(
    doc: ConfigDocument,
    runner: Optional[CommandRunner] = None,
    classifier: Optional[PrivilegeClassifier] = None,
) -> List[Resource]:
    """
    Construye los recursos en orden de documento

    Args:
        doc: Documento validado
        runner: CommandRunner compartido (por defecto, procesos reales)
        classifier: Clasificador de privilegios (por defecto, el del documento)

    Returns:
        Lista de recursos; (kind, id) es único

    Raises:
        InvalidConfigError: valores incompatibles, rutas inválidas o duplicados
    """
    runner = runner or SubprocessRunner()
    classifier = classifier or build_classifier(doc)
    declared, owners = _domain_restarts(doc)
    locations = doc.locations
    retry = RetryPolicy(
        attempts=doc.retry.attempts,
        base_delay=doc.retry.base_delay,
        backoff=doc.retry.backoff,
        max_delay=doc.retry.max_delay,
    )

    def restarts_for(domain: str) -> Tuple[str, ...]:
        # Solo se encolan servicios declarados en `services`
        return tuple(s for s in owners.get(domain, []) if s in declared)

    dock_restarts = (DOCK_SERVICE,) if DOCK_SERVICE in declared else ()
    resources: List[Resource] = []

    for entry in doc.packages:
        resources.append(PackageResource(
            entry.kind,
            entry.name,
            runner=runner,
            privileged=classifier.requires_privilege(entry.kind, entry.name),
            retry=retry,
        ))

    for i, entry in enumerate(doc.preferences):
        try:
            resources.append(PreferenceResource(
                entry.domain,
                entry.key,
                PreferenceType(entry.type),
                entry.value,
                runner=runner,
                privileged=classifier.requires_privilege("preference", entry.id),
                restarts=restarts_for(entry.domain),
            ))
        except (TypeError, ValueError) as e:
            raise InvalidConfigError(f"preferences[{i}].value", str(e)) from None

    for i, entry in enumerate(doc.symlinks):
        where = f"symlinks[{i}]"
        # Rutas relativas: respecto del directorio actual, fijadas al cargar
        resources.append(SymlinkResource(
            os.path.abspath(expand_path(entry.source, locations, where)),
            os.path.abspath(expand_path(entry.target, locations, where)),
            force=entry.force,
        ))

    for entry in doc.handlers:
        resources.append(FileHandlerResource(entry.bundle_id, entry.uti, runner=runner))

    for i, app in enumerate(doc.dock.apps):
        resources.append(DockAppResource(
            expand_path(app.path, locations, f"dock.apps[{i}]"),
            position=app.position,
            runner=runner,
            restarts=dock_restarts,
        ))

    for i, folder in enumerate(doc.dock.folders):
        resources.append(DockFolderResource(
            expand_path(folder.path, locations, f"dock.folders[{i}]"),
            view=folder.view,
            display=folder.display,
            sort=folder.sort,
            runner=runner,
            restarts=dock_restarts,
        ))

    ensure_unique((r.kind, r.id) for r in resources)
    return resources


def load_workspace(
    path: Path,
    runner: Optional[CommandRunner] = None,
    console: Optional[Console] = None,
) -> Workspace:
    """Carga el documento y construye todo lo necesario para status/diff/apply."""
    doc = load_document(path, console)
    runner = runner or SubprocessRunner()
    classifier = build_classifier(doc)
    resources = build_resources(doc, runner, classifier)
    logger.debug("%d recursos cargados desde %s", len(resources), path)
    return Workspace(
        document=doc,
        resources=resources,
        classifier=classifier,
        services=[s.name for s in doc.service_entries()],
        runner=runner,
    )
