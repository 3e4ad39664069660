"""
Identificadores estables (visibles para el usuario) de los tipos de recurso.
"""

FORMULA = "formula"
CASK = "cask"
TAP = "tap"
STORE_APP = "store-app"
EDITOR_EXTENSION = "editor-extension"
CLI_EXTENSION = "cli-extension"
NODE_GLOBAL = "node-global"
PREFERENCE = "preference"
SYMLINK = "symlink"
SERVICE = "service"
FILE_HANDLER = "file-handler"
DOCK_APP = "dock-app"
DOCK_FOLDER = "dock-folder"

PACKAGE_KINDS = frozenset({
    FORMULA, CASK, TAP, STORE_APP, EDITOR_EXTENSION, CLI_EXTENSION, NODE_GLOBAL,
})

ALL_KINDS = PACKAGE_KINDS | {PREFERENCE, SYMLINK, SERVICE, FILE_HANDLER, DOCK_APP, DOCK_FOLDER}

# Alias de --target; cada uno se resuelve a un conjunto de tipos
KIND_ALIASES = {
    "package": PACKAGE_KINDS,
    "packages": PACKAGE_KINDS,
    "defaults": frozenset({PREFERENCE}),
    "preferences": frozenset({PREFERENCE}),
    "symlinks": frozenset({SYMLINK}),
    "services": frozenset({SERVICE}),
    "handlers": frozenset({FILE_HANDLER}),
    "dock": frozenset({DOCK_APP, DOCK_FOLDER}),
}


def resolve_kinds(name: str):
    """Conjunto de tipos que designa `name` (alias o tipo exacto), o None si no es un tipo."""
    if name in KIND_ALIASES:
        return KIND_ALIASES[name]
    if name in ALL_KINDS:
        return frozenset({name})
    return None
