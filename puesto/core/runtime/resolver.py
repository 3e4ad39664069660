"""
Resolución de la ruta del documento de configuración.

- config_dir(): directorio de configuración (PUESTO_CONFIG_DIR → XDG_CONFIG_HOME → ~/.config).
- config_path(): documento a cargar (--config → PUESTO_CONFIG → config_dir()/puesto.yaml).

El core NO lee el documento; solo expone estas rutas.
"""

import os
from pathlib import Path
from typing import Optional


CONFIG_FILENAME = "puesto.yaml"


def config_dir() -> Path:
    """
    Directorio de configuración de puesto.
    Resolución: PUESTO_CONFIG_DIR; si no, $XDG_CONFIG_HOME/puesto; si no, ~/.config/puesto.
    """
    explicit = os.environ.get("PUESTO_CONFIG_DIR", "").strip()
    if explicit:
        return Path(explicit).expanduser()

    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    if xdg:
        return Path(xdg).expanduser() / "puesto"

    return Path.home() / ".config" / "puesto"


def config_path(explicit: Optional[Path] = None) -> Path:
    """Ruta del documento de configuración (la opción de CLI tiene prioridad)."""
    if explicit is not None:
        return Path(explicit).expanduser()

    from_env = os.environ.get("PUESTO_CONFIG", "").strip()
    if from_env:
        return Path(from_env).expanduser()

    return config_dir() / CONFIG_FILENAME
