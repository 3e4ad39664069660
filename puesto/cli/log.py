"""
Configuración de logging para la CLI (RichHandler sobre stderr).
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def configure_logging(verbose: bool = False, force: bool = False) -> None:
    """WARNING por defecto; DEBUG con --verbose (incluye cada comando externo)."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=force,
    )
