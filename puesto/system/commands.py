"""
Módulo Commands - Ejecución de comandos externos

Cada llamada es un único proceso hijo; no se mantienen subprocesos vivos.
No se imponen timeouts: las herramientas externas pueden bloquearse (limitación conocida).
"""

import logging
import subprocess
from typing import Optional, Sequence

from puesto.core.errors import ToolMissingError
from puesto.core.runtime.state import CommandOutput

logger = logging.getLogger(__name__)


def run_command(
    command: Sequence[str],
    capture_output: bool = True,
    timeout: Optional[float] = None,
) -> CommandOutput:
    """
    Ejecuta un comando del sistema

    Args:
        command: Lista con comando y argumentos
        capture_output: Si capturar stdout/stderr (si no, se heredan los streams)
        timeout: Timeout en segundos (None = sin límite)

    Returns:
        CommandOutput con stdout, stderr y código de salida

    Raises:
        ToolMissingError: si el ejecutable no existe
    """
    argv = [str(part) for part in command]
    logger.debug("$ %s", " ".join(argv))
    try:
        # run() lee la salida completa antes de esperar al hijo
        result = subprocess.run(
            argv,
            capture_output=capture_output,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError:
        raise ToolMissingError(argv[0]) from None

    if result.returncode != 0:
        logger.debug("%s terminó con código %d", argv[0], result.returncode)
    return CommandOutput(
        stdout=result.stdout or "",
        stderr=result.stderr or "",
        returncode=result.returncode,
    )


class SubprocessRunner:
    """CommandRunner que lanza procesos reales."""

    def run(self, argv: Sequence[str], capture: bool = True) -> CommandOutput:
        return run_command(argv, capture_output=capture)
