"""
Módulo Privilege - Contexto de privilegios elevados (sudo)

El contexto es un testigo de credenciales válidas: se adquiere una vez alrededor
del lote privilegiado y se invalida (sudo -k) en todas las salidas, incluidas
excepciones e interrupciones.
"""

import logging
from typing import Optional, Sequence

from rich.console import Console

from puesto.core.errors import NotValidatedError, PrivilegeDeniedError, ToolMissingError
from puesto.core.infra.contracts import CommandRunner
from puesto.core.runtime.state import CommandOutput
from puesto.system.commands import SubprocessRunner

logger = logging.getLogger(__name__)

SUDO = "sudo"


class PrivilegeContext:
    """Contexto de privilegios; usar como context manager."""

    def __init__(self, runner: CommandRunner):
        self._runner = runner
        self._valid = True

    @classmethod
    def acquire(
        cls,
        reason: str,
        runner: Optional[CommandRunner] = None,
        console: Optional[Console] = None,
    ) -> "PrivilegeContext":
        """
        Pide credenciales de forma interactiva

        Args:
            reason: Motivo que se muestra al usuario
            runner: CommandRunner (por defecto, procesos reales)
            console: Console de Rich para salida

        Returns:
            PrivilegeContext válido

        Raises:
            PrivilegeDeniedError: si la validación falla o se cancela
        """
        runner = runner or SubprocessRunner()
        console = console or Console()
        console.print(f"[yellow]🔐 {reason}[/yellow]")
        console.print("[dim]Se requiere sudo (puede pedir contraseña)[/dim]")
        try:
            # Sin captura: sudo necesita la terminal para pedir la contraseña
            out = runner.run([SUDO, "-v"], capture=False)
        except ToolMissingError as e:
            raise PrivilegeDeniedError(str(e)) from None
        if not out.success:
            raise PrivilegeDeniedError("la validación de sudo falló")
        logger.debug("Privilegios adquiridos: %s", reason)
        return cls(runner)

    @staticmethod
    def is_valid(runner: Optional[CommandRunner] = None) -> bool:
        """Comprobación no interactiva de las credenciales cacheadas."""
        runner = runner or SubprocessRunner()
        try:
            return runner.run([SUDO, "-n", "true"]).success
        except ToolMissingError:
            return False

    @property
    def active(self) -> bool:
        return self._valid

    def run(self, cmd: str, args: Sequence[str]) -> CommandOutput:
        """Ejecuta `sudo cmd args...`."""
        if not self._valid:
            raise NotValidatedError("el contexto de sudo ya fue liberado")
        return self._runner.run([SUDO, cmd, *args])

    def release(self) -> None:
        """Invalida las credenciales cacheadas (idempotente)."""
        if not self._valid:
            return
        self._valid = False
        try:
            self._runner.run([SUDO, "-k"])
        except ToolMissingError:
            logger.debug("sudo no disponible; no hay credenciales que invalidar")
        logger.debug("Privilegios liberados")

    def __enter__(self) -> "PrivilegeContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def acquire_privilege(
    reason: str,
    runner: Optional[CommandRunner] = None,
    console: Optional[Console] = None,
) -> PrivilegeContext:
    """Fábrica para el executor; la CLI fija runner y console con functools.partial."""
    return PrivilegeContext.acquire(reason, runner=runner, console=console)
