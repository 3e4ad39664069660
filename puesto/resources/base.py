"""
Base de los recursos que leen y escriben a través de herramientas externas.
"""

from typing import Optional, Sequence, Tuple

from puesto.core.errors import ToolMissingError, UnsupportedError, classify_tool_error
from puesto.core.infra.base import BaseResource
from puesto.core.infra.contracts import ApplyContext, CommandRunner
from puesto.core.runtime.state import CommandOutput
from puesto.system.commands import SubprocessRunner


class CommandResource(BaseResource):
    """Recurso respaldado por comandos: lecturas directas, escrituras con o sin sudo."""

    def __init__(self, id: str, description: str = "", runner: Optional[CommandRunner] = None,
                 privileged: bool = False, restarts: Tuple[str, ...] = ()):
        super().__init__(id, description, privileged=privileged, restarts=restarts)
        self.runner = runner or SubprocessRunner()

    def _read(self, argv: Sequence[str]) -> CommandOutput:
        """Lectura sin efectos; sin la herramienta, el tipo no está soportado."""
        try:
            return self.runner.run(list(argv))
        except ToolMissingError as e:
            raise UnsupportedError(self.kind, f"{self.kind}: falta la herramienta '{e.tool}'") from None

    def _write(self, ctx: ApplyContext, argv: Sequence[str]) -> CommandOutput:
        """Ejecuta un comando mutante, a través de sudo si el recurso es privilegiado."""
        argv = list(argv)
        if self.privileged:
            return ctx.require_privilege().run(argv[0], argv[1:])
        return self.runner.run(argv)

    def _write_checked(self, ctx: ApplyContext, argv: Sequence[str], name: str) -> CommandOutput:
        """Como _write, pero traduce un código de salida distinto de cero a un error tipado."""
        out = self._write(ctx, argv)
        if not out.success:
            raise classify_tool_error(out.stderr, name, list(argv))
        return out
