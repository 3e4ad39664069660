"""
System: ejecución de procesos hijo y contexto de privilegios.
"""

from puesto.system.commands import SubprocessRunner, run_command
from puesto.system.privilege import PrivilegeContext, acquire_privilege

__all__ = ["SubprocessRunner", "run_command", "PrivilegeContext", "acquire_privilege"]
