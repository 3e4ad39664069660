"""Ejecución de procesos hijo (subprocess simulado)."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from puesto.core.errors import ToolMissingError
from puesto.system.commands import SubprocessRunner, run_command


def test_run_command_captures_output():
    fake = SimpleNamespace(returncode=0, stdout="ok\n", stderr="")
    with patch("puesto.system.commands.subprocess.run", return_value=fake) as run:
        out = run_command(["brew", "tap"])
    assert out.success
    assert out.stdout == "ok\n"
    run.assert_called_once_with(["brew", "tap"], capture_output=True, text=True, timeout=None, check=False)


def test_run_command_reports_exit_code():
    fake = SimpleNamespace(returncode=1, stdout=None, stderr="Error: nope\n")
    with patch("puesto.system.commands.subprocess.run", return_value=fake):
        out = run_command(["brew", "install", "nope"])
    assert not out.success
    assert out.stdout == ""
    assert out.stderr_tail() == "Error: nope"


def test_missing_binary_raises_tool_missing():
    with patch("puesto.system.commands.subprocess.run", side_effect=FileNotFoundError()):
        with pytest.raises(ToolMissingError) as exc:
            SubprocessRunner().run(["dockutil", "--add", "/Applications/Safari.app"])
    assert exc.value.tool == "dockutil"


def test_uncaptured_run_inherits_streams():
    fake = SimpleNamespace(returncode=0, stdout=None, stderr=None)
    with patch("puesto.system.commands.subprocess.run", return_value=fake) as run:
        SubprocessRunner().run(["sudo", "-v"], capture=False)
    assert run.call_args.kwargs["capture_output"] is False
