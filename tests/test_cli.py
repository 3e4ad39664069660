"""CLI (typer) con runner falso: verbos y códigos de salida."""

import importlib
import textwrap

import pytest
from typer.testing import CliRunner

from puesto.cli.app import app
from puesto.declarative.loader import load_workspace
from tests.conftest import FakeRunner, brew_json

# puesto.cli reexporta el objeto Typer con el mismo nombre que el módulo
app_module = importlib.import_module("puesto.cli.app")
cli = CliRunner()


@pytest.fixture
def fake(monkeypatch):
    fake_runner = FakeRunner()

    def _load(path, console=None):
        return load_workspace(path, runner=fake_runner, console=console)

    monkeypatch.setattr(app_module, "load_workspace", _load)
    return fake_runner


def config(tmp_path, text):
    path = tmp_path / "puesto.yaml"
    path.write_text(textwrap.dedent(text))
    return path


RIPGREP = """
packages:
  - {kind: formula, name: ripgrep}
"""


def test_missing_config_exits_2(tmp_path, fake):
    result = cli.invoke(app, ["-c", str(tmp_path / "nope.yaml"), "status"])
    assert result.exit_code == 2
    assert "existe" in result.output


def test_invalid_config_exits_2_for_apply(tmp_path, fake):
    path = config(tmp_path, "packages:\n  - {kind: formula}\n")
    result = cli.invoke(app, ["-c", str(path), "apply", "--yes"])
    assert result.exit_code == 2
    assert fake.calls == []


def test_status_reports_additions(tmp_path, fake):
    fake.on("brew", "info", stdout=brew_json("formula", False))
    result = cli.invoke(app, ["-c", str(config(tmp_path, RIPGREP)), "status"])
    assert result.exit_code == 0
    assert "Altas" in result.output


def test_status_clean(tmp_path, fake):
    fake.on("brew", "info", stdout=brew_json("formula", True))
    result = cli.invoke(app, ["-c", str(config(tmp_path, RIPGREP)), "status"])
    assert result.exit_code == 0
    assert "Sin drift" in result.output


def test_diff_lists_resources_and_survives_inspection_errors(tmp_path, fake):
    fake.on("brew", "info", returncode=1, stderr="curl: (6) Could not resolve host")
    result = cli.invoke(app, ["-c", str(config(tmp_path, RIPGREP)), "diff"])
    assert result.exit_code == 0
    assert "ripgrep" in result.output
    assert "formula" in result.output


def test_apply_installs_and_exits_0(tmp_path, fake):
    fake.on("brew", "info", stdout=brew_json("formula", False))
    result = cli.invoke(app, ["-c", str(config(tmp_path, RIPGREP)), "apply", "--yes"])
    assert result.exit_code == 0, result.output
    assert ["brew", "install", "--formula", "ripgrep"] in fake.calls
    assert "Creados" in result.output


def test_apply_failure_exits_1(tmp_path, fake):
    fake.on("brew", "info", stdout=brew_json("formula", False))
    fake.on("brew", "install", returncode=1, stderr="Error: No available formula with the name \"ripgrep\".")
    result = cli.invoke(app, ["-c", str(config(tmp_path, RIPGREP)), "apply", "--yes"])
    assert result.exit_code == 1
    assert "NotFound" in result.output


def test_apply_dry_run_is_pure(tmp_path, fake):
    fake.on("brew", "info", stdout=brew_json("formula", False))
    result = cli.invoke(app, ["-c", str(config(tmp_path, RIPGREP)), "apply", "--dry-run"])
    assert result.exit_code == 0
    assert fake.mutating_calls() == []
    assert "dry-run" in result.output


def test_apply_privilege_refused_exits_3(tmp_path, fake):
    fake.on("brew", "info", stdout=brew_json("cask", False))
    fake.on("sudo", "-v", returncode=1)
    path = config(tmp_path, """
    packages:
      - {kind: cask, name: docker, privileged: true}
    """)
    result = cli.invoke(app, ["-c", str(path), "apply", "--yes"])
    assert result.exit_code == 3
    assert not any(c[:2] == ["sudo", "brew"] for c in fake.calls)


def test_apply_target_filters_everything_out(tmp_path, fake):
    fake.on("brew", "info", stdout=brew_json("formula", False))
    result = cli.invoke(app, ["-c", str(config(tmp_path, RIPGREP)), "apply", "--yes", "--target", "symlinks"])
    assert result.exit_code == 0
    assert "Nada que aplicar" in result.output
    assert fake.mutating_calls() == []


def test_jobs_must_be_positive(tmp_path, fake):
    result = cli.invoke(app, ["-c", str(config(tmp_path, RIPGREP)), "apply", "--jobs", "0"])
    assert result.exit_code != 0
    assert fake.calls == []


def test_config_from_environment(tmp_path, fake, monkeypatch):
    fake.on("brew", "info", stdout=brew_json("formula", True))
    monkeypatch.setenv("PUESTO_CONFIG", str(config(tmp_path, RIPGREP)))
    result = cli.invoke(app, ["status"])
    assert result.exit_code == 0


def test_version():
    result = cli.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "puesto" in result.output
