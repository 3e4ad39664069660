"""Recurso de preferencia (defaults)."""

import pytest

from puesto.core.infra.contracts import ApplyContext
from puesto.core.runtime.state import OutcomeKind, ResourceState
from puesto.resources.preferences import (
    PreferenceResource,
    PreferenceType,
    canonical,
    coerce_value,
    parse_value,
)
from tests.conftest import FakePrivilege


def pref(runner, value_type="bool", value=True, **kwargs):
    return PreferenceResource("com.example.browser", "ShowPathbar", PreferenceType(value_type), value,
                              runner=runner, **kwargs)


@pytest.mark.parametrize("raw, value_type, expected", [
    ("1", PreferenceType.BOOL, True),
    ("true", PreferenceType.BOOL, True),
    ("0", PreferenceType.BOOL, False),
    ("maybe", PreferenceType.BOOL, None),
    ("42", PreferenceType.INT, 42),
    ("4.2", PreferenceType.INT, None),
    ("0.5", PreferenceType.FLOAT, 0.5),
    ("abc", PreferenceType.FLOAT, None),
    ("hello\n", PreferenceType.STRING, "hello"),
    (" padded \n", PreferenceType.STRING, " padded "),
])
def test_parse_value(raw, value_type, expected):
    assert parse_value(raw, value_type) == expected


def test_canonical_forms():
    assert canonical(True, PreferenceType.BOOL) == "true"
    assert canonical(1.0, PreferenceType.FLOAT) == canonical(1, PreferenceType.FLOAT) == "1.0"
    assert canonical(36, PreferenceType.INT) == "36"


def test_coerce_rejects_incompatible_values():
    assert coerce_value("yes", PreferenceType.BOOL) is True
    assert coerce_value("36", PreferenceType.INT) == 36
    for value, value_type in (("maybe", PreferenceType.BOOL), ("abc", PreferenceType.INT), (True, PreferenceType.FLOAT)):
        with pytest.raises(ValueError):
            coerce_value(value, value_type)


class TestState:
    def test_up_to_date_bool(self, runner):
        runner.on("defaults", "read", stdout="1\n")
        r = pref(runner)
        assert r.current_state() == r.desired_state() == ResourceState.present("true")
        assert runner.calls == [["defaults", "read", "com.example.browser", "ShowPathbar"]]

    def test_missing_key_is_absent(self, runner):
        runner.on("defaults", "read", returncode=1, stderr="does not exist")
        assert pref(runner).current_state() == ResourceState.absent()

    def test_unparseable_is_absent(self, runner):
        runner.on("defaults", "read", stdout="(\n    a\n)\n")
        assert pref(runner, "int", 3).current_state() == ResourceState.absent()

    def test_drift_shows_both_values(self, runner):
        runner.on("defaults", "read", stdout="0\n")
        r = pref(runner)
        assert r.current_state() == ResourceState.present("false")
        assert r.current_state() != r.desired_state()


class TestApply:
    def test_rewrites_drifted_value(self, runner):
        runner.on("defaults", "read", stdout="0\n")
        assert pref(runner).apply(ApplyContext()).kind == OutcomeKind.MODIFIED
        assert runner.calls[-1] == ["defaults", "write", "com.example.browser", "ShowPathbar", "-bool", "true"]

    def test_creates_missing_key(self, runner):
        runner.on("defaults", "read", returncode=1)
        result = pref(runner, "float", 0.5).apply(ApplyContext())
        assert result.kind == OutcomeKind.CREATED
        assert runner.calls[-1][-2:] == ["-float", "0.5"]

    def test_converged_is_no_change(self, runner):
        runner.on("defaults", "read", stdout="true\n")
        assert pref(runner).apply(ApplyContext()).kind == OutcomeKind.NO_CHANGE
        assert runner.mutating_calls() == []

    def test_privileged_write_uses_sudo(self, runner):
        runner.on("defaults", "read", stdout="0\n")
        r = pref(runner, privileged=True)
        r.apply(ApplyContext(privileged_runner=FakePrivilege(runner)))
        assert runner.calls[-1][:3] == ["sudo", "defaults", "write"]

    def test_privileged_without_context_fails(self, runner):
        from puesto.core.errors import NotValidatedError
        runner.on("defaults", "read", stdout="0\n")
        with pytest.raises(NotValidatedError):
            pref(runner, privileged=True).apply(ApplyContext())

    def test_write_failure_is_typed(self, runner):
        from puesto.core.errors import PermissionDeniedError
        runner.on("defaults", "read", stdout="0\n")
        runner.on("defaults", "write", returncode=1, stderr="Could not write domain; Operation not permitted")
        with pytest.raises(PermissionDeniedError):
            pref(runner).apply(ApplyContext())

    def test_dry_run(self, runner):
        assert pref(runner).apply(ApplyContext(dry_run=True)).reason == "dry-run"
        assert runner.calls == []

    def test_idempotent_against_fake_machine(self, runner):
        stored = {"value": "0"}

        def read(argv):
            from puesto.core.runtime.state import CommandOutput
            return CommandOutput(stdout=stored["value"] + "\n")

        def write(argv):
            from puesto.core.runtime.state import CommandOutput
            stored["value"] = "1" if argv[-1] == "true" else "0"
            return CommandOutput()

        runner.on("defaults", "read", response=read)
        runner.on("defaults", "write", response=write)
        r = pref(runner)
        assert r.apply(ApplyContext()).kind == OutcomeKind.MODIFIED
        assert r.apply(ApplyContext()).kind == OutcomeKind.NO_CHANGE
        assert r.current_state() == r.desired_state()

    def test_string_with_surrounding_spaces_converges(self, runner):
        runner.on("defaults", "read", stdout=" padded \n")
        r = pref(runner, "string", " padded ")
        assert r.current_state() == r.desired_state()
        assert r.apply(ApplyContext()).kind == OutcomeKind.NO_CHANGE
        assert runner.mutating_calls() == []
