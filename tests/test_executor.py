"""Executor: fases, lotes, privilegios y post_actions."""

import threading
import time

import pytest

from puesto.core.errors import NotFoundError
from puesto.core.infra.base import AutoConfirm, AutoDecline
from puesto.core.infra.contracts import ExecuteOptions
from puesto.core.project.executor import APPLY_PROMPT, PRIVILEGE_REASON, execute
from puesto.core.project.planner import ExecutionPlan
from puesto.core.runtime.state import ApplyResult, OutcomeKind, ResourceState
from puesto.resources.service import ServiceResource
from tests.conftest import PrivilegeRecorder, StubResource


class RecordingConfirm:
    def __init__(self, answers):
        self.answers = list(answers)
        self.prompts = []

    def confirm(self, prompt):
        self.prompts.append(prompt)
        return self.answers.pop(0)


class RecordingProgress:
    def __init__(self):
        self.events = []
        self.boundaries = []

    def on_batch_start(self, count, privileged):
        self.events.append(("batch", count, privileged))

    def on_resource_start(self, resource_id, description):
        self.events.append(("start", resource_id))

    def on_resource_complete(self, resource_id, result):
        self.events.append(("done", resource_id, result.kind))

    def on_batch_complete(self):
        self.events.append(("batch_done",))

    def on_privilege_boundary(self, descriptions):
        self.boundaries.append(descriptions)

    def completed(self):
        return {e[1]: e[2] for e in self.events if e[0] == "done"}


def plan_of(unprivileged=(), privileged=(), post_actions=()):
    return ExecutionPlan(list(unprivileged), list(privileged), list(post_actions))


def test_no_diffs_returns_zero_summary_without_prompt():
    r = StubResource("rg", current=ResourceState.present())
    confirm = RecordingConfirm([])
    summary = execute(plan_of([r]), confirm=confirm)
    assert summary.total == 0
    assert confirm.prompts == []
    assert r.applied == []


def test_declined_confirmation_skips_everything():
    a, b = StubResource("a"), StubResource("b")
    summary = execute(plan_of([a], [b]), confirm=AutoDecline())
    assert summary.skipped == 2
    assert a.applied == [] and b.applied == []


def test_dry_run_applies_nothing_and_does_not_prompt(privilege):
    a, b = StubResource("a"), StubResource("b")
    confirm = RecordingConfirm([])
    summary = execute(plan_of([a], [b]), ExecuteOptions(dry_run=True), confirm=confirm,
                      acquire_privilege=privilege)
    assert summary.total == 0
    assert confirm.prompts == []
    assert a.applied == [] and b.applied == []
    assert privilege.reasons == []


def test_failure_does_not_abort_batch():
    a = StubResource("A")
    b = StubResource("B", error=NotFoundError("B"))
    c = StubResource("C")
    progress = RecordingProgress()
    summary = execute(plan_of([a, b, c]), ExecuteOptions(parallelism=3), progress=progress)
    assert (summary.created, summary.failed) == (2, 1)
    assert summary.exit_code() == 1
    assert progress.completed() == {
        "A": OutcomeKind.CREATED, "B": OutcomeKind.FAILED, "C": OutcomeKind.CREATED,
    }
    assert summary.failures[0].error_kind == "NotFound"


def test_unexpected_exception_becomes_failed():
    r = StubResource("boom", error=RuntimeError("kaput"))
    summary = execute(plan_of([r]))
    assert summary.failed == 1
    assert "kaput" in str(summary.failures[0].error)


def test_inspection_failure_is_reported_without_apply():
    from puesto.core.errors import InspectionFailedError
    r = StubResource("rg", inspect_error=InspectionFailedError("formula", "brew exploded"))
    summary = execute(plan_of([r]))
    assert summary.failed == 1
    assert r.applied == []
    assert summary.failures[0].error_kind == "InspectionFailed"


def test_parallel_unsafe_resources_run_sequentially_after_safe_ones():
    active = []
    overlap = []
    lock = threading.Lock()

    class Tracking(StubResource):
        def apply(self, ctx):
            with lock:
                if any(not a.parallel_safe for a in active) or (not self.parallel_safe and active):
                    overlap.append(self.id)
                active.append(self)
            time.sleep(0.01)
            with lock:
                active.remove(self)
            return ApplyResult.created()

    safe = [Tracking(f"s{i}") for i in range(4)]
    unsafe = [Tracking(f"u{i}", kind="dock-app", parallel_safe=False) for i in range(3)]
    progress = RecordingProgress()
    summary = execute(plan_of(unsafe + safe), ExecuteOptions(parallelism=4), progress=progress)
    assert summary.created == 7
    assert overlap == []
    done = [e[1] for e in progress.events if e[0] == "done"]
    assert done[-3:] == ["u0", "u1", "u2"]


def test_resource_is_never_applied_concurrently_with_itself():
    r = StubResource("rg")
    summary = execute(plan_of([r]), ExecuteOptions(parallelism=8))
    assert len(r.applied) == 1
    assert summary.created == 1


def test_privileged_batch_runs_after_unprivileged_with_runner(runner, privilege):
    order = []

    class Ordered(StubResource):
        def apply(self, ctx):
            order.append((self.id, ctx.privileged_runner is not None))
            return super().apply(ctx)

    a = Ordered("a")
    p1 = Ordered("p1", kind="cask", privileged=True)
    p2 = Ordered("p2", kind="cask", privileged=True)
    confirm = RecordingConfirm([True, True])
    progress = RecordingProgress()
    summary = execute(plan_of([a], [p1, p2]), ExecuteOptions(parallelism=4), progress, confirm,
                      acquire_privilege=privilege)

    assert summary.created == 3
    assert order == [("a", False), ("p1", True), ("p2", True)]
    assert confirm.prompts[0] == APPLY_PROMPT
    assert "2" in confirm.prompts[1]
    assert privilege.reasons == [PRIVILEGE_REASON]
    assert privilege.released
    assert progress.boundaries == [["stub p1", "stub p2"]]
    assert ("batch", 2, True) in progress.events


def test_only_privileged_changes_prompt_once(privilege):
    p = StubResource("com.example.browser.ShowPathbar", kind="preference", privileged=True)
    confirm = RecordingConfirm([True])
    summary = execute(plan_of([], [p]), confirm=confirm, acquire_privilege=privilege)
    assert confirm.prompts == [APPLY_PROMPT]
    assert summary.created == 1
    assert privilege.released


def test_declining_privileged_batch_keeps_unprivileged_outcomes(privilege):
    a = StubResource("a")
    p = StubResource("p", privileged=True)
    summary = execute(plan_of([a], [p]), confirm=RecordingConfirm([True, False]), acquire_privilege=privilege)
    assert (summary.created, summary.skipped) == (1, 1)
    assert p.applied == []
    assert privilege.reasons == []


def test_privilege_denied_preserves_unprivileged_outcomes(runner):
    denied = PrivilegeRecorder(runner, deny=True)
    a = StubResource("a")
    p = StubResource("p", privileged=True)
    summary = execute(plan_of([a], [p]), confirm=AutoConfirm(), acquire_privilege=denied)
    assert summary.created == 1
    assert summary.skipped == 1
    assert summary.privilege_denied
    assert summary.exit_code() == 3
    assert p.applied == []


def test_privilege_released_when_batch_is_interrupted(privilege):
    p = StubResource("p", privileged=True, error=KeyboardInterrupt())
    with pytest.raises(KeyboardInterrupt):
        execute(plan_of([], [p]), confirm=AutoConfirm(), acquire_privilege=privilege)
    assert privilege.contexts
    assert privilege.released


def test_post_actions_run_last_and_failures_are_not_fatal(runner):
    runner.on("killall", "Finder", returncode=1, stderr="No matching processes")
    order = []

    class Ordered(StubResource):
        def apply(self, ctx):
            order.append(self.id)
            return super().apply(ctx)

    def restart(name):
        order.append(f"restart:{name}")
        return ServiceResource(name, runner=runner)

    a = Ordered("a", restarts=("Finder", "Dock"))
    summary = execute(plan_of([a], post_actions=["Finder", "Dock"]), restart_service=restart)
    assert order == ["a", "restart:Finder", "restart:Dock"]
    assert summary.created == 1
    assert summary.failed == 0
    assert ["killall", "Dock"] in runner.calls


def test_parallelism_must_be_positive():
    with pytest.raises(ValueError):
        ExecuteOptions(parallelism=0)


def test_restarts_only_for_resources_that_changed(runner):
    restarted = []

    def restart(name):
        restarted.append(name)
        return ServiceResource(name, runner=runner)

    written = StubResource("dock.autohide", restarts=("Dock",))
    skipped = StubResource("finder.pathbar", restarts=("Finder",), result=ApplyResult.skipped("busy"))
    failing = StubResource("ui.clock", restarts=("SystemUIServer",), error=NotFoundError("ui.clock"))
    plan = plan_of([written, skipped, failing], post_actions=["Dock", "Finder", "SystemUIServer"])

    execute(plan, restart_service=restart)
    assert restarted == ["Dock"]


def test_denied_privileged_batch_triggers_no_restart(runner):
    restarted = []

    def restart(name):
        restarted.append(name)
        return ServiceResource(name, runner=runner)

    p = StubResource("finder.pathbar", privileged=True, restarts=("Finder",))
    summary = execute(plan_of([], [p], post_actions=["Finder"]), confirm=AutoConfirm(),
                      acquire_privilege=PrivilegeRecorder(runner, deny=True), restart_service=restart)
    assert summary.privilege_denied
    assert restarted == []
    assert runner.calls == []
