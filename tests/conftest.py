"""Fixtures compartidas: runner falso que registra invocaciones y recursos de prueba."""

import json
import threading
from contextlib import contextmanager
from typing import Callable, List, Optional, Sequence, Union

import pytest

from puesto.core.errors import PrivilegeDeniedError
from puesto.core.infra.base import BaseResource
from puesto.core.infra.contracts import ApplyContext
from puesto.core.runtime.state import ApplyResult, CommandOutput, ResourceState

Response = Union[CommandOutput, Exception, Callable[[List[str]], CommandOutput]]

# Verbos que no mutan el sistema
READ_VERBS = (
    ("brew", "info"),
    ("brew", "tap"),
    ("mas", "list"),
    ("code", "--list-extensions"),
    ("gh", "extension", "list"),
    ("pnpm", "list"),
    ("defaults", "read"),
    ("duti", "-x"),
)


def is_read(argv: Sequence[str]) -> bool:
    if list(argv[:2]) == ["brew", "tap"] and len(argv) > 2:
        return False
    return any(list(argv[:len(v)]) == list(v) for v in READ_VERBS)


class FakeRunner:
    """CommandRunner en memoria: respuestas por prefijo de argv (la última registrada gana)."""

    def __init__(self):
        self.calls: List[List[str]] = []
        self._responses = []
        self._lock = threading.Lock()

    def on(self, *prefix: str, stdout: str = "", stderr: str = "", returncode: int = 0,
           response: Optional[Response] = None) -> "FakeRunner":
        if response is None:
            response = CommandOutput(stdout=stdout, stderr=stderr, returncode=returncode)
        self._responses.append((list(prefix), response))
        return self

    def run(self, argv: Sequence[str], capture: bool = True) -> CommandOutput:
        argv = [str(a) for a in argv]
        with self._lock:
            self.calls.append(argv)
        for prefix, response in reversed(self._responses):
            if argv[:len(prefix)] == prefix:
                if isinstance(response, Exception):
                    raise response
                if callable(response):
                    return response(argv)
                return response
        return CommandOutput()

    def mutating_calls(self) -> List[List[str]]:
        return [c for c in self.calls if not is_read(c)]


class FakePrivilege:
    """Contexto de privilegios falso; registra comandos y liberación."""

    def __init__(self, runner: FakeRunner):
        self.runner = runner
        self.active = True

    def run(self, cmd: str, args: Sequence[str]) -> CommandOutput:
        assert self.active, "uso del contexto tras liberarlo"
        return self.runner.run(["sudo", cmd, *args])


class PrivilegeRecorder:
    """Fábrica acquire_privilege para el executor."""

    def __init__(self, runner: FakeRunner, deny: bool = False):
        self.runner = runner
        self.deny = deny
        self.reasons: List[str] = []
        self.contexts: List[FakePrivilege] = []

    @contextmanager
    def __call__(self, reason: str):
        self.reasons.append(reason)
        if self.deny:
            raise PrivilegeDeniedError("denegado")
        ctx = FakePrivilege(self.runner)
        self.contexts.append(ctx)
        try:
            yield ctx
        finally:
            ctx.active = False

    @property
    def released(self) -> bool:
        return all(not c.active for c in self.contexts)


class StubResource(BaseResource):
    """Recurso controlable: estado actual mutable y apply configurable."""

    def __init__(self, id: str, kind: str = "formula", current: Optional[ResourceState] = None,
                 desired: Optional[ResourceState] = None, result: Optional[ApplyResult] = None,
                 error: Optional[BaseException] = None, inspect_error: Optional[Exception] = None,
                 parallel_safe: bool = True, privileged: bool = False, restarts=()):
        self.kind = kind
        super().__init__(id, f"stub {id}", privileged=privileged, restarts=restarts)
        self._current = current if current is not None else ResourceState.absent()
        self._desired = desired if desired is not None else ResourceState.present()
        self._result = result or ApplyResult.created()
        self._error = error
        self._inspect_error = inspect_error
        self.parallel_safe = parallel_safe
        self.applied: List[ApplyContext] = []

    def desired_state(self) -> ResourceState:
        return self._desired

    def current_state(self) -> ResourceState:
        if self._inspect_error is not None:
            raise self._inspect_error
        return self._current

    def apply(self, ctx: ApplyContext) -> ApplyResult:
        self.applied.append(ctx)
        if ctx.dry_run:
            return ApplyResult.skipped("dry-run")
        if self._error is not None:
            raise self._error
        if self._current == self._desired:
            return ApplyResult.no_change()
        self._current = self._desired
        return self._result


def brew_json(kind: str, installed: bool) -> str:
    if kind == "formula":
        entry = {"name": "x", "installed": [{"version": "14.1.0"}] if installed else []}
        return json.dumps({"formulae": [entry], "casks": []})
    entry = {"token": "x", "installed": "1.2.3" if installed else None}
    return json.dumps({"formulae": [], "casks": [entry]})


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def privilege(runner) -> PrivilegeRecorder:
    return PrivilegeRecorder(runner)


