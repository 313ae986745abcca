# conftest.py - Shared pytest fixtures for all tests
"""Shared pytest fixtures for the keepalive test suite.

Provides:
- Config file writers
- Fake process handles and launchers, so loop and supervisor logic can be
  driven without spawning real processes
- A small polling helper for cross-thread assertions
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml

from keepalive.core.errors import LaunchError
from keepalive.core.models import CommandSpec


def poll_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll `predicate` until it is true or `timeout` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


# =============================================================================
# Fake Processes
# =============================================================================


class FakeHandle:
    """Stands in for ProcessHandle.

    By default the fake "process" exits as soon as it is waited on. Pass
    running=True for a process that stays up until exit() is called.
    """

    def __init__(self, name: str, returncode: int = 0, running: bool = False):
        self.name = name
        self.pid = 4242
        self._returncode = returncode
        self._exited = threading.Event()
        if not running:
            self._exited.set()
        self.terminate_calls = 0
        self.terminate_error: Exception | None = None
        self.terminate_blocker: threading.Event | None = None

    @property
    def returncode(self) -> int | None:
        return self._returncode if self._exited.is_set() else None

    def wait(self) -> int:
        self._exited.wait()
        return self._returncode

    def exit(self, returncode: int = 0) -> None:
        self._returncode = returncode
        self._exited.set()

    def terminate(self) -> None:
        self.terminate_calls += 1
        if self.terminate_blocker is not None:
            self.terminate_blocker.wait()
        if self.terminate_error is not None:
            raise self.terminate_error


class FakeLauncher:
    """Stands in for ProcessLauncher.

    `factory(spec, index)` returns the FakeHandle for the index-th launch of
    `spec` (0-based), or an exception to raise instead.
    """

    def __init__(self, factory: Callable[[CommandSpec, int], Any] | None = None):
        self.factory = factory or (lambda spec, index: FakeHandle(spec.name))
        self.handles: dict[str, list[FakeHandle]] = {}
        self.launch_times: dict[str, list[float]] = {}
        self._cond = threading.Condition()

    def launch(self, spec: CommandSpec) -> FakeHandle:
        with self._cond:
            index = len(self.handles.get(spec.name, []))
            outcome = self.factory(spec, index)
            if isinstance(outcome, Exception):
                raise outcome
            self.handles.setdefault(spec.name, []).append(outcome)
            self.launch_times.setdefault(spec.name, []).append(time.monotonic())
            self._cond.notify_all()
            return outcome

    def count(self, name: str | None = None) -> int:
        with self._cond:
            if name is None:
                return sum(len(h) for h in self.handles.values())
            return len(self.handles.get(name, []))

    def wait_for_launches(self, count: int, name: str | None = None, timeout: float = 5.0) -> bool:
        with self._cond:
            return self._cond.wait_for(lambda: self._count_locked(name) >= count, timeout=timeout)

    def _count_locked(self, name: str | None) -> int:
        if name is None:
            return sum(len(h) for h in self.handles.values())
        return len(self.handles.get(name, []))


def make_launch_failure(name: str) -> LaunchError:
    return LaunchError(name, FileNotFoundError(2, "No such file or directory", "/bin/sh"))


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def fake_launcher() -> FakeLauncher:
    """Launcher whose processes exit immediately."""
    return FakeLauncher()


@pytest.fixture
def make_handle() -> type[FakeHandle]:
    """Build fake process handles.

    Example:
        handle = make_handle("web", running=True)
    """
    return FakeHandle


@pytest.fixture
def make_launcher() -> type[FakeLauncher]:
    """Build a fake launcher from a `factory(spec, index)`."""
    return FakeLauncher


@pytest.fixture
def launch_failure() -> Callable[[str], LaunchError]:
    """Build the LaunchError a missing shell would produce."""
    return make_launch_failure


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    """Poll a predicate until it holds or the timeout elapses."""
    return poll_until


@pytest.fixture
def make_spec() -> Callable[..., CommandSpec]:
    """Build a CommandSpec with sensible defaults.

    Example:
        spec = make_spec("web", retrySec=3)
    """

    def _make(name: str = "worker", cmd: str = "true", **kwargs: Any) -> CommandSpec:
        return CommandSpec(name=name, cmd=cmd, **kwargs)

    return _make


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[Any], Path]:
    """Write a config file and return its path.

    Dicts/lists are dumped as YAML; strings are written verbatim.
    """

    def _write(content: Any, filename: str = "commands.yaml") -> Path:
        path = tmp_path / filename
        if isinstance(content, str):
            path.write_text(content)
        else:
            path.write_text(yaml.safe_dump(content))
        return path

    return _write


@pytest.fixture
def sample_config_data() -> dict[str, Any]:
    """Two-command config: a one-shot and a long-running command."""
    return {
        "commands": [
            {"name": "A", "cmd": "true"},
            {"name": "B", "cmd": "sleep 100", "retrySec": 1},
        ]
    }
