"""Global pytest fixtures and configuration."""

import json
import stat
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from autoupdater.models.settings import RunContext
from autoupdater.models.status import AttemptOutcome
from autoupdater.services.hooks import HookRunner


class FakeHookRunner(HookRunner):
    """In-memory hooks returning scripted outcomes in attempt order.

    Each download call consumes the next outcome from ``outcomes``
    (SUCCESS once the list runs out); the later stages of that attempt
    fail or pass according to it.
    """

    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [])
        self.calls = []
        self._current = {}

    def _record(self, stage, mirror):
        self.calls.append((stage, mirror))

    def download(self, mirror, context):
        self._record("download", mirror)
        outcome = self.outcomes.pop(0) if self.outcomes else AttemptOutcome.SUCCESS
        self._current[mirror] = outcome
        return outcome is not AttemptOutcome.DOWNLOAD_FAILED

    def verify(self, mirror, context):
        self._record("verify", mirror)
        return self._current[mirror] is not AttemptOutcome.VERIFICATION_FAILED

    def upgrade(self, mirror, context):
        self._record("upgrade", mirror)
        return self._current[mirror] is not AttemptOutcome.APPLY_FAILED

    def abort(self, mirror, context):
        self._record("abort", mirror)

    def stage_calls(self, stage):
        return [mirror for s, mirror in self.calls if s == stage]


class StubRandom:
    """Deterministic stand-in for random.Random."""

    def __init__(self, draw=0.0, pick=lambda k: 0):
        self.draw = draw
        self.pick = pick

    def random(self):
        return self.draw

    def randrange(self, k):
        return self.pick(k)


def write_script(path: Path, body: str) -> Path:
    """Write an executable /bin/sh script."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_hooks():
    """Factory for FakeHookRunner with scripted outcomes."""
    return FakeHookRunner


@pytest.fixture
def make_context(tmp_path):
    """Factory for RunContext rooted in a temporary directory."""

    def _make(**overrides):
        values = dict(
            branch="stable",
            mirrors=("http://mirror-a/", "http://mirror-b/", "http://mirror-c/"),
            pubkeys=("key-1", "key-2"),
            good_signatures=1,
            enabled=True,
            lock_file=tmp_path / "autoupdater.lock",
            hook_dir=tmp_path / "hooks",
            work_dir=tmp_path / "work",
            hook_timeout=10.0,
        )
        values.update(overrides)
        return RunContext(**values)

    return _make


@pytest.fixture
def config_data(tmp_path):
    """Minimal valid configuration dictionary."""
    return {
        "settings": {
            "enabled": True,
            "branch": "stable",
            "lock_file": str(tmp_path / "autoupdater.lock"),
            "hook_dir": str(tmp_path / "hooks"),
            "work_dir": str(tmp_path / "work"),
        },
        "branches": {
            "stable": {
                "name": "Stable",
                "mirrors": ["http://mirror-a/", "http://mirror-b/"],
                "pubkeys": ["key-1"],
                "good_signatures": 1,
            },
            "beta": {
                "mirrors": ["http://beta/"],
                "pubkeys": ["key-2"],
                "good_signatures": 2,
            },
        },
    }


@pytest.fixture
def write_config(tmp_path):
    """Write a configuration dict to a JSON file and return its path."""

    def _write(data, name="autoupdater.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data))
        return path

    return _write


@pytest.fixture
def stub_random():
    """Factory for StubRandom."""
    return StubRandom


@pytest.fixture
def script():
    """Writer for executable hook scripts."""
    return write_script
