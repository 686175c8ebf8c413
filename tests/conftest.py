"""Shared test fixtures for chargewatch tests.

Nothing here imports gi, so the suite runs without a desktop session.
"""

from __future__ import annotations

import pytest

from chargewatch.readings import RawSample
from chargewatch.settings import SettingsStore, Thresholds

# Arbitrary wall-clock origin, far from the epoch so default cooldowns are ready
T0 = 1_700_000_000.0


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: float = T0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FakeTimer:
    """Timer backend that records callbacks instead of running a main loop."""

    def __init__(self):
        self._next = 1
        self.callbacks: dict[int, tuple[float, object]] = {}
        self.removed: list[int] = []

    def add(self, seconds, callback):
        handle = self._next
        self._next += 1
        self.callbacks[handle] = (seconds, callback)
        return handle

    def remove(self, handle):
        self.removed.append(handle)
        self.callbacks.pop(handle, None)

    def fire(self, handle):
        """Dispatch one callback the way GLib does, dropping it on False."""
        _, callback = self.callbacks[handle]
        keep = callback()
        if not keep:
            self.callbacks.pop(handle, None)
        return keep


class FakeSource:
    """Battery source that replays queued samples (or raises queued errors)."""

    name = "fake"

    def __init__(self, *samples):
        self.samples = list(samples)
        self.calls = 0

    def push(self, percent, state):
        self.samples.append(RawSample(percent, state))

    def query(self):
        self.calls += 1
        item = self.samples.pop(0) if len(self.samples) > 1 else self.samples[0]
        if isinstance(item, Exception):
            raise item
        return item


class RecordingSink:
    """Display/notifier sink that remembers everything it receives."""

    def __init__(self):
        self.readings = []
        self.snapshots = []
        self.events = []
        self.close_calls = 0

    def show(self, reading, snapshot=None):
        self.readings.append(reading)
        self.snapshots.append(snapshot)

    def notify(self, event):
        self.events.append(event)

    def close(self):
        self.close_calls += 1


class StaticSettings:
    def __init__(self, thresholds: Thresholds | None = None):
        self.thresholds = thresholds or Thresholds()

    def get(self) -> Thresholds:
        return self.thresholds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def settings() -> StaticSettings:
    """Default thresholds (low 20, high 80)."""
    return StaticSettings()


@pytest.fixture
def settings_store(tmp_path) -> SettingsStore:
    return SettingsStore(tmp_path / "settings.json")
