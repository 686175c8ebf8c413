"""
Poll loop - drives source, session tracker and notification engine on a
fixed cadence and forwards the results to the display and notifier sinks.

Timers come from an injected backend (GLib in the tray application). The
backend dispatches callbacks one at a time on a single main loop, so a
tick always finishes before the next one starts.
"""

import logging
import time
from typing import Callable, Optional, Sequence

from .inventory import BatteryAnalytics, HardwareInfo, build_analytics, read_hardware_info
from .notifications import NotificationEngine, NotificationEvent
from .readings import BatteryReading, query_source, reading_from_result
from .session import ChargingSessionTracker, SessionSnapshot

_LOGGER = logging.getLogger(__name__)

POLL_INTERVAL = 5.0  # seconds between ticks
INITIAL_DELAY = 1.0  # seconds before the display is primed


class RecurringTask:
    """
    A timer callback with explicit cancel semantics.

    `timer` provides add(seconds, fn) -> handle and remove(handle); `fn`
    keeps repeating for as long as it returns True.
    """

    def __init__(self, interval: float, callback: Callable[[], object], timer, repeat: bool = True):
        self.interval = interval
        self.callback = callback
        self.repeat = repeat
        self._timer = timer
        self._handle = None

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        if self._handle is None:
            self._handle = self._timer.add(self.interval, self._fire)

    def _fire(self) -> bool:
        if self._handle is None:
            return False
        try:
            self.callback()
        except Exception:
            _LOGGER.exception("Scheduled callback %r failed", self.callback)

        if not self.repeat:
            # The backend drops one-shot sources itself
            self._handle = None
        return self._handle is not None

    def cancel(self) -> None:
        """Stop the task. Safe to call any number of times."""
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        self._timer.remove(handle)


class BatteryPoller:
    """Owns the session tracker and notification engine for one process."""

    def __init__(
        self,
        source,
        settings,
        display_sinks: Sequence = (),
        notifier=None,
        timer=None,
        clock: Callable[[], float] = time.time,
        interval: float = POLL_INTERVAL,
        initial_delay: float = INITIAL_DELAY,
        rng=None,
    ):
        self.source = source
        self.settings = settings
        self.display_sinks = list(display_sinks)
        self.notifier = notifier
        self.tracker = ChargingSessionTracker()
        self.engine = NotificationEngine()
        self.last_reading: Optional[BatteryReading] = None

        self._clock = clock
        self._rng = rng
        self._closed = False
        self._initial_task = None
        self._poll_task = None
        if timer is not None:
            self._initial_task = RecurringTask(initial_delay, self.prime, timer, repeat=False)
            self._poll_task = RecurringTask(interval, self.tick, timer)

    @property
    def running(self) -> bool:
        return self._poll_task is not None and self._poll_task.active

    def start(self) -> None:
        if self._closed:
            _LOGGER.warning("Poller already torn down, not starting")
            return
        if self._poll_task is None:
            raise RuntimeError("BatteryPoller needs a timer backend to start")
        _LOGGER.info("Starting battery monitoring (source: %s)", getattr(self.source, "name", self.source))
        self._initial_task.start()
        self._poll_task.start()

    def _query(self):
        result = query_source(self.source)
        return result, reading_from_result(result, self._rng)

    def read(self) -> BatteryReading:
        """Query the source once; failures become a fallback reading."""
        return self._query()[1]

    def current_reading(self) -> BatteryReading:
        """On-demand reading that does not advance any tracked state."""
        return self.read()

    def prime(self) -> BatteryReading:
        """Initial display update before the first periodic tick."""
        reading = self.read()
        _LOGGER.debug("Initial battery data: %s", reading.as_dict())
        self._push_display(reading, self.tracker.snapshot(self._clock()))
        return reading

    def tick(self) -> BatteryReading:
        """One poll: read, track, decide, then hand results to the sinks."""
        result, reading = self._query()
        now = self._clock()

        events = []
        if not reading.no_battery:
            # Fallback readings are random; keep them out of session timing
            if result.ok:
                self.tracker.observe(reading, now)
            events = self.engine.decide(reading, self.settings.get(), now)

        self.last_reading = reading
        self._push_display(reading, self.tracker.snapshot(now))
        for event in events:
            self._dispatch(event)
        return reading

    def snapshot(self) -> SessionSnapshot:
        return self.tracker.snapshot(self._clock())

    def analytics(self, inventory: Callable[[], HardwareInfo] = read_hardware_info) -> BatteryAnalytics:
        """On-demand analytics: hardware inventory plus session timing."""
        try:
            hardware = inventory()
        except Exception as e:
            _LOGGER.warning("Battery inventory failed: %s", e)
            hardware = HardwareInfo()
        return build_analytics(hardware, self.snapshot())

    def _push_display(self, reading: BatteryReading, snapshot: SessionSnapshot) -> None:
        if self._closed:
            return
        for sink in self.display_sinks:
            try:
                sink.show(reading, snapshot)
            except Exception:
                _LOGGER.exception("Display sink %r failed", sink)

    def _dispatch(self, event: NotificationEvent) -> None:
        if self.notifier is None or self._closed:
            return
        try:
            self.notifier.notify(event)
        except Exception:
            _LOGGER.exception("Failed to send notification %r", event.title)

    def teardown(self) -> None:
        """Stop timers and release sinks. Idempotent."""
        if self._closed:
            return
        self._closed = True
        _LOGGER.info("Stopping battery monitoring")

        for task in (self._initial_task, self._poll_task):
            if task is not None:
                task.cancel()

        for sink in self.display_sinks + [self.notifier]:
            close = getattr(sink, "close", None)
            if close is None:
                continue
            try:
                close()
            except Exception:
                _LOGGER.exception("Error closing sink %r", sink)
