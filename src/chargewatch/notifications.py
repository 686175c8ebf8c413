"""
Notification decisions with independent per-class cooldowns.

The engine only decides; dispatching events is a sink's job.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List

from .readings import BatteryReading
from .settings import Thresholds

_LOGGER = logging.getLogger(__name__)

# Cooldowns in seconds
LOW_BATTERY_COOLDOWN = 120  # while discharging
HIGH_BATTERY_COOLDOWN = 300
FULL_BATTERY_COOLDOWN = 600

CRITICAL_LEVEL = 10
VERY_LOW_LEVEL = 15
FULL_LEVEL = 100


class NotificationKind(Enum):
    LOW = "low"
    HIGH = "high"
    FULL = "full"


@dataclass
class NotificationCooldown:
    """Last firing time of one notification class (0.0 = never)."""

    kind: NotificationKind
    period: float
    last_fired_at: float = 0.0

    def ready(self, now: float) -> bool:
        return now - self.last_fired_at >= self.period

    def mark(self, now: float) -> None:
        self.last_fired_at = now


@dataclass(frozen=True)
class NotificationEvent:
    kind: NotificationKind
    title: str
    body: str
    urgency: str = "normal"


def urgency_label(level: int) -> str:
    """Classify a low battery level."""
    if level <= CRITICAL_LEVEL:
        return "CRITICAL"
    if level <= VERY_LOW_LEVEL:
        return "VERY LOW"
    return "LOW"


def low_battery_event(level: int) -> NotificationEvent:
    return NotificationEvent(
        kind=NotificationKind.LOW,
        title=f"Battery {urgency_label(level)}",
        body=f"Battery is at {level}%. Please plug in your charger immediately!",
        urgency="critical",
    )


def full_battery_event() -> NotificationEvent:
    return NotificationEvent(
        kind=NotificationKind.FULL,
        title="Battery Full",
        body="Battery is fully charged! Unplug your charger to preserve battery health.",
    )


def high_battery_event(level: int) -> NotificationEvent:
    return NotificationEvent(
        kind=NotificationKind.HIGH,
        title="Battery Almost Full",
        body=f"Battery is at {level}%. You can unplug your charger.",
    )


class NotificationEngine:
    """
    Decides which battery notifications to raise for each reading.

    Each class (low, high, full) has its own cooldown. When charging starts
    the low-battery cooldown restarts, so plugging in never triggers a
    low-battery alert.
    """

    def __init__(
        self,
        low_cooldown: float = LOW_BATTERY_COOLDOWN,
        high_cooldown: float = HIGH_BATTERY_COOLDOWN,
        full_cooldown: float = FULL_BATTERY_COOLDOWN,
    ):
        self.cooldowns = {
            NotificationKind.LOW: NotificationCooldown(NotificationKind.LOW, low_cooldown),
            NotificationKind.HIGH: NotificationCooldown(NotificationKind.HIGH, high_cooldown),
            NotificationKind.FULL: NotificationCooldown(NotificationKind.FULL, full_cooldown),
        }
        self._is_charging = False

    @property
    def is_charging(self) -> bool:
        return self._is_charging

    def decide(
        self, reading: BatteryReading, thresholds: Thresholds, now: float
    ) -> List[NotificationEvent]:
        """Return the events to raise for this reading (possibly none)."""
        if reading.no_battery:
            return []

        level = reading.level
        charging = reading.is_charging
        events = []

        if charging != self._is_charging:
            _LOGGER.debug("Charging state changed: %s -> %s", self._is_charging, charging)
            self._is_charging = charging
            if charging:
                self.cooldowns[NotificationKind.LOW].mark(now)
                _LOGGER.debug("Started charging, low battery notifications paused")

        low = self.cooldowns[NotificationKind.LOW]
        if level <= thresholds.low and not charging and low.ready(now):
            events.append(low_battery_event(level))
            low.mark(now)
            _LOGGER.info("Low battery notification: %d%%", level)

        full = self.cooldowns[NotificationKind.FULL]
        high = self.cooldowns[NotificationKind.HIGH]
        if level >= FULL_LEVEL and charging:
            if full.ready(now):
                events.append(full_battery_event())
                full.mark(now)
                _LOGGER.info("Full battery notification: %d%%", level)
        elif level >= thresholds.high and level < FULL_LEVEL and charging:
            if high.ready(now):
                events.append(high_battery_event(level))
                high.mark(now)
                _LOGGER.info("High battery notification: %d%%", level)

        return events
