"""
Battery readings - normalizes raw source samples into BatteryReading.
A failed source call never escapes: it becomes a synthetic reading.
"""

import logging
import math
import numbers
import random
from dataclasses import dataclass
from enum import Enum
from typing import Optional

_LOGGER = logging.getLogger(__name__)

# Percent reported by a source when no battery is installed
NO_BATTERY_PERCENT = -1


class RawState(Enum):
    """Charge state tags as reported by battery sources."""

    CHARGING = "charging"
    CHARGED = "charged"
    FINISHING_CHARGE = "finishing charge"
    DISCHARGING = "discharging"
    NO_BATTERY = "no battery"
    UNDETERMINED = "undetermined"

    @classmethod
    def parse(cls, value: str) -> "RawState":
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNDETERMINED


CHARGING_STATES = frozenset(
    {RawState.CHARGING, RawState.CHARGED, RawState.FINISHING_CHARGE}
)


@dataclass(frozen=True)
class RawSample:
    """One raw sample straight from a battery source."""

    percent: float
    state: str


@dataclass(frozen=True)
class BatteryReading:
    """Normalized battery observation for one poll tick."""

    level: int
    is_charging: bool
    no_battery: bool = False
    raw_state: RawState = RawState.UNDETERMINED

    def __post_init__(self):
        if self.no_battery and (self.level != 0 or self.is_charging):
            raise ValueError("no-battery readings must have level 0 and not be charging")

    def as_dict(self) -> dict:
        """Payload pushed to display sinks."""
        return {
            "level": self.level,
            "isCharging": self.is_charging,
            "noBattery": self.no_battery,
            "state": self.raw_state.value,
        }


NO_BATTERY_READING = BatteryReading(
    level=0, is_charging=False, no_battery=True, raw_state=RawState.NO_BATTERY
)


@dataclass(frozen=True)
class SourceResult:
    """Outcome of a single source query: a sample or the error it raised."""

    sample: Optional[RawSample] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.sample is not None


def _valid_percent(percent) -> bool:
    if isinstance(percent, bool) or not isinstance(percent, numbers.Real):
        return False
    return math.isfinite(percent)


def query_source(source) -> SourceResult:
    """Call source.query() and capture any failure as a SourceResult.

    A sample whose percent is not a finite number counts as a failure.
    """
    try:
        sample = source.query()
    except Exception as e:
        return SourceResult(error=e)
    if not _valid_percent(getattr(sample, "percent", None)):
        return SourceResult(error=ValueError(f"invalid battery sample: {sample!r}"))
    return SourceResult(sample=sample)


def _clamp_level(percent: float) -> int:
    return max(0, min(100, int(round(percent))))


def normalize(sample: RawSample) -> BatteryReading:
    """Map a raw sample to a BatteryReading."""
    state = RawState.parse(sample.state)
    if sample.percent == NO_BATTERY_PERCENT or state is RawState.NO_BATTERY:
        return NO_BATTERY_READING

    return BatteryReading(
        level=_clamp_level(sample.percent),
        is_charging=state in CHARGING_STATES,
        no_battery=False,
        raw_state=state,
    )


def fallback_reading(rng: Optional[random.Random] = None) -> BatteryReading:
    """Synthetic reading used when the source fails."""
    rng = rng or random
    return BatteryReading(
        level=rng.randrange(100),
        is_charging=rng.random() > 0.5,
        no_battery=False,
        raw_state=RawState.UNDETERMINED,
    )


def reading_from_result(result: SourceResult, rng: Optional[random.Random] = None) -> BatteryReading:
    """Normalize a source result, substituting a fallback reading on failure."""
    if result.ok:
        return normalize(result.sample)
    _LOGGER.warning("Battery source failed, using fallback reading: %s", result.error)
    return fallback_reading(rng)


def describe_reading(reading: BatteryReading) -> str:
    """Short human status line for a reading."""
    if reading.no_battery:
        return "Running on AC power"
    if reading.is_charging:
        if reading.raw_state is RawState.CHARGED:
            return "Battery fully charged"
        if reading.raw_state is RawState.FINISHING_CHARGE:
            return "Finishing charge..."
        return "Charging..."
    if reading.level <= 20:
        return "Battery low - please charge"
    if reading.level <= 50:
        return "Battery level moderate"
    return "Battery level good"


def format_minutes(minutes: int) -> str:
    """Format a minute count as '1h 5m' or '42m'."""
    if minutes >= 60:
        return f"{minutes // 60}h {minutes % 60}m"
    return f"{minutes}m"
