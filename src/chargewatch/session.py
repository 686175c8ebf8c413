"""
Charging session tracking.

Follows one charge cycle at a time from point samples: when charging
started, how long the battery has sat at 100% and how much overcharge time
has accumulated in the current cycle. Stopping charging forgets the
cycle's overcharge total.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .readings import BatteryReading

_LOGGER = logging.getLogger(__name__)


def elapsed_minutes(since: float, now: float) -> int:
    """Whole minutes between two timestamps; clock jumps backwards give 0."""
    return max(0, int((now - since) // 60))


@dataclass
class ChargingSession:
    """Mutable state of the current charge cycle."""

    charging_started_at: Optional[float] = None
    full_since: Optional[float] = None
    accumulated_overcharge_minutes: int = 0
    # Process lifetime, survives charge-stop resets
    last_full_charge_at: Optional[float] = None


@dataclass(frozen=True)
class SessionSnapshot:
    time_at_100_minutes: int = 0
    total_charge_minutes: int = 0
    total_overcharge_minutes: int = 0
    last_full_charge_at: Optional[float] = None


class ChargingSessionTracker:
    """Sole writer of a ChargingSession."""

    def __init__(self):
        self.session = ChargingSession()
        self._was_charging = False

    @property
    def is_charging(self) -> bool:
        return self._was_charging

    def observe(self, reading: BatteryReading, now: float) -> None:
        """Advance the session with one reading taken at `now`."""
        session = self.session
        charging = reading.is_charging

        if charging and not self._was_charging:
            session.charging_started_at = now
            _LOGGER.debug("Charging started, tracking charge time")

        if not charging and self._was_charging:
            session.charging_started_at = None
            session.full_since = None
            session.accumulated_overcharge_minutes = 0
            _LOGGER.debug("Charging stopped, session overcharge time reset")

        self._was_charging = charging

        if reading.level >= 100 and charging:
            if session.full_since is None:
                session.full_since = now
                session.last_full_charge_at = now
                _LOGGER.debug("Battery reached 100%%, starting 100%% timer")
        elif session.full_since is not None:
            minutes = elapsed_minutes(session.full_since, now)
            session.accumulated_overcharge_minutes += minutes
            session.full_since = None
            _LOGGER.debug(
                "Battery left 100%%: %dm at 100%%, %dm overcharge this cycle",
                minutes,
                session.accumulated_overcharge_minutes,
            )

    def snapshot(self, now: float) -> SessionSnapshot:
        """Time-derived analytics at `now`."""
        session = self.session
        time_at_100 = 0
        total_charge = 0

        if session.full_since is not None:
            time_at_100 = elapsed_minutes(session.full_since, now)
        if session.charging_started_at is not None and self._was_charging:
            total_charge = elapsed_minutes(session.charging_started_at, now)

        return SessionSnapshot(
            time_at_100_minutes=time_at_100,
            total_charge_minutes=total_charge,
            total_overcharge_minutes=session.accumulated_overcharge_minutes,
            last_full_charge_at=session.last_full_charge_at,
        )

    def reset(self) -> None:
        self.session = ChargingSession()
        self._was_charging = False
