"""
Charge Watch - Battery monitor for the Linux system tray.

This package provides:
- Battery sources (sysfs, psutil, INA219 UPS HAT)
- Charging session analytics (time at 100%, charge time, overcharge)
- Low / almost-full / full notifications with independent cooldowns
- System tray indicator and a status helper for conky
"""

__version__ = "1.0.0"

from .notifications import (
    NotificationEngine,
    NotificationEvent,
    NotificationKind,
    FULL_BATTERY_COOLDOWN,
    HIGH_BATTERY_COOLDOWN,
    LOW_BATTERY_COOLDOWN,
)
from .readings import (
    BatteryReading,
    RawSample,
    RawState,
    SourceResult,
    normalize,
    fallback_reading,
)
from .scheduler import BatteryPoller, RecurringTask
from .session import ChargingSession, ChargingSessionTracker, SessionSnapshot
from .settings import SettingsStore, Thresholds

__all__ = [
    "BatteryPoller",
    "BatteryReading",
    "ChargingSession",
    "ChargingSessionTracker",
    "NotificationEngine",
    "NotificationEvent",
    "NotificationKind",
    "RawSample",
    "RawState",
    "RecurringTask",
    "SessionSnapshot",
    "SettingsStore",
    "SourceResult",
    "Thresholds",
    "normalize",
    "fallback_reading",
    "FULL_BATTERY_COOLDOWN",
    "HIGH_BATTERY_COOLDOWN",
    "LOW_BATTERY_COOLDOWN",
]
