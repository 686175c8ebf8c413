"""
Battery hardware inventory and the combined analytics report.

Hardware fields (health, cycles, capacities) come from sysfs; the
time-derived fields come from the charging session tracker.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from .session import SessionSnapshot
from .sources import find_battery_path

_LOGGER = logging.getLogger(__name__)

# Below this share of design capacity the battery needs service
HEALTH_WARNING_PERCENT = 80


@dataclass(frozen=True)
class HardwareInfo:
    health: str = "Unknown"
    health_percent: Optional[float] = None
    cycle_count: int = 0
    design_capacity: int = 0
    current_capacity: int = 0
    capacity_unit: str = "mAh"
    voltage: Optional[float] = None


@dataclass(frozen=True)
class BatteryAnalytics:
    health: str
    cycle_count: int
    design_capacity: int
    current_capacity: int
    capacity_unit: str
    time_at_100_minutes: int
    total_charge_minutes: int
    total_overcharge_minutes: int
    last_full_charge: str
    voltage: Optional[float] = None

    def as_dict(self) -> dict:
        return asdict(self)


def _read_int(path: Path) -> Optional[int]:
    try:
        value = path.read_text().strip()
    except OSError:
        return None
    return int(value) if value.lstrip("-").isdigit() else None


def read_hardware_info(battery_path: Optional[Path] = None) -> HardwareInfo:
    """Read battery hardware details; unknown values stay at their defaults."""
    bat = Path(battery_path) if battery_path else find_battery_path()
    if bat is None:
        return HardwareInfo()

    full = _read_int(bat / "energy_full")
    design = _read_int(bat / "energy_full_design")
    unit = "mWh"
    if not full or not design:
        full = _read_int(bat / "charge_full")
        design = _read_int(bat / "charge_full_design")
        unit = "mAh"

    health = "Unknown"
    health_percent = None
    if full and design:
        health_percent = round(full / design * 100, 1)
        health = "Normal" if health_percent >= HEALTH_WARNING_PERCENT else "Service Recommended"

    voltage = _read_int(bat / "voltage_now")

    # sysfs reports micro-units
    return HardwareInfo(
        health=health,
        health_percent=health_percent,
        cycle_count=_read_int(bat / "cycle_count") or 0,
        design_capacity=(design or 0) // 1000,
        current_capacity=(full or 0) // 1000,
        capacity_unit=unit,
        voltage=round(voltage / 1_000_000, 2) if voltage else None,
    )


def build_analytics(hardware: HardwareInfo, snapshot: SessionSnapshot) -> BatteryAnalytics:
    """Merge hardware inventory and session timing into one report."""
    last_full = "-"
    if snapshot.last_full_charge_at is not None:
        last_full = datetime.fromtimestamp(snapshot.last_full_charge_at).isoformat(timespec="seconds")

    return BatteryAnalytics(
        health=hardware.health,
        cycle_count=hardware.cycle_count,
        design_capacity=hardware.design_capacity,
        current_capacity=hardware.current_capacity,
        capacity_unit=hardware.capacity_unit,
        time_at_100_minutes=snapshot.time_at_100_minutes,
        total_charge_minutes=snapshot.total_charge_minutes,
        total_overcharge_minutes=snapshot.total_overcharge_minutes,
        last_full_charge=last_full,
        voltage=hardware.voltage,
    )
