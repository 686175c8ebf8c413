"""
Battery sources - backends that return a RawSample on demand.

- PsutilSource: laptops, via psutil.sensors_battery()
- SysfsSource: Linux /sys/class/power_supply battery nodes
- Ina219Source: UPS HAT with an INA219 sensor (3S Li-ion voltage curve)

Sources are allowed to raise; the poller turns failures into fallback readings.
"""

import glob
import logging
from pathlib import Path
from typing import Optional

import psutil

try:
    from ina219 import INA219
    HAS_INA219 = True
except ImportError:
    HAS_INA219 = False

from .readings import NO_BATTERY_PERCENT, RawSample, RawState

_LOGGER = logging.getLogger(__name__)

# sysfs battery nodes, tried in order
POWER_SUPPLY_GLOB = "/sys/class/power_supply/BAT*"

# Kernel status strings -> raw state tags
SYSFS_STATUS_MAP = {
    "charging": RawState.CHARGING,
    "full": RawState.CHARGED,
    # AC connected but charging is held (charge limit or top-off)
    "not charging": RawState.CHARGED,
    "discharging": RawState.DISCHARGING,
}

# INA219 wiring (3S Li-ion UPS HAT)
SHUNT_OHMS = 0.1
I2C_ADDRESS = 0x41
I2C_BUS = 1

# Current in mA above which the pack is charging
CHARGE_CURRENT_THRESHOLD = 10

# 3S Li-ion discharge curve (voltage -> percent)
DISCHARGE_CURVE = [
    (12.60, 100),
    (12.50, 95),
    (12.40, 90),
    (12.30, 85),
    (12.20, 80),
    (12.00, 75),
    (11.90, 70),
    (11.80, 65),
    (11.70, 60),
    (11.60, 55),
    (11.50, 50),
    (11.40, 45),
    (11.30, 40),
    (11.20, 35),
    (11.10, 30),
    (11.00, 25),
    (10.80, 20),
    (10.60, 15),
    (10.40, 10),
    (10.20, 7),
    (10.00, 5),
    (9.80, 3),
    (9.60, 2),
    (9.40, 1),
    (9.00, 0),
]

SOURCE_NAMES = ("sysfs", "psutil", "ina219")


def voltage_to_percent(voltage: float) -> float:
    """Convert pack voltage to percentage using the Li-ion discharge curve."""
    if voltage >= DISCHARGE_CURVE[0][0]:
        return 100.0
    if voltage <= DISCHARGE_CURVE[-1][0]:
        return 0.0

    for i in range(len(DISCHARGE_CURVE) - 1):
        v_high, p_high = DISCHARGE_CURVE[i]
        v_low, p_low = DISCHARGE_CURVE[i + 1]
        if v_low <= voltage <= v_high:
            ratio = (voltage - v_low) / (v_high - v_low)
            return p_low + ratio * (p_high - p_low)
    return 0.0


class PsutilSource:
    """Battery source backed by psutil."""

    name = "psutil"

    def query(self) -> RawSample:
        battery = psutil.sensors_battery()
        if battery is None:
            return RawSample(NO_BATTERY_PERCENT, RawState.NO_BATTERY.value)

        if battery.power_plugged is None:
            state = RawState.UNDETERMINED
        elif battery.power_plugged:
            state = RawState.CHARGED if battery.percent >= 100 else RawState.CHARGING
        else:
            state = RawState.DISCHARGING
        return RawSample(battery.percent, state.value)


class SysfsSource:
    """Battery source reading capacity and status from sysfs."""

    name = "sysfs"

    def __init__(self, battery_path: Optional[str] = None):
        self.battery_path = Path(battery_path) if battery_path else find_battery_path()

    def _read(self, filename: str) -> str:
        return (self.battery_path / filename).read_text().strip()

    def query(self) -> RawSample:
        if self.battery_path is None or not self.battery_path.exists():
            return RawSample(NO_BATTERY_PERCENT, RawState.NO_BATTERY.value)

        capacity = int(self._read("capacity"))
        status = self._read("status").lower()
        state = SYSFS_STATUS_MAP.get(status, RawState.UNDETERMINED)
        return RawSample(capacity, state.value)


class Ina219Source:
    """Battery source for an INA219-monitored UPS pack."""

    name = "ina219"

    def __init__(self, sensor=None):
        if sensor is None:
            if not HAS_INA219:
                raise RuntimeError("ina219 library is not installed")
            sensor = INA219(SHUNT_OHMS, address=I2C_ADDRESS, busnum=I2C_BUS)
            sensor.configure()
        self.sensor = sensor

    def query(self) -> RawSample:
        voltage = self.sensor.voltage()
        current = self.sensor.current()
        percent = voltage_to_percent(voltage)

        if current > CHARGE_CURRENT_THRESHOLD:
            state = RawState.CHARGING
        else:
            state = RawState.DISCHARGING
        return RawSample(percent, state.value)


def find_battery_path(pattern: str = POWER_SUPPLY_GLOB) -> Optional[Path]:
    """Return the first sysfs battery node, or None."""
    for path in sorted(glob.glob(pattern)):
        if Path(path, "capacity").exists():
            return Path(path)
    return None


def create_source(name: str):
    """Build a source by name."""
    if name == "sysfs":
        return SysfsSource()
    if name == "psutil":
        return PsutilSource()
    if name == "ina219":
        return Ina219Source()
    raise ValueError(f"unknown battery source: {name}")


def detect_source(name: Optional[str] = None):
    """Pick a battery source, either by name or the first usable one."""
    if name:
        return create_source(name)

    if find_battery_path() is not None:
        _LOGGER.debug("Using sysfs battery source")
        return SysfsSource()

    try:
        if psutil.sensors_battery() is not None:
            _LOGGER.debug("Using psutil battery source")
            return PsutilSource()
    except Exception:
        _LOGGER.debug("psutil battery probe failed", exc_info=True)

    if HAS_INA219:
        try:
            source = Ina219Source()
            _LOGGER.debug("Using INA219 battery source")
            return source
        except Exception as e:
            _LOGGER.warning("INA219 init error: %s", e)

    # psutil reports "no battery" on machines without one
    return PsutilSource()
