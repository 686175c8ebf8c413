"""
Notification threshold settings, persisted as JSON.
Missing or malformed settings silently fall back to the defaults.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

_LOGGER = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".config" / "chargewatch"
SETTINGS_FILE = CONFIG_DIR / "settings.json"

SETTINGS_KEY = "notificationThresholds"
DEFAULT_LOW_THRESHOLD = 20
DEFAULT_HIGH_THRESHOLD = 80


@dataclass(frozen=True)
class Thresholds:
    """Notification thresholds in percent. low < high is not enforced."""

    low: int = DEFAULT_LOW_THRESHOLD
    high: int = DEFAULT_HIGH_THRESHOLD

    def as_dict(self) -> dict:
        return {"low": self.low, "high": self.high}


def _coerce(value, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def thresholds_from_dict(data) -> Thresholds:
    """Build Thresholds from a mapping, defaulting anything missing or invalid."""
    if not isinstance(data, dict):
        return Thresholds()
    return Thresholds(
        low=_coerce(data.get("low"), DEFAULT_LOW_THRESHOLD),
        high=_coerce(data.get("high"), DEFAULT_HIGH_THRESHOLD),
    )


class SettingsStore:
    """JSON-file settings store for notification thresholds."""

    def __init__(self, path: Path = SETTINGS_FILE):
        self.path = Path(path)

    def _load(self) -> dict:
        try:
            if self.path.exists():
                with open(self.path, "r") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    return data
                _LOGGER.warning("Ignoring malformed settings file %s", self.path)
        except (OSError, ValueError) as e:
            _LOGGER.warning("Could not read settings %s: %s", self.path, e)
        return {}

    def get(self) -> Thresholds:
        """Current thresholds (defaults when unset)."""
        return thresholds_from_dict(self._load().get(SETTINGS_KEY))

    def set(self, thresholds: Thresholds) -> None:
        """Persist thresholds atomically."""
        data = self._load()
        data[SETTINGS_KEY] = thresholds.as_dict()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_file, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp_file, self.path)
        _LOGGER.info("Saved notification thresholds: %s", thresholds.as_dict())
