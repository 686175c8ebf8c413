"""
Output sinks: desktop notifications and the shared state file.
Sinks are fire-and-forget; the poller logs and ignores their failures.
"""

import json
import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Optional

from .notifications import NotificationEvent
from .readings import BatteryReading
from .session import SessionSnapshot

_LOGGER = logging.getLogger(__name__)

# Shared state file for other UIs (status, conky) to read
BATTERY_STATE_FILE = Path("/tmp/chargewatch_state.json")

APP_NAME = "Charge Watch"


class DesktopNotifier:
    """Send notifications via notify-send (works with mako, dunst, etc.)."""

    def __init__(self, command: str = "notify-send"):
        self.command = shutil.which(command)
        if self.command is None:
            _LOGGER.info("%s not found, notifications disabled", command)

    @property
    def available(self) -> bool:
        return self.command is not None

    def notify(self, event: NotificationEvent) -> None:
        if not self.available:
            return
        cmd = [
            self.command,
            "-u", event.urgency,
            f"--app-name={APP_NAME}",
            event.title,
            event.body,
        ]
        subprocess.run(cmd, timeout=5, capture_output=True)


class StateFileSink:
    """Write each reading to a JSON file for other UIs."""

    def __init__(self, path: Path = BATTERY_STATE_FILE):
        self.path = Path(path)

    def show(self, reading: BatteryReading, snapshot: Optional[SessionSnapshot] = None) -> None:
        state = reading.as_dict()
        if snapshot is not None:
            state.update(
                {
                    "timeAt100": snapshot.time_at_100_minutes,
                    "totalChargeTime": snapshot.total_charge_minutes,
                    "totalOverchargeTime": snapshot.total_overcharge_minutes,
                }
            )
        tmp_file = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_file, "w") as f:
            json.dump(state, f)
        os.replace(tmp_file, self.path)

    def close(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass


def read_shared_state(path: Path = BATTERY_STATE_FILE) -> Optional[dict]:
    """Load the shared state file, or None if it is missing or unreadable."""
    try:
        with open(path, "r") as f:
            state = json.load(f)
    except (OSError, ValueError):
        return None
    return state if isinstance(state, dict) else None
