"""
Process lifecycle: single-instance PID file, signal handling and an
idempotent shutdown that can be triggered from several places at once
(tray Quit, SIGTERM, SIGINT).
"""

import logging
import os
import signal
from typing import Callable, List, Optional

_LOGGER = logging.getLogger(__name__)

PID_FILE = "/tmp/chargewatch.pid"


def is_running(pid_file: str = PID_FILE) -> Optional[int]:
    """Return the PID of another live instance, clearing stale PID files."""
    if os.path.exists(pid_file):
        try:
            with open(pid_file, "r") as f:
                pid = int(f.read().strip())
            if pid != os.getpid():
                os.kill(pid, 0)
                return pid
        except (ValueError, ProcessLookupError, PermissionError):
            try:
                os.remove(pid_file)
            except OSError:
                pass
    return None


def write_pid(pid_file: str = PID_FILE) -> None:
    with open(pid_file, "w") as f:
        f.write(str(os.getpid()))


class Lifecycle:
    """Runs registered cleanups exactly once, then quits the main loop."""

    def __init__(self, quit_callback: Optional[Callable[[], None]] = None, pid_file: str = PID_FILE):
        self.quit_callback = quit_callback
        self.pid_file = pid_file
        self._cleanups: List[Callable[[], None]] = []
        self._shutting_down = False

    @property
    def shutting_down(self) -> bool:
        return self._shutting_down

    def register(self, cleanup: Callable[[], None]) -> None:
        """Add a cleanup; cleanups run in reverse registration order."""
        self._cleanups.append(cleanup)

    def acquire(self) -> bool:
        """Claim the PID file. False if another instance is running."""
        other = is_running(self.pid_file)
        if other:
            _LOGGER.error("Already running (PID %d)", other)
            return False
        write_pid(self.pid_file)
        return True

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGTERM, self._on_signal)
        signal.signal(signal.SIGINT, self._on_signal)

    def _on_signal(self, signum, frame):
        _LOGGER.info("Received %s, cleaning up", signal.Signals(signum).name)
        self.shutdown()

    def shutdown(self) -> None:
        """Clean up and quit. Later calls are no-ops."""
        if self._shutting_down:
            return
        self._shutting_down = True
        _LOGGER.info("Starting app cleanup...")

        for cleanup in reversed(self._cleanups):
            try:
                cleanup()
            except Exception:
                _LOGGER.exception("Error during cleanup")

        try:
            os.remove(self.pid_file)
        except FileNotFoundError:
            pass
        except OSError as e:
            _LOGGER.warning("Could not remove PID file %s: %s", self.pid_file, e)

        if self.quit_callback is not None:
            self.quit_callback()
