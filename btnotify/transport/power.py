"""
Liveness locks that keep the host awake while waiting on the adapter.
"""

import logging
import shutil
import subprocess
import threading
from typing import Optional

logger = logging.getLogger(__name__)

INHIBIT_WHO = "btnotify"
INHIBIT_WHY = "Waiting for Bluetooth to send a notification"


class NullLock:
    """Liveness lock for hosts that never suspend."""

    def __init__(self):
        self.held = 0

    def acquire(self) -> None:
        self.held += 1

    def release(self) -> None:
        if self.held > 0:
            self.held -= 1


class InhibitLock:
    """
    Holds a systemd sleep inhibitor while acquired.

    The inhibitor is a ``systemd-inhibit`` child process that lives until
    release. Acquisitions are counted, so nested holders share one process.
    Without systemd-inhibit on PATH this behaves like NullLock.
    """

    def __init__(self, who: str = INHIBIT_WHO, why: str = INHIBIT_WHY):
        self.who = who
        self.why = why
        self._monitor = threading.Lock()
        self._process: Optional[subprocess.Popen] = None
        self._count = 0

    @property
    def held(self) -> bool:
        return self._count > 0

    def acquire(self) -> None:
        with self._monitor:
            self._count += 1
            if self._process is None:
                self._process = self._spawn()

    def release(self) -> None:
        with self._monitor:
            if self._count == 0:
                return
            self._count -= 1
            if self._count == 0 and self._process is not None:
                process, self._process = self._process, None
                process.terminate()
                try:
                    process.wait(timeout=2)
                except subprocess.TimeoutExpired:
                    process.kill()

    def _spawn(self) -> Optional[subprocess.Popen]:
        binary = shutil.which("systemd-inhibit")
        if binary is None:
            logger.debug("systemd-inhibit not found, not inhibiting sleep")
            return None
        try:
            return subprocess.Popen(
                [binary, "--what=sleep", f"--who={self.who}", f"--why={self.why}", "--mode=block",
                 "sleep", "infinity"],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning(f"Unable to inhibit sleep: {e}")
            return None
