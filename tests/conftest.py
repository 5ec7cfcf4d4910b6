"""
Fake collaborators for delivery tests.
"""

import asyncio

import pytest

from btnotify.config import reset_config
from btnotify.delivery.models import BluetoothDevice


class FakeDriver:
    """Adapter whose power comes up ``settle_polls`` state reads after enable()."""

    def __init__(self, enabled=True, discovering=False, settle_polls=0, never_ready=False):
        self.enabled = enabled
        self.discovering = discovering
        self.settle_polls = settle_polls
        self.never_ready = never_ready
        self.calls = []
        self._pending = None

    async def is_enabled(self):
        self.calls.append("is_enabled")
        if self._pending is not None and not self.never_ready:
            if self._pending <= 0:
                self.enabled = True
                self._pending = None
            else:
                self._pending -= 1
        return self.enabled

    async def is_discovering(self):
        self.calls.append("is_discovering")
        return self.discovering

    async def enable(self):
        self.calls.append("enable")
        if not self.enabled:
            self._pending = self.settle_polls

    async def disable(self):
        self.calls.append("disable")
        self.enabled = False

    async def cancel_discovery(self):
        self.calls.append("cancel_discovery")
        self.discovering = False


class FakeSession:
    def __init__(self, transport, failing):
        self.transport = transport
        self.failing = failing

    async def write(self, data):
        await asyncio.sleep(0)
        if self.failing and self.transport.fail_on == "write":
            raise BrokenPipeError("broken pipe")
        self.transport.writes.append(data)

    async def close(self):
        self.transport.closes += 1
        self.transport.active -= 1
        if self.failing and self.transport.fail_on == "close":
            raise OSError("close failed")
        if self.failing and self.transport.close_raises:
            raise OSError("secondary close failure")


class FakeSessionTransport:
    """
    Session transport whose first ``fail_attempts`` attempts fail.

    ``fail_attempts=-1`` fails every attempt. ``fail_on`` picks the failing
    step: "open", "write" or "close".
    """

    def __init__(self, fail_attempts=0, fail_on="write", close_raises=False):
        self.fail_attempts = fail_attempts
        self.fail_on = fail_on
        self.close_raises = close_raises
        self.opens = 0
        self.closes = 0
        self.writes = []
        self.targets = []
        self.service_ids = []
        self.active = 0
        self.max_active = 0

    async def open_session(self, target, service_id):
        self.opens += 1
        self.targets.append(target)
        self.service_ids.append(service_id)
        failing = self.fail_attempts < 0 or self.opens <= self.fail_attempts
        await asyncio.sleep(0)
        if failing and self.fail_on == "open":
            raise ConnectionRefusedError("connection refused")
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        return FakeSession(self, failing)


class FakeResolver:
    def __init__(self, devices=None):
        self.devices = devices if devices is not None else {"AA:BB:CC:DD:EE:FF": "Desktop"}
        self.lookups = []

    async def resolve(self, name):
        self.lookups.append(name)
        for address, device_name in self.devices.items():
            if name in (address, device_name):
                return BluetoothDevice(address=address, name=device_name)
        return None


class CountingLock:
    def __init__(self):
        self.acquired = 0
        self.released = 0

    @property
    def held(self):
        return self.acquired > self.released

    def acquire(self):
        self.acquired += 1

    def release(self):
        self.released += 1


class RecordingSleep:
    """Records requested delays without waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture(autouse=True)
def fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def driver():
    return FakeDriver()


@pytest.fixture
def resolver():
    return FakeResolver()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def fakes():
    """Fake classes, for tests that build their own instances."""
    class Fakes:
        Driver = FakeDriver
        SessionTransport = FakeSessionTransport
        Resolver = FakeResolver
        Lock = CountingLock
        Sleep = RecordingSleep
    return Fakes
