"""
Readiness gate for the Bluetooth adapter.

Brings the adapter from disabled (or busy discovering) to ready, then runs the
wrapped send once. Gives up after a bounded wait.

State machine:
    NOT_READY -> SETTLING -> READY     (send runs once)
                          -> TIMED_OUT (send never runs)

A liveness lock is held for the whole wait so the host does not suspend. The
adapter is never disabled by the gate, not even after a timeout.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional, Protocol, TYPE_CHECKING

from ..config import DEFAULT_MAX_WAIT_MS, DEFAULT_POLL_INTERVAL_MS
from .errors import MediumUnavailableError
from .locks import gate_lock, transport_lock
from .models import DeliveryOutcome, ReadinessState

if TYPE_CHECKING:
    from ..transport.base import LivenessLock, MediumDriver

logger = logging.getLogger(__name__)


class ReadinessPolicy(Protocol):
    """Transport-specific readiness operations used by the gate."""

    def acquire_lock(self) -> None:
        ...

    def release_lock(self) -> None:
        ...

    async def is_medium_ready(self) -> bool:
        ...

    async def is_medium_enabled(self) -> bool:
        ...

    async def set_medium_enabled(self, enabled: bool) -> None:
        ...


class BluetoothReadinessPolicy:
    """Ready means the adapter is powered and not discovering."""

    def __init__(self, driver: "MediumDriver", lock: "LivenessLock"):
        self.driver = driver
        self.lock = lock

    def acquire_lock(self) -> None:
        self.lock.acquire()

    def release_lock(self) -> None:
        self.lock.release()

    async def is_medium_ready(self) -> bool:
        return await self.driver.is_enabled() and not await self.driver.is_discovering()

    async def is_medium_enabled(self) -> bool:
        return await self.driver.is_enabled()

    async def set_medium_enabled(self, enabled: bool) -> None:
        async with transport_lock(self.driver):
            if enabled:
                await self.driver.enable()
            else:
                await self.driver.disable()


@asynccontextmanager
async def held(policy: ReadinessPolicy) -> AsyncIterator[None]:
    """
    Hold the policy's liveness lock; released on every exit path.

    Acquiring and releasing may spawn or reap a helper process, so both run in
    the default executor. They are shielded so a cancelled worker never leaves
    an acquire without its release.
    """
    loop = asyncio.get_running_loop()
    acquiring = loop.run_in_executor(None, policy.acquire_lock)
    try:
        await asyncio.shield(acquiring)
    except asyncio.CancelledError:
        acquiring.add_done_callback(lambda f: _release_after_acquire(loop, policy, f))
        raise

    try:
        yield
    finally:
        await asyncio.shield(loop.run_in_executor(None, policy.release_lock))


def _release_after_acquire(loop: asyncio.AbstractEventLoop, policy: ReadinessPolicy, acquired: asyncio.Future) -> None:
    if not acquired.cancelled() and acquired.exception() is None:
        loop.run_in_executor(None, policy.release_lock)


class ReadinessGate:
    """
    Waits for the medium to become ready before delegating a send.

    Usage:
        gate = ReadinessGate(BluetoothReadinessPolicy(adapter, InhibitLock()))
        outcome = await gate.run(lambda: executor.send(notification, target))
    """

    def __init__(
        self,
        policy: ReadinessPolicy,
        poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
        max_wait_ms: int = DEFAULT_MAX_WAIT_MS,
        max_polls: Optional[int] = None,
        serialize_on: object = None,
    ):
        self.policy = policy
        self.poll_interval_ms = poll_interval_ms
        self.max_wait_ms = max_wait_ms
        self.max_polls = max_polls
        # Gates sharing this key run one at a time
        self.serialize_on = serialize_on if serialize_on is not None else policy

        self.state = ReadinessState.NOT_READY
        self.previous_enabled_state: Optional[bool] = None
        self.polls = 0

    async def run(
        self,
        send: Callable[[], Awaitable[DeliveryOutcome]],
        enable: bool = True,
    ) -> DeliveryOutcome:
        """
        Make the medium ready, then call ``send`` exactly once.

        Args:
            send: The wrapped delivery, invoked only on READY
            enable: Issue an enable before waiting (False just waits, e.g.
                for a cancelled discovery to wind down)

        Returns:
            The outcome of ``send``, or a MEDIUM_UNAVAILABLE failure on timeout
        """
        async with gate_lock(self.serialize_on), held(self.policy):
            if await self._wait_until_ready(enable):
                return await send()

        error = MediumUnavailableError(
            f"Bluetooth adapter not ready after {self.max_wait_ms}ms ({self.polls} polls)"
        )
        logger.error(f"Not sending bluetooth notification: {error}")
        return DeliveryOutcome.fail(error)

    async def _wait_until_ready(self, enable: bool) -> bool:
        self.state = ReadinessState.NOT_READY
        self.polls = 0
        try:
            self.previous_enabled_state = await self.policy.is_medium_enabled()
        except OSError as e:
            logger.warning(f"Unable to read adapter state: {e}")
            self.previous_enabled_state = None

        if enable:
            logger.debug("Enabling bluetooth adapter")
            try:
                await self.policy.set_medium_enabled(True)
            except OSError as e:
                # Keep polling, the adapter may still come up on its own
                logger.warning(f"Enabling bluetooth failed: {e}")

        self.state = ReadinessState.SETTLING
        loop = asyncio.get_running_loop()
        interval = self.poll_interval_ms / 1000.0
        deadline = loop.time() + self.max_wait_ms / 1000.0

        while True:
            self.polls += 1
            if await self._poll():
                self.state = ReadinessState.READY
                logger.debug(f"Bluetooth ready after {self.polls} polls")
                return True

            remaining = deadline - loop.time()
            if remaining <= 0 or (self.max_polls is not None and self.polls >= self.max_polls):
                self.state = ReadinessState.TIMED_OUT
                return False

            await asyncio.sleep(min(interval, remaining))

    async def _poll(self) -> bool:
        try:
            return await self.policy.is_medium_ready()
        except OSError as e:
            logger.debug(f"Readiness poll failed: {e}")
            return False
