"""
Delivery Executor for btnotify.

Sends one notification to a resolved device over a fresh RFCOMM session per
attempt:
1. Resolve the target (not retried)
2. Encode the notification (not retried)
3. Cancel any running discovery
4. Open, write, close; retry I/O failures with a fixed delay
"""

import asyncio
import logging
from typing import Awaitable, Callable, TYPE_CHECKING

from ..config import DEFAULT_RETRY_DELAY_MS, DEFAULT_RETRY_LIMIT
from .encoding import NotificationEncoder, TextEncoder
from .errors import DeliveryError, DeliveryIOError, EncodingError, TargetNotFoundError
from .locks import transport_lock
from .models import BluetoothDevice, DeliveryOutcome, Notification
from .retry import RetryExhausted, is_io_error, retry_async

if TYPE_CHECKING:
    from ..transport.base import MediumDriver, Session, SessionTransport, TargetResolver

logger = logging.getLogger(__name__)

# Service record UUID shared with desktop receivers. Changing it breaks
# every deployed peer.
NOTIFICATION_SERVICE_UUID = "7674047E-6E47-4BF0-831F-209E3F9DD23F"


class DeliveryExecutor:
    """
    Performs the connect/send/close cycle with bounded retries.

    Usage:
        executor = DeliveryExecutor(adapter, RfcommSessionTransport(), resolver)
        outcome = await executor.send(notification, "AA:BB:CC:DD:EE:FF")
    """

    def __init__(
        self,
        driver: "MediumDriver",
        sessions: "SessionTransport",
        resolver: "TargetResolver",
        encoder: NotificationEncoder = None,
        retry_limit: int = DEFAULT_RETRY_LIMIT,
        retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS,
        service_id: str = NOTIFICATION_SERVICE_UUID,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.driver = driver
        self.sessions = sessions
        self.resolver = resolver
        self.encoder = encoder or TextEncoder()
        self.retry_limit = retry_limit
        self.retry_delay_ms = retry_delay_ms
        self.service_id = service_id
        self._sleep = sleep

    async def send(self, notification: Notification, target: str) -> DeliveryOutcome:
        """
        Deliver a notification to a target.

        Never raises for delivery problems; the outcome carries the error.
        """
        async with transport_lock(self.driver):
            try:
                return await self._send_locked(notification, target)
            except DeliveryError as e:
                logger.error(f"Not sending bluetooth notification to {target}: {e}")
                return DeliveryOutcome.fail(e)

    async def _send_locked(self, notification: Notification, target: str) -> DeliveryOutcome:
        try:
            device = await self.resolver.resolve(target)
        except OSError as e:
            logger.warning(f"Device lookup for {target} failed: {e}")
            device = None
        if device is None:
            raise TargetNotFoundError(target)

        try:
            payload = self.encoder.encode(notification)
        except DeliveryError:
            raise
        except Exception as e:
            raise EncodingError(f"Unable to serialize message: {e}") from e

        # Discovery and connecting are mutually exclusive on the adapter
        try:
            await self.driver.cancel_discovery()
        except OSError as e:
            logger.warning(f"Unable to cancel discovery: {e}")

        async def attempt(n: int) -> None:
            await self._attempt(device, payload)

        def on_retry(n: int, error: BaseException) -> None:
            logger.debug(f"Waiting to retry ({n + 1}/{self.retry_limit}): {error}")

        try:
            _, retries = await retry_async(
                attempt,
                is_transient=is_io_error,
                max_retries=self.retry_limit,
                delay=self.retry_delay_ms / 1000.0,
                sleep=self._sleep,
                on_retry=on_retry,
            )
        except RetryExhausted as e:
            logger.error(f"Giving up sending bluetooth notification after {e.retries} retries: {e.last_error}")
            error = DeliveryIOError(str(e.last_error), retries=e.retries, original=e.last_error)
            return DeliveryOutcome.fail(error, retries=e.retries, attempts=e.retries + 1)

        logger.debug(f"Sent notification over Bluetooth ({retries} retries).")
        return DeliveryOutcome.ok(retries=retries, attempts=retries + 1)

    async def _attempt(self, device: BluetoothDevice, payload: bytes) -> None:
        """One open/write/close cycle. The session is closed exactly once."""
        logger.debug(f"Connecting to Bluetooth device {device}")
        session = await self.sessions.open_session(device, self.service_id)
        try:
            await session.write(payload)
        except BaseException:
            await self._close_quietly(session)
            raise
        await session.close()

    @staticmethod
    async def _close_quietly(session: "Session") -> None:
        try:
            await session.close()
        except Exception as e:
            logger.warning(f"Error closing bluetooth socket: {e}")
