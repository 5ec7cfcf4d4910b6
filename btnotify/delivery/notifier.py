"""
Bluetooth notification method.

Sends each notification over a short-lived RFCOMM session. If the adapter is
not ready, the send is delayed behind a ReadinessGate (when the adapter may be
enabled automatically, or when it is only busy discovering).
"""

import asyncio
import logging
from typing import Callable, List, Optional, TYPE_CHECKING

from ..config import Config
from .encoding import NotificationEncoder, get_encoder
from .errors import DeliveryError, DeliveryIOError, MediumUnavailableError
from .executor import DeliveryExecutor, NOTIFICATION_SERVICE_UUID
from .locks import transport_lock
from .models import DeliveryOutcome, Notification
from .readiness import BluetoothReadinessPolicy, ReadinessGate
from ..transport.power import NullLock

if TYPE_CHECKING:
    from ..transport.base import LivenessLock, MediumDriver, SessionTransport, TargetResolver

logger = logging.getLogger(__name__)

# on_done(notification, target, error or None)
NotificationCallback = Callable[[Notification, str, Optional[DeliveryError]], None]


class BluetoothNotifier:
    """
    Entry point for sending notifications over Bluetooth.

    Usage:
        notifier = BluetoothNotifier(config, adapter, RfcommSessionTransport(), resolver)
        task = notifier.send_notification(notification, "Desktop", on_done)
        outcome = await task
    """

    name = "bluetooth"

    def __init__(
        self,
        config: Config,
        driver: Optional["MediumDriver"],
        sessions: "SessionTransport",
        resolver: "TargetResolver",
        encoder: Optional[NotificationEncoder] = None,
        liveness_lock: Optional["LivenessLock"] = None,
        service_id: str = NOTIFICATION_SERVICE_UUID,
    ):
        config.validate()
        self.config = config
        self.driver = driver
        self.liveness_lock = liveness_lock
        self.executor = DeliveryExecutor(
            driver,
            sessions,
            resolver,
            encoder=encoder or get_encoder(config.encoding),
            retry_limit=config.retry_limit,
            retry_delay_ms=config.retry_delay_ms,
            service_id=service_id,
        )
        self._tasks: set = set()

    def is_enabled(self) -> bool:
        return self.config.method_enabled

    def get_targets(self) -> List[str]:
        return [self.config.target_device] if self.config.target_device else []

    def send_notification(
        self,
        notification: Notification,
        target: str,
        callback: NotificationCallback,
    ) -> "asyncio.Task[DeliveryOutcome]":
        """
        Start delivering a notification and return immediately.

        The callback is invoked exactly once when delivery finishes. The
        returned task resolves to the same outcome.
        """
        task = asyncio.create_task(self._run(notification, target, callback))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def send(self, notification: Notification, target: str) -> DeliveryOutcome:
        """Deliver and wait for the outcome, without a callback."""
        return await self._deliver(notification, target)

    async def _run(
        self,
        notification: Notification,
        target: str,
        callback: NotificationCallback,
    ) -> DeliveryOutcome:
        try:
            outcome = await self._deliver(notification, target)
        except Exception as e:
            logger.exception(f"Unexpected error sending bluetooth notification: {e}")
            outcome = DeliveryOutcome.fail(DeliveryIOError(str(e), original=e))

        try:
            callback(notification, target, outcome.error)
        except Exception as e:
            logger.error(f"Notification callback error: {e}")
        return outcome

    async def _deliver(self, notification: Notification, target: str) -> DeliveryOutcome:
        if self.driver is None:
            logger.error("No bluetooth support")
            return DeliveryOutcome.fail(MediumUnavailableError("No bluetooth support"))

        try:
            enabled = await self.driver.is_enabled()
            discovering = await self.driver.is_discovering()
        except OSError as e:
            logger.error(f"Unable to read bluetooth adapter state: {e}")
            return DeliveryOutcome.fail(MediumUnavailableError(f"Bluetooth adapter state unknown: {e}"))

        if enabled and not discovering:
            return await self.executor.send(notification, target)

        # Delay the notification if either bluetooth is disabled, or if it's
        # not ready because it's in discovery mode.
        if self.config.auto_enable_medium:
            logger.debug("Enabling bluetooth and delaying notification")
            return await self._gate().run(lambda: self.executor.send(notification, target), enable=True)

        if discovering:
            logger.debug("Delaying bluetooth notification until discovery is done")
            try:
                async with transport_lock(self.driver):
                    await self.driver.cancel_discovery()
            except OSError as e:
                logger.warning(f"Unable to cancel discovery: {e}")
            return await self._gate().run(lambda: self.executor.send(notification, target), enable=False)

        logger.error("Not sending bluetooth notification - not enabled")
        return DeliveryOutcome.fail(MediumUnavailableError("Bluetooth is not enabled"))

    def _gate(self) -> ReadinessGate:
        policy = BluetoothReadinessPolicy(self.driver, self.liveness_lock or NullLock())
        return ReadinessGate(
            policy,
            poll_interval_ms=self.config.readiness_poll_interval_ms,
            max_wait_ms=self.config.readiness_max_wait_ms,
            max_polls=self.config.readiness_max_polls,
            serialize_on=self.driver,
        )
