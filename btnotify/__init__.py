"""
btnotify - Bluetooth notification delivery

Sends short notifications to a paired desktop over an RFCOMM channel, waiting
for the adapter to come up and retrying flaky connections.

Example:
    >>> from btnotify import BluetoothNotifier, Notification, NotificationType
    >>> notifier = BluetoothNotifier(config, adapter, sessions, resolver)
    >>> outcome = await notifier.send(Notification("dev", "1", NotificationType.PING), "Desktop")
"""

__version__ = "1.0.0"

from .config import Config, get_config
from .delivery import (
    BluetoothNotifier,
    DeliveryExecutor,
    DeliveryOutcome,
    Notification,
    NotificationType,
    ReadinessGate,
)

__all__ = [
    "__version__",
    "Config",
    "get_config",
    "BluetoothNotifier",
    "DeliveryExecutor",
    "DeliveryOutcome",
    "Notification",
    "NotificationType",
    "ReadinessGate",
]
