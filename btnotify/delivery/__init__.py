"""
Notification delivery over a Bluetooth RFCOMM channel.

DeliveryExecutor does the connect/send/close cycle with retries.
ReadinessGate waits for the adapter to come up before delegating to it.
BluetoothNotifier picks between the two for each request.
"""

from .models import (
    BluetoothDevice,
    DeliveryOutcome,
    FailureCause,
    Notification,
    NotificationType,
    ReadinessState,
)
from .errors import (
    DeliveryError,
    DeliveryIOError,
    EncodingError,
    MediumUnavailableError,
    TargetNotFoundError,
)
from .encoding import CborEncoder, TextEncoder, get_encoder
from .retry import RetryExhausted, retry_async
from .executor import DeliveryExecutor, NOTIFICATION_SERVICE_UUID
from .readiness import BluetoothReadinessPolicy, ReadinessGate
from .notifier import BluetoothNotifier

__all__ = [
    "BluetoothDevice",
    "DeliveryOutcome",
    "FailureCause",
    "Notification",
    "NotificationType",
    "ReadinessState",
    "DeliveryError",
    "DeliveryIOError",
    "EncodingError",
    "MediumUnavailableError",
    "TargetNotFoundError",
    "CborEncoder",
    "TextEncoder",
    "get_encoder",
    "RetryExhausted",
    "retry_async",
    "DeliveryExecutor",
    "NOTIFICATION_SERVICE_UUID",
    "BluetoothReadinessPolicy",
    "ReadinessGate",
    "BluetoothNotifier",
]
