"""
Data model for notification delivery.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class NotificationType(Enum):
    """Kinds of notification understood by desktop peers."""
    RING = "RING"
    SMS = "SMS"
    MMS = "MMS"
    BATTERY = "BATTERY"
    VOICEMAIL = "VOICEMAIL"
    PING = "PING"
    USER = "USER"


class FailureCause(Enum):
    """Why a delivery failed."""
    ENCODING_ERROR = "encoding_error"
    TARGET_NOT_FOUND = "target_not_found"
    MEDIUM_UNAVAILABLE = "medium_unavailable"
    IO_ERROR = "io_error"


class ReadinessState(Enum):
    """Readiness gate state machine."""
    NOT_READY = "not_ready"
    SETTLING = "settling"
    READY = "ready"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class Notification:
    """
    A notification to send to a desktop peer.

    The string form is the v2 line protocol:
    v2/<device_id>/<notification_id>/<TYPE>/<data>/<content>
    """
    device_id: str
    notification_id: str
    type: NotificationType
    content: str = ""
    data: str = ""

    PROTOCOL_VERSION = "v2"

    def __str__(self) -> str:
        return "/".join([
            self.PROTOCOL_VERSION,
            self.device_id,
            self.notification_id,
            self.type.value,
            self.data,
            self.content,
        ])

    def to_dict(self) -> dict:
        return {
            "version": self.PROTOCOL_VERSION,
            "device_id": self.device_id,
            "notification_id": self.notification_id,
            "type": self.type.value,
            "data": self.data,
            "content": self.content,
        }


@dataclass(frozen=True)
class BluetoothDevice:
    """A resolved target device."""
    address: str
    name: str = ""

    def __str__(self) -> str:
        return f"{self.name} ({self.address})" if self.name else self.address


@dataclass
class DeliveryOutcome:
    """Result of one delivery request."""

    success: bool
    cause: Optional[FailureCause] = None
    error: Optional[Exception] = None
    retries: int = 0
    attempts: int = 0

    @classmethod
    def ok(cls, **kwargs) -> "DeliveryOutcome":
        """Create a successful outcome."""
        return cls(success=True, **kwargs)

    @classmethod
    def fail(cls, error: Exception, **kwargs) -> "DeliveryOutcome":
        """Create a failed outcome from a DeliveryError."""
        cause = getattr(error, "cause", None) or FailureCause.IO_ERROR
        return cls(success=False, cause=cause, error=error, **kwargs)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "cause": self.cause.value if self.cause else None,
            "error": str(self.error) if self.error else None,
            "retries": self.retries,
            "attempts": self.attempts,
        }
