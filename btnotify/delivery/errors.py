"""
Delivery error taxonomy.

These are the reported outcomes of a delivery, not the retry signal. Transient
failures are OSErrors while attempts remain; DeliveryIOError reports them
once the retries are used up. The other errors are reported on the first
occurrence.
"""

from typing import Optional

from .models import FailureCause


class DeliveryError(Exception):
    """Base exception for delivery errors."""

    def __init__(self, message: str, cause: FailureCause):
        super().__init__(message)
        self.cause = cause


class EncodingError(DeliveryError):
    """Raised when a notification cannot be serialized."""

    def __init__(self, message: str):
        super().__init__(message, cause=FailureCause.ENCODING_ERROR)


class TargetNotFoundError(DeliveryError):
    """Raised when the target device cannot be resolved."""

    def __init__(self, target: str):
        super().__init__(f"Unable to find bluetooth device '{target}'", cause=FailureCause.TARGET_NOT_FOUND)
        self.target = target


class MediumUnavailableError(DeliveryError):
    """Raised when the adapter never became ready."""

    def __init__(self, message: str = "Bluetooth adapter is not available"):
        super().__init__(message, cause=FailureCause.MEDIUM_UNAVAILABLE)


class DeliveryIOError(DeliveryError):
    """Raised when session I/O kept failing after all retries."""

    def __init__(self, message: str, retries: int = 0, original: Optional[BaseException] = None):
        super().__init__(message, cause=FailureCause.IO_ERROR)
        self.retries = retries
        self.original = original
