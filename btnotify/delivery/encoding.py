"""
Notification encoders.

TextEncoder produces the UTF-8 line protocol that deployed desktop receivers
parse. CborEncoder produces a CBOR map, the same framing the BLE mesh uses.
"""

import logging
from typing import Protocol

import cbor2

from .errors import EncodingError
from .models import Notification

logger = logging.getLogger(__name__)


class NotificationEncoder(Protocol):
    """Turns a notification into the bytes written to a session."""

    def encode(self, notification: Notification) -> bytes:
        ...


class TextEncoder:
    """UTF-8 encoding of the v2 line protocol."""

    def __init__(self, charset: str = "utf-8"):
        self.charset = charset

    def encode(self, notification: Notification) -> bytes:
        try:
            return str(notification).encode(self.charset)
        except (UnicodeEncodeError, LookupError) as e:
            raise EncodingError(f"Unable to serialize message: {e}") from e


class CborEncoder:
    """CBOR map of the notification fields."""

    def encode(self, notification: Notification) -> bytes:
        try:
            return cbor2.dumps(notification.to_dict())
        except (cbor2.CBOREncodeError, TypeError, ValueError) as e:
            raise EncodingError(f"Unable to serialize message: {e}") from e


def get_encoder(name: str) -> NotificationEncoder:
    """Look up an encoder by its config name."""
    if name == "text":
        return TextEncoder()
    if name == "cbor":
        return CborEncoder()
    raise ValueError(f"Unknown encoding: {name}")
