"""
Transport layer for btnotify.

- bluez: adapter control and device lookup through bluetoothctl
- rfcomm: RFCOMM stream sessions over Linux Bluetooth sockets
- power: sleep inhibitors held while waiting on the adapter
"""

from .bluez import BluezAdapter, PairedDeviceResolver, StaticResolver, AdapterState
from .rfcomm import RfcommSession, RfcommSessionTransport
from .power import InhibitLock, NullLock

__all__ = [
    "BluezAdapter",
    "PairedDeviceResolver",
    "StaticResolver",
    "AdapterState",
    "RfcommSession",
    "RfcommSessionTransport",
    "InhibitLock",
    "NullLock",
]
