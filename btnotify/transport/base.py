"""
Collaborator interfaces for the delivery engine.

Concrete implementations live next to this module (bluez, rfcomm, power);
tests supply fakes with the same shape.
"""

from typing import Optional, Protocol

from ..delivery.models import BluetoothDevice


class MediumDriver(Protocol):
    """Controls the local Bluetooth adapter."""

    async def is_enabled(self) -> bool:
        ...

    async def is_discovering(self) -> bool:
        ...

    async def enable(self) -> None:
        ...

    async def disable(self) -> None:
        ...

    async def cancel_discovery(self) -> None:
        ...


class Session(Protocol):
    """One open connection to a target. Failures raise OSError."""

    async def write(self, data: bytes) -> None:
        ...

    async def close(self) -> None:
        ...


class SessionTransport(Protocol):
    """Opens sessions to a target for a service id."""

    async def open_session(self, target: BluetoothDevice, service_id: str) -> Session:
        ...


class TargetResolver(Protocol):
    """Maps a configured target name or address to a device."""

    async def resolve(self, name: str) -> Optional[BluetoothDevice]:
        ...


class LivenessLock(Protocol):
    """Keeps the host from suspending while held."""

    def acquire(self) -> None:
        ...

    def release(self) -> None:
        ...
