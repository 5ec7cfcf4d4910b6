"""RFCOMM sessions over Linux Bluetooth sockets."""

import asyncio
import functools
import logging
import re
import socket
import subprocess
from typing import Dict, Optional, Tuple

from ..delivery.errors import MediumUnavailableError
from ..delivery.models import BluetoothDevice

logger = logging.getLogger(__name__)

SDPTOOL = "sdptool"
CHANNEL_LINE = re.compile(r"Channel:\s*(\d+)")


def _require_bluetooth_sockets() -> None:
    # Not an OSError: a missing socket family is permanent and must not be retried
    if not hasattr(socket, "AF_BLUETOOTH") or not hasattr(socket, "BTPROTO_RFCOMM"):
        raise MediumUnavailableError("This Python build does not expose Bluetooth socket APIs (AF_BLUETOOTH/BTPROTO_RFCOMM)")


def parse_sdp_channel(output: str) -> Optional[int]:
    """First RFCOMM channel in ``sdptool search`` output."""
    match = CHANNEL_LINE.search(output)
    return int(match.group(1)) if match else None


class RfcommSession:
    """An open RFCOMM stream socket."""

    def __init__(self, sock: socket.socket, device: BluetoothDevice, channel: int):
        self._sock = sock
        self.device = device
        self.channel = channel
        self.closed = False

    async def write(self, data: bytes) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._sock.sendall, data)

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._sock.close)


class RfcommSessionTransport:
    """
    Opens RFCOMM sessions to a device for a service record UUID.

    The channel comes from ``channel`` when given, otherwise from an SDP
    search for the service UUID on the device. Looked-up channels are cached
    per (address, service) until a connect to them fails.
    """

    def __init__(self, channel: Optional[int] = None, connect_timeout: float = 10.0, sdp_timeout: float = 10.0):
        self.channel = channel
        self.connect_timeout = connect_timeout
        self.sdp_timeout = sdp_timeout
        self._channels: Dict[Tuple[str, str], int] = {}

    async def open_session(self, target: BluetoothDevice, service_id: str) -> RfcommSession:
        _require_bluetooth_sockets()
        channel = await self._channel_for(target, service_id)
        loop = asyncio.get_running_loop()
        try:
            sock = await loop.run_in_executor(None, functools.partial(self._connect, target.address, channel))
        except OSError:
            # The peer may have re-registered on another channel; look it up again next time
            if self._channels.pop((target.address, service_id.upper()), None) is not None:
                logger.debug(f"Dropped cached RFCOMM channel {channel} for {target}")
            raise
        return RfcommSession(sock, target, channel)

    def _connect(self, address: str, channel: int) -> socket.socket:
        sock = socket.socket(socket.AF_BLUETOOTH, socket.SOCK_STREAM, socket.BTPROTO_RFCOMM)
        try:
            sock.settimeout(self.connect_timeout)
            sock.connect((address, channel))
        except OSError:
            sock.close()
            raise
        return sock

    async def _channel_for(self, target: BluetoothDevice, service_id: str) -> int:
        if self.channel is not None:
            return self.channel

        key = (target.address, service_id.upper())
        if key in self._channels:
            return self._channels[key]

        cmd = [SDPTOOL, "search", "--bdaddr", target.address, service_id]
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                None,
                functools.partial(subprocess.run, cmd, capture_output=True, text=True, timeout=self.sdp_timeout),
            )
        except subprocess.TimeoutExpired as e:
            raise TimeoutError(f"SDP search on {target.address} timed out") from e

        channel = parse_sdp_channel(result.stdout)
        if channel is None:
            # The peer may not be listening yet; worth retrying
            raise ConnectionRefusedError(f"Service {service_id} not advertised by {target}")

        logger.debug(f"Service {service_id} on {target} uses RFCOMM channel {channel}")
        self._channels[key] = channel
        return channel
