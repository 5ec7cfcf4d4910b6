"""
BlueZ adapter control via bluetoothctl.

Linux only. Every call shells out to ``bluetoothctl`` in the default executor;
a missing binary, a timeout or a failed command surfaces as OSError.
"""

import asyncio
import functools
import logging
import re
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..delivery.models import BluetoothDevice

logger = logging.getLogger(__name__)

BLUETOOTHCTL = "bluetoothctl"
DEVICE_LINE = re.compile(r"^Device\s+([0-9A-Fa-f]{2}(?::[0-9A-Fa-f]{2}){5})\s*(.*)$")


@dataclass
class AdapterState:
    """Snapshot of ``bluetoothctl show``."""
    address: str = ""
    name: str = ""
    powered: bool = False
    discovering: bool = False

    @classmethod
    def parse(cls, output: str) -> "AdapterState":
        state = cls()
        for line in output.splitlines():
            line = line.strip()
            if line.startswith("Controller "):
                state.address = line.split()[1]
            elif ":" in line:
                key, _, value = line.partition(":")
                value = value.strip()
                if key == "Name":
                    state.name = value
                elif key == "Powered":
                    state.powered = value == "yes"
                elif key == "Discovering":
                    state.discovering = value == "yes"
        return state


def parse_devices(output: str) -> List[BluetoothDevice]:
    """Parse ``Device <address> <name>`` lines."""
    devices = []
    for line in output.splitlines():
        match = DEVICE_LINE.match(line.strip())
        if match:
            devices.append(BluetoothDevice(address=match.group(1).upper(), name=match.group(2).strip()))
    return devices


class BluezAdapter:
    """
    Medium driver for a local BlueZ controller.

    Usage:
        adapter = BluezAdapter()
        if not await adapter.is_enabled():
            await adapter.enable()
    """

    def __init__(self, controller: Optional[str] = None, timeout: float = 10.0):
        self.controller = controller
        self.timeout = timeout

    async def _run(self, *args: str, check: bool = True) -> str:
        cmd = [BLUETOOTHCTL, *args]
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(
                None,
                functools.partial(subprocess.run, cmd, capture_output=True, text=True, timeout=self.timeout),
            )
        except subprocess.TimeoutExpired as e:
            raise TimeoutError(f"{' '.join(cmd)} timed out after {self.timeout}s") from e

        if check and result.returncode != 0:
            raise OSError(f"{' '.join(cmd)} failed ({result.returncode}): {result.stderr.strip() or result.stdout.strip()}")
        return result.stdout

    async def state(self) -> AdapterState:
        args = ["show", self.controller] if self.controller else ["show"]
        output = await self._run(*args)
        if "Controller" not in output:
            raise OSError("No bluetooth controller available")
        return AdapterState.parse(output)

    async def is_enabled(self) -> bool:
        return (await self.state()).powered

    async def is_discovering(self) -> bool:
        return (await self.state()).discovering

    async def enable(self) -> None:
        await self._run("power", "on")
        logger.info("Bluetooth adapter powered on")

    async def disable(self) -> None:
        await self._run("power", "off")
        logger.info("Bluetooth adapter powered off")

    async def cancel_discovery(self) -> None:
        # Fails harmlessly when no discovery is running
        output = await self._run("scan", "off", check=False)
        logger.debug(f"Cancel discovery: {output.strip()}")

    async def paired_devices(self) -> List[BluetoothDevice]:
        try:
            output = await self._run("devices", "Paired")
        except OSError:
            # BlueZ < 5.65
            output = await self._run("paired-devices")
        return parse_devices(output)


class PairedDeviceResolver:
    """
    Resolves a target against configured aliases and the paired device list.

    A target matches a paired device by address (any case) or by exact name.
    """

    def __init__(self, adapter: BluezAdapter, known: Optional[Dict[str, str]] = None):
        self.adapter = adapter
        self.known = known or {}

    async def resolve(self, name: str) -> Optional[BluetoothDevice]:
        address = self.known.get(name)
        wanted = (address or name).upper()

        for device in await self.adapter.paired_devices():
            if device.address == wanted or device.name == name:
                return device

        if address:
            # Configured but not paired yet; the connect itself will tell
            return BluetoothDevice(address=address.upper(), name=name)
        return None


class StaticResolver:
    """Resolves targets from a fixed name -> address map."""

    def __init__(self, devices: Dict[str, str]):
        self.devices = {k: v.upper() for k, v in devices.items()}

    async def resolve(self, name: str) -> Optional[BluetoothDevice]:
        if name in self.devices:
            return BluetoothDevice(address=self.devices[name], name=name)
        for known_name, address in self.devices.items():
            if address == name.upper():
                return BluetoothDevice(address=address, name=known_name)
        return None
