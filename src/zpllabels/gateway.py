"""
Device gateway interface.

A gateway finds the printer to use and sends raw ZPL to it. The print
orchestrator only talks to this interface, so a bridge (Browser Print,
raw TCP, Bluetooth LE, or a test fake) can be swapped in freely.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

from .label import LabelPrinterError


# --- Exception Classes ---


class GatewayError(LabelPrinterError):
    """Base exception for device gateway errors."""

    pass


class DeviceUnavailable(GatewayError):
    """The bridge to the printer is not present or not responding."""

    pass


class NoDeviceFound(GatewayError):
    """The bridge is up but no printer is registered or reachable."""

    pass


class SendFailed(GatewayError):
    """A command stream could not be delivered to the printer."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


@dataclass
class Device:
    """
    A printer as reported by a bridge.

    Attributes:
        name: Display name
        uid: Bridge-specific identifier (serial, host:port, BLE address)
        connection: Transport ("network", "usb", "bluetooth-le", ...)
        raw: The bridge's own descriptor, handed back unchanged on send
    """
    name: str
    uid: str
    connection: str = ""
    device_type: str = "printer"
    provider: str = ""
    manufacturer: str = ""
    version: Optional[int] = None
    raw: Any = field(default=None, repr=False, compare=False)

    def __str__(self) -> str:
        if self.connection:
            return f"{self.name} [{self.uid}] via {self.connection}"
        return f"{self.name} [{self.uid}]"


class DeviceGateway(ABC):
    """Boundary to the printer bridge: resolve a device, send to it."""

    def __init__(self):
        self._debug = False

    def set_debug(self, enabled: bool):
        """Enable/disable debug output."""
        self._debug = enabled

    def _log(self, message: str):
        """Log a debug message if enabled."""
        if self._debug:
            logging.getLogger(type(self).__module__).debug(
                "[%s] %s", type(self).__name__, message
            )

    @abstractmethod
    async def resolve_default_device(self) -> Device:
        """
        Find the printer to print on.

        Raises:
            DeviceUnavailable: If the bridge is absent
            NoDeviceFound: If no printer is registered
        """

    @abstractmethod
    async def send(self, device: Device, command_stream: str) -> None:
        """
        Send a raw command stream to the device.

        Returns once the bridge reports the data as delivered.

        Raises:
            SendFailed: On any transport or device-side error
        """
