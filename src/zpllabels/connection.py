"""
Bluetooth LE gateway for Zebra mobile printers.

Link-OS printers (ZQ/ZD series) expose the Zebra Parser Service over BLE.
ZPL written to its "to printer" characteristic is parsed exactly like data
received on any other port. Uses the Bleak library.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakError

from .gateway import Device, DeviceGateway, DeviceUnavailable, NoDeviceFound, SendFailed


@dataclass
class PrinterInfo:
    """Information about a discovered printer."""
    name: str
    address: str
    rssi: int

    def __str__(self) -> str:
        return f"{self.name} [{self.address}] RSSI: {self.rssi} dB"

    def to_device(self) -> Device:
        return Device(
            name=self.name,
            uid=self.address,
            connection="bluetooth-le",
            manufacturer="Zebra Technologies",
        )


class BLEGateway(DeviceGateway):
    """Sends ZPL to a Zebra printer over Bluetooth LE."""

    # Advertised name fragments of Zebra printers
    DEVICE_PATTERNS = ["ZEBRA", "ZQ", "ZD", "ZR", "XX"]

    # Zebra Parser Service (Link-OS BLE)
    PARSER_SERVICE = "38eb4a80-c570-11e3-9507-0002a5d5c51b"
    CHAR_FROM_PRINTER = "38eb4a81-c570-11e3-9507-0002a5d5c51b"
    CHAR_TO_PRINTER = "38eb4a82-c570-11e3-9507-0002a5d5c51b"

    # Safe write size for most BLE links (ATT MTU 23 leaves 20)
    DEFAULT_CHUNK_SIZE = 20
    DEFAULT_SCAN_TIMEOUT = 10.0

    def __init__(self, address: Optional[str] = None,
                 scan_timeout: float = DEFAULT_SCAN_TIMEOUT,
                 chunk_delay_ms: float = 10.0):
        """
        Args:
            address: Printer address; if omitted the strongest printer found
                by a scan is used
            scan_timeout: Scan duration in seconds
            chunk_delay_ms: Delay between written chunks in milliseconds
        """
        super().__init__()
        self.address = address
        self.scan_timeout = scan_timeout
        self.chunk_delay_ms = chunk_delay_ms

    @classmethod
    def _matches(cls, name: str, service_uuids: list[str]) -> bool:
        if cls.PARSER_SERVICE in (u.lower() for u in service_uuids):
            return True
        return any(pattern in name.upper() for pattern in cls.DEVICE_PATTERNS)

    async def scan(self) -> list[PrinterInfo]:
        """
        Scan for Zebra printers, strongest signal first.

        Raises:
            DeviceUnavailable: If no Bluetooth adapter can be used
        """
        try:
            devices = await BleakScanner.discover(
                timeout=self.scan_timeout, return_adv=True
            )
        except (BleakError, OSError) as e:
            raise DeviceUnavailable(f"Bluetooth not available: {e}") from e

        printers = []
        for device, adv_data in devices.values():
            name = device.name or adv_data.local_name or ""
            if self._matches(name, adv_data.service_uuids or []):
                printers.append(PrinterInfo(
                    name=name,
                    address=device.address,
                    rssi=adv_data.rssi if adv_data.rssi is not None else -100,
                ))

        return sorted(printers, key=lambda p: p.rssi, reverse=True)

    async def resolve_default_device(self) -> Device:
        if self.address:
            return Device(
                name=self.address,
                uid=self.address,
                connection="bluetooth-le",
                manufacturer="Zebra Technologies",
            )

        self._log(f"Scanning for printers ({self.scan_timeout}s)...")
        printers = await self.scan()
        if not printers:
            raise NoDeviceFound("No Zebra Bluetooth printer found")

        self._log(f"Using {printers[0]}")
        return printers[0].to_device()

    @staticmethod
    def _chunk_size(client: BleakClient, default: int) -> int:
        """Largest write for the negotiated MTU (3 bytes of ATT overhead)."""
        mtu = getattr(client, "mtu_size", None)
        if mtu:
            return max(mtu - 3, default)
        return default

    async def send(self, device: Device, command_stream: str) -> None:
        data = command_stream.encode("utf-8")

        try:
            async with BleakClient(device.uid) as client:
                chunk_size = self._chunk_size(client, self.DEFAULT_CHUNK_SIZE)
                total_chunks = (len(data) + chunk_size - 1) // chunk_size
                self._log(f"Sending {len(data)} bytes in {total_chunks} chunk(s)")

                for i in range(0, len(data), chunk_size):
                    await client.write_gatt_char(
                        self.CHAR_TO_PRINTER,
                        data[i:i + chunk_size],
                        response=False,
                    )

                    # Small delay between chunks to avoid overwhelming the printer
                    if self.chunk_delay_ms > 0 and i + chunk_size < len(data):
                        await asyncio.sleep(self.chunk_delay_ms / 1000.0)
        except (BleakError, OSError, asyncio.TimeoutError) as e:
            raise SendFailed(f"Bluetooth write to {device.uid} failed: {e}") from e
