"""
Raw TCP gateway for networked Zebra printers.

Zebra printers accept ZPL on TCP port 9100 (raw/JetDirect). There is no
discovery: the device is the configured host, checked with a probe
connection.
"""

import asyncio

from .gateway import Device, DeviceGateway, NoDeviceFound, SendFailed


class NetworkGateway(DeviceGateway):
    """Sends ZPL over a raw TCP socket."""

    DEFAULT_PORT = 9100
    DEFAULT_TIMEOUT = 5.0

    def __init__(self, host: str, port: int = DEFAULT_PORT,
                 timeout: float = DEFAULT_TIMEOUT):
        """
        Args:
            host: Printer IP address or hostname
            port: Raw printing port (default 9100)
            timeout: Connect/write timeout in seconds
        """
        super().__init__()
        if not host:
            raise ValueError("host must not be empty")
        self.host = host
        self.port = port
        self.timeout = timeout

    async def _open(self):
        return await asyncio.wait_for(
            asyncio.open_connection(self.host, self.port),
            timeout=self.timeout,
        )

    @staticmethod
    async def _close(writer: asyncio.StreamWriter):
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            pass

    async def resolve_default_device(self) -> Device:
        address = f"{self.host}:{self.port}"
        self._log(f"Probing {address}...")
        try:
            _, writer = await self._open()
        except (OSError, asyncio.TimeoutError) as e:
            raise NoDeviceFound(f"No printer reachable at {address}: {e}") from e

        await self._close(writer)
        return Device(name=self.host, uid=address, connection="network")

    async def send(self, device: Device, command_stream: str) -> None:
        data = command_stream.encode("utf-8")
        self._log(f"Sending {len(data)} bytes to {device.uid}")
        try:
            _, writer = await self._open()
        except (OSError, asyncio.TimeoutError) as e:
            raise SendFailed(f"Could not connect to {device.uid}: {e}") from e

        try:
            writer.write(data)
            await asyncio.wait_for(writer.drain(), timeout=self.timeout)
        except (OSError, asyncio.TimeoutError) as e:
            raise SendFailed(f"Write to {device.uid} failed: {e}") from e
        finally:
            await self._close(writer)
