"""Tests for the raw TCP gateway."""

import asyncio
import socket

import pytest
import pytest_asyncio

from zpllabels.gateway import Device, NoDeviceFound, SendFailed
from zpllabels.network import NetworkGateway


class FakePrinter:
    """A local TCP server that records what it receives."""

    def __init__(self):
        self.received = []
        self.connections = 0
        self.server = None
        self.port = None
        self._done = asyncio.Event()

    async def _handle(self, reader, writer):
        self.connections += 1
        data = await reader.read()
        if data:
            self.received.append(data)
            self._done.set()
        writer.close()

    async def start(self):
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self.server.sockets[0].getsockname()[1]

    async def wait_for_data(self):
        await asyncio.wait_for(self._done.wait(), timeout=2)

    async def stop(self):
        self.server.close()
        await self.server.wait_closed()


@pytest_asyncio.fixture
async def fake_printer():
    printer = FakePrinter()
    await printer.start()
    yield printer
    await printer.stop()


def unused_port() -> int:
    """A port nothing is listening on."""
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestNetworkGateway:
    """Test raw port 9100 printing."""

    def test_defaults(self):
        gateway = NetworkGateway("192.168.1.50")
        assert gateway.port == 9100
        assert gateway.timeout == 5.0

    def test_empty_host(self):
        with pytest.raises(ValueError, match="host"):
            NetworkGateway("")

    @pytest.mark.asyncio
    async def test_resolve_reachable(self, fake_printer):
        gateway = NetworkGateway("127.0.0.1", port=fake_printer.port)
        device = await gateway.resolve_default_device()

        assert device.name == "127.0.0.1"
        assert device.uid == f"127.0.0.1:{fake_printer.port}"
        assert device.connection == "network"

    @pytest.mark.asyncio
    async def test_resolve_unreachable(self):
        gateway = NetworkGateway("127.0.0.1", port=unused_port(), timeout=1)
        with pytest.raises(NoDeviceFound, match="No printer reachable"):
            await gateway.resolve_default_device()

    @pytest.mark.asyncio
    async def test_send(self, fake_printer):
        """The stream arrives as UTF-8 bytes."""
        gateway = NetworkGateway("127.0.0.1", port=fake_printer.port)
        device = await gateway.resolve_default_device()

        await gateway.send(device, "^XA\n^FDCafé^FS\n^XZ\n")
        await fake_printer.wait_for_data()

        assert fake_printer.received == ["^XA\n^FDCafé^FS\n^XZ\n".encode("utf-8")]

    @pytest.mark.asyncio
    async def test_send_unreachable(self):
        port = unused_port()
        gateway = NetworkGateway("127.0.0.1", port=port, timeout=1)
        device = Device(name="127.0.0.1", uid=f"127.0.0.1:{port}", connection="network")
        with pytest.raises(SendFailed, match="Could not connect"):
            await gateway.send(device, "^XA^XZ")


@pytest.mark.hardware
class TestNetworkHardware:
    """Print on a real printer (needs --host)."""

    @pytest.mark.asyncio
    async def test_print_label(self, printer_host):
        from zpllabels.label import LabelDraft
        from zpllabels.printer import PrintOrchestrator

        gateway = NetworkGateway(printer_host)
        outcome = await PrintOrchestrator(gateway).print_all(
            [LabelDraft("Test Label", "9.99", ("Hardware test",))]
        )
        assert outcome.succeeded
