"""
Pytest configuration for zpl-labels tests.

Provides a fake device gateway and command-line options for hardware tests.
"""

from typing import Optional

import pytest

from zpllabels.gateway import Device, DeviceGateway, SendFailed
from zpllabels.label import LabelDraft


class FakeGateway(DeviceGateway):
    """
    In-memory gateway.

    Args:
        resolve_error: Raised by resolve_default_device() when set
        fail_at: Send index (0-based) that raises SendFailed
    """

    def __init__(self, resolve_error: Optional[Exception] = None,
                 fail_at: Optional[int] = None):
        super().__init__()
        self.resolve_error = resolve_error
        self.fail_at = fail_at
        self.device = Device(name="ZD421", uid="FAKE-0001", connection="usb")
        self.resolve_calls = 0
        self.sent: list[str] = []
        self.send_attempts = 0

    async def resolve_default_device(self) -> Device:
        self.resolve_calls += 1
        if self.resolve_error is not None:
            raise self.resolve_error
        return self.device

    async def send(self, device: Device, command_stream: str) -> None:
        index = self.send_attempts
        self.send_attempts += 1
        if index == self.fail_at:
            raise SendFailed("Print failed: paper out")
        self.sent.append(command_stream)


def pytest_addoption(parser):
    """Add command-line options for hardware tests."""
    parser.addoption(
        "--host",
        action="store",
        default=None,
        help="Network printer host for hardware tests",
    )


@pytest.fixture
def printer_host(request):
    """Get the printer host from command line."""
    host = request.config.getoption("--host")
    if host is None:
        pytest.skip("No printer host provided (use --host=192.168.1.50)")
    return host


@pytest.fixture
def make_gateway():
    """Factory for fake gateways with chosen failures."""
    return FakeGateway


@pytest.fixture
def gateway():
    """A gateway where every send succeeds."""
    return FakeGateway()


@pytest.fixture
def labels():
    """Three committed labels."""
    return [
        LabelDraft("Federal 9mm 124gr Ammunition", "250", ("1,200 FPS", "FMJ")).commit(),
        LabelDraft("Cleaning Kit", "19.99").commit(),
        LabelDraft("Range Bag", "1200", ("Water resistant",)).commit(),
    ]
