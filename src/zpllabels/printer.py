"""
Print orchestration.

Sends a batch of labels to one printer, strictly one after another, and
reports how far the batch got.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence

from .gateway import (
    Device,
    DeviceGateway,
    DeviceUnavailable,
    GatewayError,
    NoDeviceFound,
    SendFailed,
)
from .label import Label, QueuedLabel
from .zpl import encode

logger = logging.getLogger(__name__)


class PrintStatus(Enum):
    """Terminal outcome of a print run."""
    SUCCEEDED = "succeeded"
    PARTIAL_FAILURE = "partial_failure"
    FATAL_FAILURE = "fatal_failure"


class OrchestratorState(Enum):
    """Where a print run currently is."""
    IDLE = "idle"
    RESOLVING_DEVICE = "resolving_device"
    PRINTING = "printing"


@dataclass(frozen=True)
class PrintOutcome:
    """
    Result of PrintOrchestrator.print_all().

    Attributes:
        status: SUCCEEDED, PARTIAL_FAILURE or FATAL_FAILURE
        printed: Labels confirmed sent (always a prefix of the batch)
        total: Labels in the batch
        message: Last human-readable status message
        stage: "resolve" or "send" for failures, None on success
        failed_index: Index of the label whose send failed
        failed_label_id: Id of that label (None for drafts)
        error: The gateway error behind a failure
        device: The resolved device, if resolution succeeded
    """
    status: PrintStatus
    printed: int
    total: int
    message: str
    stage: Optional[str] = None
    failed_index: Optional[int] = None
    failed_label_id: Optional[str] = None
    error: Optional[GatewayError] = None
    device: Optional[Device] = None

    @property
    def succeeded(self) -> bool:
        return self.status is PrintStatus.SUCCEEDED

    @property
    def remaining(self) -> int:
        """Labels not confirmed printed (failed one included)."""
        return self.total - self.printed


StatusCallback = Callable[[str], None]


class PrintOrchestrator:
    """
    Prints labels through a device gateway.

    One print_all() call at a time per gateway; there is no internal lock.
    Nothing is retried: on the first failed send the batch stops and the
    outcome says which label failed.
    """

    # Pause between consecutive sends for device processing
    DEFAULT_PACE_DELAY = 0.1

    def __init__(self, gateway: DeviceGateway,
                 pace_delay: float = DEFAULT_PACE_DELAY,
                 send_timeout: Optional[float] = None,
                 resolve_timeout: Optional[float] = None,
                 encoder: Callable[[Label], str] = encode,
                 on_status: Optional[StatusCallback] = None):
        """
        Initialize the orchestrator.

        Args:
            gateway: Bridge to the printer
            pace_delay: Seconds to wait between consecutive sends
            send_timeout: Give up on a single send after this many seconds
                (None waits as long as the gateway does)
            resolve_timeout: Same, for device resolution
            encoder: Label -> command stream function
            on_status: Called with every status message
        """
        if pace_delay < 0:
            raise ValueError(f"pace_delay must not be negative, got {pace_delay}")
        self.gateway = gateway
        self.pace_delay = pace_delay
        self.send_timeout = send_timeout
        self.resolve_timeout = resolve_timeout
        self.encoder = encoder
        self.on_status = on_status
        self.state = OrchestratorState.IDLE
        self.current_index: Optional[int] = None
        self.last_status = ""
        self._debug = False

    def set_debug(self, enabled: bool):
        """Enable/disable debug output."""
        self._debug = enabled

    def _log(self, message: str):
        """Log a debug message if enabled."""
        if self._debug:
            logger.debug("[print] %s", message)

    def _status(self, message: str) -> str:
        self.last_status = message
        self._log(message)
        if self.on_status:
            self.on_status(message)
        return message

    async def _with_timeout(self, awaitable, timeout: Optional[float]):
        if timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=timeout)

    async def _resolve(self) -> Device:
        try:
            return await self._with_timeout(
                self.gateway.resolve_default_device(), self.resolve_timeout
            )
        except asyncio.TimeoutError:
            raise DeviceUnavailable(
                f"Printer bridge did not answer within {self.resolve_timeout}s"
            ) from None

    async def _send(self, device: Device, command_stream: str):
        try:
            await self._with_timeout(
                self.gateway.send(device, command_stream), self.send_timeout
            )
        except asyncio.TimeoutError:
            raise SendFailed(
                f"Send timed out after {self.send_timeout}s"
            ) from None

    async def print_all(self, labels: Sequence[Label]) -> PrintOutcome:
        """
        Print labels in order.

        Args:
            labels: Labels to print; index 0 prints first

        Returns:
            PrintOutcome. Labels 0..printed-1 were sent; on PARTIAL_FAILURE
            label failed_index failed and later labels were never attempted.
        """
        labels = list(labels)
        total = len(labels)

        if total == 0:
            return PrintOutcome(
                status=PrintStatus.SUCCEEDED, printed=0, total=0,
                message=self._status("Successfully printed 0 label(s)!"),
            )

        try:
            self.state = OrchestratorState.RESOLVING_DEVICE
            self._status("Initializing printer...")

            try:
                device = await self._resolve()
            except (DeviceUnavailable, NoDeviceFound) as e:
                return PrintOutcome(
                    status=PrintStatus.FATAL_FAILURE,
                    printed=0,
                    total=total,
                    message=self._status(f"Error: {e}"),
                    stage="resolve",
                    error=e,
                )

            self._status(f"Connected to {device.name}")

            self.state = OrchestratorState.PRINTING
            self._status(f"Printing {total} label(s)...")

            for index, label in enumerate(labels):
                self.current_index = index

                if index > 0 and self.pace_delay > 0:
                    await asyncio.sleep(self.pace_delay)

                command_stream = self.encoder(label)
                self._log(f"Sending label {index + 1}/{total} ({len(command_stream)} chars)")

                try:
                    await self._send(device, command_stream)
                except SendFailed as e:
                    return PrintOutcome(
                        status=PrintStatus.PARTIAL_FAILURE,
                        printed=index,
                        total=total,
                        message=self._status(
                            f"Error: label {index + 1} of {total} failed: {e}"
                        ),
                        stage="send",
                        failed_index=index,
                        failed_label_id=label.id if isinstance(label, QueuedLabel) else None,
                        error=e,
                        device=device,
                    )

            return PrintOutcome(
                status=PrintStatus.SUCCEEDED,
                printed=total,
                total=total,
                message=self._status(f"Successfully printed {total} label(s)!"),
                device=device,
            )
        finally:
            self.state = OrchestratorState.IDLE
            self.current_index = None


async def print_labels(gateway: DeviceGateway, labels: Sequence[Label],
                       pace_delay: float = PrintOrchestrator.DEFAULT_PACE_DELAY) -> PrintOutcome:
    """
    Convenience function to print a batch with default settings.

    Args:
        gateway: Bridge to the printer
        labels: Labels to print in order
        pace_delay: Seconds between sends

    Returns:
        PrintOutcome of the run
    """
    return await PrintOrchestrator(gateway, pace_delay=pace_delay).print_all(labels)
