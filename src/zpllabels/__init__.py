"""Retail price labels for Zebra thermal printers (ZPL)."""

__version__ = "0.1.0"

from .browser_print import BrowserPrintGateway
from .connection import BLEGateway, PrinterInfo
from .gateway import (
    Device,
    DeviceGateway,
    DeviceUnavailable,
    GatewayError,
    NoDeviceFound,
    SendFailed,
)
from .graphics import LogoError, logo_from_image
from .label import LabelDraft, LabelError, LabelPrinterError, QueuedLabel
from .label_queue import LabelQueue
from .network import NetworkGateway
from .printer import (
    OrchestratorState,
    PrintOrchestrator,
    PrintOutcome,
    PrintStatus,
    print_labels,
)
from .zpl import PRICE_TIERS, GraphicField, PriceTier, ZPLCommand, encode, format_price

__all__ = [
    "LabelDraft",
    "QueuedLabel",
    "LabelQueue",
    "LabelPrinterError",
    "LabelError",
    "LogoError",
    "encode",
    "format_price",
    "ZPLCommand",
    "PriceTier",
    "PRICE_TIERS",
    "GraphicField",
    "logo_from_image",
    "Device",
    "DeviceGateway",
    "GatewayError",
    "DeviceUnavailable",
    "NoDeviceFound",
    "SendFailed",
    "BrowserPrintGateway",
    "NetworkGateway",
    "BLEGateway",
    "PrinterInfo",
    "PrintOrchestrator",
    "PrintOutcome",
    "PrintStatus",
    "OrchestratorState",
    "print_labels",
]
