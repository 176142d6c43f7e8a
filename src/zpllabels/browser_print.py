"""
Zebra Browser Print gateway.

Browser Print is Zebra's local bridge service. It listens on
http://127.0.0.1:9100 and exposes a small HTTP API:

    GET  /default?type=printer   - the default printer, or an empty body
    GET  /available              - {"printer": [device, ...]}
    POST /write                  - {"device": device, "data": "..."}

The service is blocking HTTP, so calls run in a worker thread.
"""

import asyncio
from typing import Optional

import requests

from .gateway import (
    Device,
    DeviceGateway,
    DeviceUnavailable,
    NoDeviceFound,
    SendFailed,
)


def device_from_json(data: dict) -> Device:
    """Build a Device from a Browser Print device descriptor."""
    return Device(
        name=data.get("name", ""),
        uid=data.get("uid", ""),
        connection=data.get("connection", ""),
        device_type=data.get("deviceType", "printer"),
        provider=data.get("provider", ""),
        manufacturer=data.get("manufacturer", ""),
        version=data.get("version"),
        raw=data,
    )


class BrowserPrintGateway(DeviceGateway):
    """Sends ZPL through a running Zebra Browser Print service."""

    DEFAULT_URL = "http://127.0.0.1:9100"
    DEFAULT_TIMEOUT = 5.0

    def __init__(self, base_url: str = DEFAULT_URL,
                 timeout: float = DEFAULT_TIMEOUT,
                 session: Optional[requests.Session] = None):
        """
        Args:
            base_url: Browser Print service URL
            timeout: HTTP timeout in seconds for each request
            session: Optional requests session (shared connection pool)
        """
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _get_json(self, path: str, params: Optional[dict] = None):
        """GET a JSON document; an empty body returns None."""
        url = f"{self.base_url}{path}"
        self._log(f"GET {url}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.ConnectionError as e:
            raise DeviceUnavailable(
                f"Browser Print not loaded: no service at {self.base_url}. "
                "Install and start Zebra Browser Print."
            ) from e
        except requests.RequestException as e:
            raise DeviceUnavailable(f"Browser Print request failed: {e}") from e

        if not response.text.strip():
            return None
        try:
            return response.json()
        except ValueError as e:
            raise DeviceUnavailable(
                f"Browser Print returned an invalid reply: {response.text[:80]!r}"
            ) from e

    def _default_device(self) -> Device:
        data = self._get_json("/default", params={"type": "printer"})
        if not data or not isinstance(data, dict) or not data.get("name"):
            raise NoDeviceFound(
                "No default printer found. Connect a Zebra printer and set it "
                "as default in Browser Print."
            )
        return device_from_json(data)

    def _available_devices(self) -> list[Device]:
        data = self._get_json("/available") or {}
        return [device_from_json(d) for d in data.get("printer", [])]

    def _write(self, device: Device, command_stream: str):
        url = f"{self.base_url}/write"
        payload = {
            "device": device.raw if device.raw is not None else {
                "name": device.name,
                "uid": device.uid,
                "connection": device.connection,
                "deviceType": device.device_type,
                "provider": device.provider,
                "manufacturer": device.manufacturer,
                "version": device.version,
            },
            "data": command_stream,
        }
        self._log(f"POST {url} ({len(command_stream)} chars)")
        try:
            response = self.session.post(url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SendFailed(f"Print failed: {e}") from e

    async def resolve_default_device(self) -> Device:
        device = await asyncio.to_thread(self._default_device)
        self._log(f"Default device: {device}")
        return device

    async def list_devices(self) -> list[Device]:
        """
        List all printers Browser Print knows about.

        Raises:
            DeviceUnavailable: If the service is not running
        """
        return await asyncio.to_thread(self._available_devices)

    async def send(self, device: Device, command_stream: str) -> None:
        await asyncio.to_thread(self._write, device, command_stream)
