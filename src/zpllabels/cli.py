"""
Command-Line Interface for zpl-labels.

Usage:
    zpl-labels add NAME PRICE [-f FEATURE]...  - Queue a label
    zpl-labels list                            - Show the queue
    zpl-labels remove ID                       - Drop a label from the queue
    zpl-labels edit ID [--name/--price/-f]     - Change a queued label
    zpl-labels clear                           - Empty the queue
    zpl-labels zpl ID                          - Show the ZPL for a label
    zpl-labels print                           - Print the whole queue
    zpl-labels devices                         - List available printers
"""

import asyncio
import dataclasses
import logging
import re
import sys
from pathlib import Path
from typing import Optional

import click

from .browser_print import BrowserPrintGateway
from .connection import BLEGateway
from .gateway import DeviceGateway, GatewayError
from .graphics import LogoError, logo_from_image
from .label import LabelDraft, LabelError
from .label_queue import LabelQueue
from .network import NetworkGateway
from .printer import PrintOrchestrator, PrintStatus
from .zpl import encode, format_price, with_copies

BRIDGES = ["browser-print", "network", "ble"]

# Bluetooth MAC address format: XX:XX:XX:XX:XX:XX (hex pairs separated by colons)
BLUETOOTH_MAC_PATTERN = re.compile(r"^([0-9A-Fa-f]{2}:){5}[0-9A-Fa-f]{2}$")

# macOS CoreBluetooth UUID format: XXXXXXXX-XXXX-XXXX-XXXX-XXXXXXXXXXXX
MACOS_UUID_PATTERN = re.compile(
    r"^[0-9A-Fa-f]{8}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{12}$"
)


ADDRESS_PATTERNS = (BLUETOOTH_MAC_PATTERN, MACOS_UUID_PATTERN)


def validate_bluetooth_address(ctx, param, value):
    """Click callback for --address: trim, check and upper-case it.

    bleak takes a MAC on Linux/Windows and a CoreBluetooth UUID on macOS.
    """
    if value is None:
        return None
    address = value.strip()
    if not any(pattern.match(address) for pattern in ADDRESS_PATTERNS):
        raise click.BadParameter(
            f"Invalid Bluetooth address {value!r}: give a printer MAC "
            "(AA:BB:CC:DD:EE:FF) or, on macOS, its device UUID"
        )
    return address.upper()


def build_gateway(bridge: str, url: str = BrowserPrintGateway.DEFAULT_URL,
                  host: Optional[str] = None,
                  port: int = NetworkGateway.DEFAULT_PORT,
                  address: Optional[str] = None) -> DeviceGateway:
    """Create the gateway for a --bridge choice."""
    if bridge == "browser-print":
        return BrowserPrintGateway(url)
    if bridge == "network":
        if not host:
            raise click.UsageError("--host is required with --bridge network")
        return NetworkGateway(host, port)
    if bridge == "ble":
        return BLEGateway(address)
    raise click.UsageError(f"Unknown bridge: {bridge}")


def _load_queue(ctx) -> LabelQueue:
    return LabelQueue.load(ctx.obj["queue_file"])


def _fail(message: str):
    click.echo(message, err=True)
    sys.exit(1)


@click.group()
@click.option("--debug/--no-debug", default=False, help="Enable debug output")
@click.option(
    "--queue-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Queue file (default ~/.config/zpl-labels/queue.json)",
)
@click.pass_context
def main(ctx, debug, queue_file):
    """Price label printing for Zebra printers."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["queue_file"] = queue_file
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="[%(name)s] %(message)s")


@main.command()
@click.argument("name")
@click.argument("price")
@click.option("--feature", "-f", "features", multiple=True, help="Feature line (up to 3)")
@click.pass_context
def add(ctx, name, price, features):
    """Add a label to the queue.

    Examples:
        zpl-labels add "Federal 9mm 124gr" 250 -f "1,200 FPS" -f "FMJ"
    """
    queue = _load_queue(ctx)
    try:
        label = LabelDraft(name, price, features).commit()
    except LabelError as e:
        _fail(f"Invalid label: {e}")

    queue.add(label)
    queue.save()
    click.echo(f"Added {label.id} ({len(queue)} in queue)")


@main.command("list")
@click.pass_context
def list_labels(ctx):
    """Show queued labels."""
    queue = _load_queue(ctx)
    if not len(queue):
        click.echo("No labels in queue")
        return

    for index, label in enumerate(queue):
        click.echo(
            f"[{index}] {label.id}  {label.product_name}  "
            f"{format_price(label.price)} - {len(label.features)} features"
        )


@main.command()
@click.argument("label_id")
@click.pass_context
def remove(ctx, label_id):
    """Remove a label from the queue."""
    queue = _load_queue(ctx)
    try:
        queue.remove(label_id)
    except KeyError:
        _fail(f"No label with id {label_id}")

    queue.save()
    click.echo(f"Removed {label_id} ({len(queue)} in queue)")


@main.command()
@click.argument("label_id")
@click.option("--name", default=None, help="New product name")
@click.option("--price", default=None, help="New price")
@click.option("--feature", "-f", "features", multiple=True,
              help="Replace feature lines (repeat up to 3 times)")
@click.pass_context
def edit(ctx, label_id, name, price, features):
    """Edit a queued label.

    The label is taken out of the queue and re-added with the changes and a
    new id.
    """
    queue = _load_queue(ctx)
    try:
        draft = queue.get(label_id).to_draft()
    except KeyError:
        _fail(f"No label with id {label_id}")

    changes = {}
    if name is not None:
        changes["product_name"] = name
    if price is not None:
        changes["price"] = price
    if features:
        changes["features"] = tuple(features)

    try:
        label = dataclasses.replace(draft, **changes).commit()
    except LabelError as e:
        _fail(f"Invalid label: {e}")

    queue.edit(label_id)
    queue.add(label)
    queue.save()
    click.echo(f"Replaced {label_id} with {label.id}")


@main.command()
@click.confirmation_option(prompt="Remove all labels from the queue?")
@click.pass_context
def clear(ctx):
    """Remove all labels from the queue."""
    queue = _load_queue(ctx)
    queue.clear()
    queue.save()
    click.echo("Queue cleared")


@main.command()
@click.argument("label_id", required=False)
@click.option("--name", default=None, help="Product name for an ad-hoc label")
@click.option("--price", default="0", help="Price for an ad-hoc label")
@click.option("--feature", "-f", "features", multiple=True, help="Feature line")
@click.option("--logo", type=click.Path(exists=True, dir_okay=False), help="Logo image")
@click.option("--copies", type=click.IntRange(1, None), default=1, help="Number of copies")
@click.pass_context
def zpl(ctx, label_id, name, price, features, logo, copies):
    """Show the ZPL for a queued label or an ad-hoc label.

    Examples:
        zpl-labels zpl 3f2c...
        zpl-labels zpl --name "Widget" --price 7 -f "Blue"
    """
    try:
        if label_id:
            label = _load_queue(ctx).get(label_id)
        elif name is not None:
            label = LabelDraft(name, price, features)
        else:
            raise click.UsageError("Give a LABEL_ID or --name")
    except KeyError:
        _fail(f"No label with id {label_id}")
    except LabelError as e:
        _fail(f"Invalid label: {e}")

    try:
        graphic = logo_from_image(logo) if logo else None
    except LogoError as e:
        _fail(f"Logo error: {e}")

    click.echo(with_copies(encode(label, graphic), copies), nl=False)


@main.command("print")
@click.option("--bridge", type=click.Choice(BRIDGES), default="browser-print",
              help="How to reach the printer (default: browser-print)")
@click.option("--url", default=BrowserPrintGateway.DEFAULT_URL,
              help="Browser Print service URL")
@click.option("--host", default=None, help="Printer host for --bridge network")
@click.option("--port", default=NetworkGateway.DEFAULT_PORT, help="Raw TCP port")
@click.option(
    "--address",
    "-a",
    callback=validate_bluetooth_address,
    help="Printer Bluetooth address for --bridge ble (if omitted, scans)",
)
@click.option("--delay", type=click.FloatRange(0, None),
              default=PrintOrchestrator.DEFAULT_PACE_DELAY,
              help="Seconds between labels")
@click.option("--timeout", type=float, default=None,
              help="Give up on a single label after this many seconds")
@click.option("--start", type=click.IntRange(0, None), default=0,
              help="Queue index to start from (retry after a failure)")
@click.option("--logo", type=click.Path(exists=True, dir_okay=False), help="Logo image")
@click.option("--copies", type=click.IntRange(1, None), default=1,
              help="Copies of each label")
@click.pass_context
def print_queue(ctx, bridge, url, host, port, address, delay, timeout, start,
                logo, copies):
    """Print every queued label.

    The queue is cleared only when every label printed. On failure the
    queue is kept and the failing index is reported.
    """
    queue = _load_queue(ctx)
    labels = queue.labels[start:]
    if not labels:
        click.echo("No labels to print")
        return

    try:
        graphic = logo_from_image(logo) if logo else None
    except LogoError as e:
        _fail(f"Logo error: {e}")

    def encoder(label):
        return with_copies(encode(label, graphic), copies)

    gateway = build_gateway(bridge, url=url, host=host, port=port, address=address)
    gateway.set_debug(ctx.obj["debug"])

    orchestrator = PrintOrchestrator(
        gateway,
        pace_delay=delay,
        send_timeout=timeout,
        encoder=encoder,
        on_status=click.echo,
    )
    orchestrator.set_debug(ctx.obj["debug"])

    outcome = asyncio.run(orchestrator.print_all(labels))

    if outcome.status is PrintStatus.SUCCEEDED:
        queue.clear()
        queue.save()
        return

    if outcome.status is PrintStatus.PARTIAL_FAILURE:
        failed_at = start + outcome.failed_index
        click.echo(
            f"{outcome.printed} of {outcome.total} label(s) printed; "
            f"label [{failed_at}] {outcome.failed_label_id} failed.",
            err=True,
        )
        click.echo(f"Retry the rest with: zpl-labels print --start {failed_at}", err=True)
    sys.exit(1)


@main.command()
@click.option("--bridge", type=click.Choice(["browser-print", "ble"]),
              default="browser-print", help="Where to look for printers")
@click.option("--url", default=BrowserPrintGateway.DEFAULT_URL,
              help="Browser Print service URL")
@click.option("--timeout", default=BLEGateway.DEFAULT_SCAN_TIMEOUT,
              help="Bluetooth scan timeout in seconds")
@click.pass_context
def devices(ctx, bridge, url, timeout):
    """List available printers."""

    async def _devices():
        if bridge == "ble":
            gateway = BLEGateway(scan_timeout=timeout)
            gateway.set_debug(ctx.obj["debug"])
            click.echo(f"Scanning for printers ({timeout}s)...")
            return [str(p) for p in await gateway.scan()]

        gateway = BrowserPrintGateway(url)
        gateway.set_debug(ctx.obj["debug"])
        return [str(d) for d in await gateway.list_devices()]

    try:
        found = asyncio.run(_devices())
    except GatewayError as e:
        _fail(f"Error: {e}")

    if not found:
        click.echo("No printers found.")
        return

    click.echo(f"Found {len(found)} printer(s):\n")
    for line in found:
        click.echo(f"  {line}")


if __name__ == "__main__":
    main()
