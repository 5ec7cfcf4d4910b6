"""
btnotify CLI - send notifications over Bluetooth from the command line.
"""

import asyncio
import logging
import platform
import sys
import uuid
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from .config import Config, ENCODINGS, get_config, set_config
from .delivery import BluetoothNotifier, DeliveryOutcome, Notification, NotificationType
from .transport import BluezAdapter, InhibitLock, PairedDeviceResolver, RfcommSessionTransport

console = Console()


def setup_logging(verbose: bool = False):
    """Set up logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler()]
    )


def build_notifier(config: Config) -> BluetoothNotifier:
    """Wire the notifier to the local BlueZ stack."""
    adapter = BluezAdapter()
    return BluetoothNotifier(
        config,
        adapter,
        RfcommSessionTransport(channel=config.rfcomm_channel),
        PairedDeviceResolver(adapter, known=config.devices),
        liveness_lock=InhibitLock(),
    )


def print_outcome(outcome: DeliveryOutcome, target: str):
    if outcome.success:
        retries = f" after {outcome.retries} retries" if outcome.retries else ""
        console.print(f"[bold green]✓ Sent to {target}{retries}[/bold green]")
    else:
        console.print(f"[bold red]✗ Not sent to {target}[/bold red] ([yellow]{outcome.cause.value}[/yellow])")
        console.print(f"  {outcome.error}")


@click.group()
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('--data-dir', type=click.Path(), help='Data directory')
@click.pass_context
def main(ctx, verbose, data_dir):
    """📡 btnotify - Bluetooth notification delivery"""
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    setup_logging(verbose)
    if data_dir:
        set_config(Config.load(Path(data_dir)))


@main.command()
@click.argument('message')
@click.option('--target', '-t', help='Device name or address (defaults to configured target)')
@click.option('--type', 'kind', type=click.Choice([t.value for t in NotificationType], case_sensitive=False),
              default=NotificationType.USER.value, help='Notification type')
@click.option('--data', default='', help='Type-specific data field')
@click.option('--device-id', default=None, help='Sender device id (defaults to hostname)')
@click.option('--retry-limit', type=int, help='Retries after the first attempt')
@click.option('--retry-delay-ms', type=int, help='Delay between attempts')
@click.option('--auto-enable/--no-auto-enable', default=None, help='Power on the adapter if needed')
@click.option('--channel', type=int, help='RFCOMM channel (skips SDP lookup)')
@click.option('--encoding', type=click.Choice(ENCODINGS), help='Payload encoding')
def send(message: str, target: Optional[str], kind: str, data: str, device_id: Optional[str],
         retry_limit: Optional[int], retry_delay_ms: Optional[int], auto_enable: Optional[bool],
         channel: Optional[int], encoding: Optional[str]):
    """Send MESSAGE to a paired device."""

    config = get_config()
    if retry_limit is not None:
        config.retry_limit = retry_limit
    if retry_delay_ms is not None:
        config.retry_delay_ms = retry_delay_ms
    if auto_enable is not None:
        config.auto_enable_medium = auto_enable
    if channel is not None:
        config.rfcomm_channel = channel
    if encoding is not None:
        config.encoding = encoding

    target = target or config.target_device
    if not target:
        console.print("[red]No target given. Use --target or 'btnotify config set target_device NAME'.[/red]")
        sys.exit(2)

    try:
        notifier = build_notifier(config)
    except ValueError as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        sys.exit(2)

    notification = Notification(
        device_id=device_id or platform.node() or "btnotify",
        notification_id=uuid.uuid4().hex[:16],
        type=NotificationType(kind.upper()),
        content=message,
        data=data,
    )

    async def run() -> DeliveryOutcome:
        return await notifier.send_notification(notification, target, lambda *args: None)

    with console.status(f"Sending to {target}..."):
        outcome = asyncio.run(run())

    print_outcome(outcome, target)
    if not outcome.success:
        sys.exit(1)


@main.command()
def status():
    """Show adapter state and paired devices."""

    adapter = BluezAdapter()

    async def gather():
        return await adapter.state(), await adapter.paired_devices()

    try:
        state, devices = asyncio.run(gather())
    except OSError as e:
        console.print(f"[red]Bluetooth unavailable: {e}[/red]")
        sys.exit(1)

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="dim")
    table.add_column("Value")
    table.add_row("Controller", f"[cyan]{state.address}[/cyan] {state.name}")
    table.add_row("Powered", "[green]yes[/green]" if state.powered else "[red]no[/red]")
    table.add_row("Discovering", "yes" if state.discovering else "no")
    console.print(table)

    config = get_config()
    console.print("\n[bold]Paired Devices:[/bold]")
    if not devices:
        console.print("  [dim]none[/dim]")
    for device in devices:
        marker = " [green](target)[/green]" if config.target_device in (device.name, device.address) else ""
        console.print(f"  • {device.name or '?'} [cyan]{device.address}[/cyan]{marker}")


@main.group(name="config")
def config_group():
    """Show or change settings."""


@config_group.command(name="show")
def config_show():
    """Print the current configuration."""
    config = get_config()

    table = Table(title=str(config.config_path))
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in config.to_dict().items():
        table.add_row(key, str(value))
    console.print(table)


@config_group.command(name="set")
@click.argument('key')
@click.argument('value')
def config_set(key: str, value: str):
    """Set KEY to VALUE and save."""
    config = get_config()
    try:
        parsed = config.set_value(key, value)
        config.validate()
    except KeyError:
        console.print(f"[red]Unknown setting: {key}[/red]")
        sys.exit(2)
    except ValueError as e:
        console.print(f"[red]Invalid value for {key}: {e}[/red]")
        sys.exit(2)

    config.save()
    console.print(f"[green]✓ {key} = {parsed}[/green]")


@config_group.command(name="alias")
@click.argument('name')
@click.argument('address')
def config_alias(name: str, address: str):
    """Remember ADDRESS under NAME."""
    config = get_config()
    config.devices[name] = address.upper()
    config.save()
    console.print(f"[green]✓ {name} → {address.upper()}[/green]")


if __name__ == "__main__":
    main()
