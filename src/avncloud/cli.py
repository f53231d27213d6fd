"""CLI entry point for the AVN Cloud client.

Provides commands:
  - upload: Upload a file to the organization shared cloud
  - hash: Print the content hash the file store would use for a file
  - send-event: Record one analytics event
  - device: Show the device identity the client would authorize with
  - config: Manage the stored device token
"""

from __future__ import annotations

import asyncio
import logging
import mimetypes
import os
from pathlib import Path
from typing import Annotated

import typer
from keyring.errors import KeyringError
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from avncloud.config import (
    SERVICE_NAME,
    TOKEN_ENV_VAR,
    ClientConfig,
    clear_device_token,
    get_device_token,
    load_client_config,
    lookup_device_token,
    store_device_token,
)
from avncloud.constants import UNENROLLED_ORGANIZATION_ID
from avncloud.context import CloudContext, device_from_config
from avncloud.device import DeviceInfoProvider, DevicePropertiesFile, StaticDeviceInfo
from avncloud.models import Environment
from avncloud.upload.hashing import content_hash

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="AVN Cloud - Upload files to the organization shared cloud and report analytics",
    rich_markup_mode="rich",
)
console = Console()

config_app = typer.Typer(help="Manage configuration (device token)")
app.add_typer(config_app, name="config")


@app.callback()
def app_callback(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to avncloud.json"),
    ] = None,
    debug: Annotated[
        bool, typer.Option("--debug", help="Write debug log to ~/.avncloud/debug.log")
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log progress to the terminal")
    ] = False,
) -> None:
    """Load configuration and set up logging."""
    package_logger = logging.getLogger("avncloud")
    if debug:
        debug_dir = Path.home() / ".avncloud"
        debug_dir.mkdir(exist_ok=True)
        fh = logging.FileHandler(debug_dir / "debug.log")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
        package_logger.addHandler(fh)
        package_logger.setLevel(logging.DEBUG)
    if verbose:
        package_logger.addHandler(RichHandler(console=console, show_path=False))
        if not debug:
            package_logger.setLevel(logging.INFO)

    try:
        ctx.obj = load_client_config(config_path)
    except (ValueError, OSError) as e:
        console.print(f"[red]Error:[/red] Failed to load config: {e}")
        raise typer.Exit(code=1)


def _config(ctx: typer.Context) -> ClientConfig:
    return ctx.obj if isinstance(ctx.obj, ClientConfig) else ClientConfig()


def _resolve_environment(env: str | None, config: ClientConfig) -> Environment:
    if env is None:
        return config.environment
    try:
        return Environment.parse(env)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(code=1)


def _resolve_device(
    config: ClientConfig,
    properties: Path | None = None,
    org_id: int | None = None,
    token: str | None = None,
) -> DeviceInfoProvider:
    """Pick the device identity: explicit flags, then properties file, then config."""
    try:
        if properties is not None:
            return DevicePropertiesFile(properties)
        if org_id is not None or token is not None:
            return StaticDeviceInfo(
                organization_id=org_id if org_id is not None else UNENROLLED_ORGANIZATION_ID,
                device_token=token or get_device_token(),
            )
        return device_from_config(config)
    except (OSError, ValueError) as e:
        console.print(f"[red]Error:[/red] Cannot read device properties: {e}")
        raise typer.Exit(code=1)


@app.command()
def upload(
    ctx: typer.Context,
    path: Annotated[
        Path,
        typer.Argument(help="File to upload", exists=True, dir_okay=False, readable=True),
    ],
    media_type: Annotated[
        str | None,
        typer.Option("--media-type", "-t", help="MIME type (guessed from the name if omitted)"),
    ] = None,
    name: Annotated[
        str | None,
        typer.Option("--name", "-n", help="File name to register (defaults to the file's name)"),
    ] = None,
    env: Annotated[
        str | None,
        typer.Option("--env", "-e", help="Backend: production or alpha"),
    ] = None,
    org_id: Annotated[
        int | None,
        typer.Option("--org-id", help="Organization id to bind the file to"),
    ] = None,
    token: Annotated[
        str | None,
        typer.Option("--token", help="Device token (defaults to the stored token)"),
    ] = None,
    properties: Annotated[
        Path | None,
        typer.Option("--properties", "-p", help="Device properties JSON file"),
    ] = None,
) -> None:
    """Upload a file and bind it to the device's organization shared cloud."""
    config = _config(ctx)
    environment = _resolve_environment(env, config)
    device = _resolve_device(config, properties, org_id, token)

    filename = name or path.name
    if media_type is None:
        media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
    data = path.read_bytes()

    async def _run_upload():
        async with CloudContext(config, device=device) as cloud:
            return await cloud.uploads.upload(filename, media_type, data, environment)

    result = asyncio.run(_run_upload())

    if not result.success:
        console.print(f"[red]Upload failed:[/red] {result.error}")
        raise typer.Exit(code=1)

    summary_table = Table(show_header=False)
    summary_table.add_column("Field", style="bold")
    summary_table.add_column("Value")
    summary_table.add_row("File", filename)
    summary_table.add_row("Size", f"{len(data)} bytes")
    summary_table.add_row("Content hash", result.content_hash or "")
    summary_table.add_row("Deduplicated", "yes" if result.deduplicated else "no")
    summary_table.add_row("Entity id", str(result.entity_id))
    summary_table.add_row("Download URL", f"[green]{result.download_url}[/green]")
    console.print(Panel(summary_table, title="Upload Complete"))


@app.command("hash")
def hash_file(
    path: Annotated[
        Path,
        typer.Argument(help="File to hash", exists=True, dir_okay=False, readable=True),
    ],
) -> None:
    """Print the content hash (unpadded base64url SHA-256) of a file."""
    typer.echo(content_hash(path.read_bytes()))


def _parse_data(pairs: list[str]) -> dict[str, str]:
    data: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            console.print(f"[red]Invalid --data {pair!r}:[/red] expected key=value")
            raise typer.Exit(code=1)
        data[key] = value
    return data


@app.command("send-event")
def send_event(
    ctx: typer.Context,
    source: Annotated[str, typer.Argument(help="Source of the action, in snake_case")],
    action: Annotated[str, typer.Argument(help="Action taken, in snake_case")],
    data: Annotated[
        list[str] | None,
        typer.Option("--data", "-d", help="Event data as key=value (repeatable)"),
    ] = None,
    env: Annotated[
        str | None,
        typer.Option("--env", "-e", help="Backend: production or alpha"),
    ] = None,
    token: Annotated[
        str | None,
        typer.Option("--token", help="Device token (defaults to the stored token)"),
    ] = None,
    properties: Annotated[
        Path | None,
        typer.Option("--properties", "-p", help="Device properties JSON file"),
    ] = None,
) -> None:
    """Record one analytics event."""
    config = _config(ctx)
    environment = _resolve_environment(env, config)
    device = _resolve_device(config, properties, token=token)
    event_data = _parse_data(data) if data else None

    async def _send() -> bool:
        async with CloudContext(config, device=device) as cloud:
            return await cloud.analytics.send_string_event(source, action, event_data, environment)

    if not asyncio.run(_send()):
        console.print(f"[red]Event '{source}' - '{action}' was not sent.[/red] Run with --verbose for details.")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Event '{source}' - '{action}' sent")


def _mask(secret: str) -> str:
    """Mask all but the first 8 characters."""
    if len(secret) > 8:
        return secret[:8] + "*" * (len(secret) - 8)
    return secret[:2] + "*" * max(1, len(secret) - 2)


@app.command()
def device(
    ctx: typer.Context,
    properties: Annotated[
        Path | None,
        typer.Option("--properties", "-p", help="Device properties JSON file"),
    ] = None,
) -> None:
    """Show the device identity used to authorize uploads and events."""
    config = _config(ctx)
    provider = _resolve_device(config, properties)

    table = Table(title="Device")
    table.add_column("Property", style="bold")
    table.add_column("Value")

    if isinstance(provider, DevicePropertiesFile):
        info = provider.info
        table.add_row("Source", str(provider.path))
        table.add_row("Device id", info.device_id or "[dim]-[/dim]")
        table.add_row("Display name", info.display_name or "[dim]-[/dim]")
        table.add_row("Channel", info.channel.value)
        table.add_row("Tilt to spin", "yes" if info.tilt_to_spin else "no")
    else:
        table.add_row("Source", f"keyring ({SERVICE_NAME}) / environment")

    org_id = provider.organization_id()
    org_label = str(org_id)
    if org_id == UNENROLLED_ORGANIZATION_ID:
        org_label += " [yellow](unenrolled)[/yellow]"
    table.add_row("Organization", org_label)

    token = provider.device_token()
    table.add_row("Device token", _mask(token) if token else "[red]missing[/red]")
    modified = provider.last_modified()
    table.add_row("Last modified", modified.isoformat() if modified else "[dim]-[/dim]")

    console.print(table)


def _token_origin(source: str | None) -> str:
    if source == "keyring":
        return f"system keyring, service {SERVICE_NAME}"
    return f"${TOKEN_ENV_VAR}"


@config_app.command("set-device-token")
def set_device_token(
    token: Annotated[
        str,
        typer.Argument(help="Device JWT to save in the system keyring"),
    ],
) -> None:
    """Save the device JWT so uploads and events can run without --token."""
    try:
        store_device_token(token)
    except (ValueError, KeyringError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    console.print(f"[green]✓[/green] Device token saved ({_token_origin('keyring')})")


@config_app.command("get-device-token")
def show_device_token() -> None:
    """Show the device JWT the client would use, masked, and where it was found."""
    try:
        token, source = lookup_device_token()
    except KeyringError as e:
        console.print(f"[red]Error:[/red] Keyring unavailable: {e}")
        raise typer.Exit(code=1)
    if token is None:
        console.print(
            f"[yellow]No device token in the keyring or ${TOKEN_ENV_VAR}.[/yellow]\n"
            "Save one with: [bold]avncloud config set-device-token TOKEN[/bold]"
        )
        raise typer.Exit(code=1)

    table = Table(show_header=False, box=None)
    table.add_row("[bold]Device token[/bold]", _mask(token))
    table.add_row("[bold]Found in[/bold]", _token_origin(source))
    console.print(table)


@config_app.command("remove-device-token")
def remove_device_token() -> None:
    """Forget the keyring copy of the device JWT."""
    try:
        removed = clear_device_token()
    except KeyringError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)

    if removed:
        console.print(f"[green]✓[/green] Device token removed ({_token_origin('keyring')})")
    else:
        console.print("[yellow]The keyring holds no device token.[/yellow]")
    if os.environ.get(TOKEN_ENV_VAR):
        console.print(f"[dim]${TOKEN_ENV_VAR} is still set and will be used.[/dim]")
