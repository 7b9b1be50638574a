"""Command-line interface for chaussettes.

This module provides the main command-line interface, handling:
- Server registry management (list, add, edit, remove)
- Connecting to a server and routing the system proxy through it
- Network service inspection
- The interactive terminal UI

The CLI is built using Typer and prints its results with Rich. Logs go to a
rotating file; pass ``--debug`` to also see them on the console.

Example:
    # Run from command line:
    $ chaussettes add --alias work --host bastion.example.com --user me
    $ chaussettes connect work
"""

from pathlib import Path

import pyperclip
import typer
from loguru import logger
from rich.console import Console

from chaussettes import __version__
from chaussettes.cmd.find_interface import show_interface_info
from chaussettes.cmd.tui import ServerBrowser
from chaussettes.core.config_store import CONFIG_ENV_VAR, ServerStore
from chaussettes.core.connection import ConnectionManager
from chaussettes.core.exceptions import ConfigStoreError
from chaussettes.core.models import DEFAULT_KEY_PATH, DEFAULT_SOCKS_PORT, DEFAULT_SSH_PORT, Server
from chaussettes.core.proxy import LOOPBACK
from chaussettes.core.utils.log_config import LOG_DIR, enable_debug
from chaussettes.core.utils.prompt import TunnelStatusUI, server_table

console = Console()
app = typer.Typer(help="SSH SOCKS tunnels routed through the macOS network settings")


def get_store(ctx: typer.Context) -> ServerStore:
    return ctx.obj["store"]


def find_server(store: ServerStore, name: str) -> Server:
    """Look up a server by id, alias or user@host, exiting when missing."""
    server = store.find_by_name(name)
    if server is None:
        console.print(f"[red]No server named '{name}'")
        raise typer.Exit(1)
    return server


def save_server(store: ServerStore, server: Server) -> None:
    """Validate and save, exiting with the violated constraints on failure."""
    errors = server.errors()
    if errors:
        logger.warning(f"Validation failed: {', '.join(errors)}")
        for error in errors:
            console.print(f"[red]{error}")
        raise typer.Exit(1)
    try:
        store.save(server)
    except ConfigStoreError as e:
        console.print(f"[red]Error saving server: {e}")
        raise typer.Exit(1) from e
    console.print(f"[green]Saved {server.display_name}[/green] [dim]({server.id})")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        default=False,
        help="Enable debug logging",
    ),
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        envvar=CONFIG_ENV_VAR,
        help="Server registry file",
    ),
):
    """Show version information."""
    if debug:
        enable_debug()
        logger.debug(f"Debug logging enabled, log files in {LOG_DIR}")
    ctx.obj = {"store": ServerStore(config)}
    if ctx.invoked_subcommand is None:
        console.print(f"[cyan]Chaussettes v{__version__}[/cyan]")


@app.command(name="list")
def list_servers(ctx: typer.Context):
    """List saved servers."""
    servers = get_store(ctx).all()
    if not servers:
        console.print("[yellow]No servers saved yet. Add one with 'chaussettes add'.")
        return
    console.print(server_table(servers))


@app.command()
def add(
    ctx: typer.Context,
    host: str = typer.Option(..., "--host", "-h", help="SSH server hostname"),
    user: str = typer.Option(..., "--user", "-u", help="Remote user"),
    alias: str = typer.Option("", "--alias", "-a", help="Display name"),
    ssh_port: int = typer.Option(DEFAULT_SSH_PORT, "--ssh-port", "-p", help="SSH port"),
    socks_port: int = typer.Option(DEFAULT_SOCKS_PORT, "--socks-port", "-s", help="Local SOCKS port"),
    key_path: str = typer.Option(DEFAULT_KEY_PATH, "--key-path", "-i", help="Private key file"),
):
    """Save a new server."""
    server = Server(
        host=host,
        user=user,
        alias_name=alias,
        ssh_port=ssh_port,
        socks_port=socks_port,
        key_path=key_path,
    )
    save_server(get_store(ctx), server)


@app.command()
def edit(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Server id, alias or user@host"),
    host: str | None = typer.Option(None, "--host", "-h", help="SSH server hostname"),
    user: str | None = typer.Option(None, "--user", "-u", help="Remote user"),
    alias: str | None = typer.Option(None, "--alias", "-a", help="Display name"),
    ssh_port: int | None = typer.Option(None, "--ssh-port", "-p", help="SSH port"),
    socks_port: int | None = typer.Option(None, "--socks-port", "-s", help="Local SOCKS port"),
    key_path: str | None = typer.Option(None, "--key-path", "-i", help="Private key file"),
):
    """Change fields of a saved server."""
    store = get_store(ctx)
    server = find_server(store, name)
    changes = {
        "host": host,
        "user": user,
        "alias_name": alias,
        "ssh_port": ssh_port,
        "socks_port": socks_port,
        "key_path": key_path,
    }
    data = server.to_dict()
    data.update({field: value for field, value in changes.items() if value is not None})
    save_server(store, Server.from_dict(data))


@app.command()
def remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Server id, alias or user@host"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a saved server."""
    store = get_store(ctx)
    server = find_server(store, name)
    if not yes and not typer.confirm(f"Delete server '{server.display_name}'?"):
        raise typer.Abort()
    if not store.delete(server.id):
        console.print("[red]Error deleting server")
        raise typer.Exit(1)
    console.print(f"[green]Deleted {server.display_name}")


@app.command()
def connect(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Server id, alias or user@host"),
):
    """Open a tunnel to a server and route the system proxy through it."""
    server = find_server(get_store(ctx), name)
    manager = ConnectionManager()

    with console.status(f"Connecting to {server.display_name}..."):
        result = manager.connect(server)
    if not result.success:
        console.print(f"[red]{result.message}")
        raise typer.Exit(1)
    console.print(f"[bold green]{result.message}")

    try:
        pyperclip.copy(f"{LOOPBACK}:{server.socks_port}")
        console.print("[bold green]SOCKS address copied to clipboard")
    except pyperclip.PyperclipException as e:
        console.print(f"[yellow]Could not copy to clipboard: {e}")

    ui = TunnelStatusUI(manager)
    try:
        ui.run()
    except KeyboardInterrupt:
        ui.running = False
        logger.info("Received shutdown signal")
    except Exception as e:
        logger.exception("Error while connected")
        console.print(f"[red]Error: {e}")
    finally:
        console.print("\n[yellow]Disconnecting...")
        console.print(f"[green]{manager.disconnect().message}")


@app.command()
def interface():
    """Show the detected network service and its SOCKS proxy settings."""
    show_interface_info()


@app.command()
def tui(ctx: typer.Context):
    """Browse servers and connect interactively."""
    try:
        ServerBrowser(get_store(ctx), ConnectionManager()).run()
    except Exception as e:
        logger.exception("Error in interactive UI")
        console.print(f"[red]Error: {e}")
        raise typer.Exit(1) from e


if __name__ == "__main__":
    app()
