"""Network service detection and proxy information display.

This module provides functionality for:
- Detecting the primary network service
- Reading that service's SOCKS proxy configuration
- Displaying both in a formatted table using Rich

Example:
    # Show the detected service and its SOCKS proxy settings
    show_interface_info()
"""

from rich.console import Console
from rich.table import Table

from chaussettes.core.network import InterfaceLocator
from chaussettes.core.proxy import ProxyController
from chaussettes.core.utils.utils import CommandRunner, run_command

console = Console()


def get_interface_info(runner: CommandRunner = run_command) -> dict[str, str]:
    """Get information about the primary network service.

    Returns:
        dict[str, str]: Dictionary containing interface information with keys:
            - interface: Network service name
            - device: Device behind the default route
            - enabled: SOCKS proxy state
            - server: Configured SOCKS server
            - port: Configured SOCKS port
    """
    locator = InterfaceLocator(runner)
    interface = locator.detect()
    device = locator.default_route_device()
    settings = ProxyController(interface, runner).current_settings()

    def _show(value) -> str:
        return "Not set" if value is None else str(value)

    enabled = "Unknown"
    if settings and settings.enabled is not None:
        enabled = "Yes" if settings.enabled else "No"

    return {
        "interface": interface,
        "device": device or "Not found",
        "enabled": enabled,
        "server": _show(settings.server if settings else None),
        "port": _show(settings.port if settings else None),
    }


def show_interface_info(runner: CommandRunner = run_command) -> dict[str, str]:
    """Display the primary network service and return its details."""
    info = get_interface_info(runner)

    table = Table(title=f"Network Service ({info['interface']}) SOCKS Proxy")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Service", info["interface"])
    table.add_row("Default Route Device", info["device"])
    table.add_row("SOCKS Proxy Enabled", info["enabled"])
    table.add_row("SOCKS Server", info["server"])
    table.add_row("SOCKS Port", info["port"])

    console.print(table)
    return info
