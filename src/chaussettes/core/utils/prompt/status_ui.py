"""Connection status UI components."""

import time
from typing import TYPE_CHECKING

from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from chaussettes.core.utils.utils import format_duration

from .prompt import PromptHandler, console

if TYPE_CHECKING:
    from chaussettes.core.connection import ConnectionManager
    from chaussettes.core.models import Server

# Seconds between system proxy re-reads, networksetup is slow
PROXY_REFRESH_INTERVAL = 5.0


def server_table(
    servers: list["Server"],
    current: "Server | None" = None,
    selected: int | None = None,
    title: str = "Configured Servers",
    tunnel_alive: bool = True,
) -> Table:
    """Build the server list table, marking the connected and selected rows.

    With ``tunnel_alive`` False the current server is shown as down: it is
    still the current connection but its ssh process has exited.
    """
    table = Table(title=title, border_style="cyan", title_style="bold cyan")
    table.add_column("Alias", style="cyan", no_wrap=True)
    table.add_column("Host", style="green")
    table.add_column("User")
    table.add_column("SSH", justify="right")
    table.add_column("SOCKS", justify="right")
    table.add_column("Status", no_wrap=True)

    for index, server in enumerate(servers):
        connected = current is not None and current.id == server.id
        if not connected:
            status = "[dim]○ Disconnected"
        elif tunnel_alive:
            status = "[green]● Connected"
        else:
            status = "[red]✖ Tunnel down"
        table.add_row(
            server.display_name,
            server.host,
            server.user,
            str(server.ssh_port),
            str(server.socks_port),
            status,
            style="black on cyan" if index == selected else None,
        )
    return table


class TunnelStatusUI(PromptHandler):
    """Live panel describing the current connection."""

    def __init__(self, manager: "ConnectionManager") -> None:
        """Initialize the status UI.

        Args:
            manager: Connection manager whose current connection is shown
        """
        super().__init__()
        self.manager = manager
        self.running = True
        self._start_time = time.monotonic()
        self._refresh_rate = 0.5
        self._spinner = Spinner("dots", text="")
        self._proxy_enabled: bool | None = None
        self._proxy_checked_at = 0.0

    def _proxy_state(self) -> str:
        now = time.monotonic()
        if self._proxy_enabled is None or now - self._proxy_checked_at > PROXY_REFRESH_INTERVAL:
            self._proxy_enabled = self.manager.proxy.is_enabled()
            self._proxy_checked_at = now
        return "[green]enabled" if self._proxy_enabled else "[yellow]disabled"

    def _generate_table(self) -> Table:
        """Generate connection details table."""
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column("Property", style="cyan", no_wrap=True)
        table.add_column("Value", style="green", no_wrap=True)

        server = self.manager.current_connection
        elapsed = time.monotonic() - self._start_time
        spinner_text = self._spinner.render(elapsed)

        if server is None:
            table.add_row("Status", "[dim]Not connected")
            return table

        table.add_row("Server", f"{server.display_name} ({server.host}:{server.ssh_port})")
        table.add_row("SOCKS Endpoint", f"{spinner_text} 127.0.0.1:{server.socks_port}")
        table.add_row("Interface", self.manager.interface or "[red]unresolved")
        table.add_row("System Proxy", self._proxy_state())
        table.add_row("Uptime", format_duration(elapsed))
        return table

    def _generate_display(self) -> Panel:
        """Generate the main display panel."""
        server = self.manager.current_connection
        name = server.display_name if server else "idle"
        title = Text(f"SOCKS Tunnel: {name}", style="bold cyan")
        return Panel(
            self._generate_table(),
            title=title,
            subtitle="Press Ctrl+C to disconnect",
            border_style="blue",
            padding=(1, 2),
        )

    def run(self) -> None:
        """Refresh the panel until stopped or the tunnel goes away."""
        with self.create_live_display(self._generate_display(), refresh_per_second=4) as live:
            while self.running and self.manager.is_connected():
                live.update(self._generate_display())
                time.sleep(self._refresh_rate)
        if self.running:
            console.print("[red]SSH tunnel exited unexpectedly")
