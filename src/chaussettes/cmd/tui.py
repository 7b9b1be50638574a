"""Interactive terminal UI for browsing servers and connecting.

The UI redraws a Rich table of saved servers and reads one command per line
through prompt_toolkit:

    up / k, down / j   move the selection
    a                  add a server
    e                  edit the selected server
    d                  delete the selected server (asks first)
    c                  connect to the selected server
    x                  disconnect
    q                  quit, disconnecting first

Example:
    ServerBrowser(ServerStore(), ConnectionManager()).run()
"""

from loguru import logger
from rich.text import Text

from chaussettes.core.config_store import ServerStore
from chaussettes.core.connection import ConnectionManager
from chaussettes.core.exceptions import ConfigStoreError
from chaussettes.core.models import Server
from chaussettes.core.utils.prompt import PromptHandler, console, server_table

HELP_TEXT = "[↑↓/jk] Navigate  [a]dd  [e]dit  [d]elete  [c]onnect  [x]disconnect  [q]uit"

FORM_FIELDS = [
    ("Alias (optional)", "alias_name"),
    ("Host*", "host"),
    ("User*", "user"),
    ("SSH Port*", "ssh_port"),
    ("SOCKS Port*", "socks_port"),
    ("Key Path (optional)", "key_path"),
]
PORT_FIELDS = ("ssh_port", "socks_port")


def parse_form_port(value: str) -> int:
    """Form input to port number, 0 for anything non-numeric."""
    value = value.strip()
    return int(value) if value.isdigit() else 0


class ServerBrowser(PromptHandler):
    """Main loop of the interactive UI."""

    def __init__(self, store: ServerStore, manager: ConnectionManager) -> None:
        super().__init__()
        self.store = store
        self.manager = manager
        self.servers = store.all()
        self.selected_index = 0
        self.status_message = "Ready"
        logger.info(f"Server browser initialized with {len(self.servers)} server(s)")

    @property
    def selected(self) -> Server | None:
        if 0 <= self.selected_index < len(self.servers):
            return self.servers[self.selected_index]
        return None

    def render(self) -> None:
        current = self.manager.current_connection
        console.clear()
        console.print(
            server_table(
                self.servers,
                current=current,
                selected=self.selected_index if self.servers else None,
                tunnel_alive=current is None or self.manager.is_connected(),
            )
        )
        console.print(Text(self.status_message, style="bold"))
        console.print(HELP_TEXT, style="dim", markup=False)

    def run(self) -> None:
        logger.info("Launching server browser")
        try:
            while True:
                self.render()
                try:
                    key = self.ask("Command")
                except EOFError:
                    key = "q"
                if not self.handle_key(key.strip().lower()):
                    break
        except KeyboardInterrupt:
            self.quit()
        logger.info("Server browser shutdown complete")

    def handle_key(self, key: str) -> bool:
        """Apply one command; False means the UI should exit."""
        logger.debug(f"Main mode key pressed: {key!r}")

        if key in ("up", "k"):
            self.selected_index = max(self.selected_index - 1, 0)
        elif key in ("down", "j"):
            self.selected_index = max(min(self.selected_index + 1, len(self.servers) - 1), 0)
        elif key == "a":
            self.open_form(None)
        elif key == "e" and self.selected:
            self.open_form(self.selected)
        elif key == "d" and self.selected:
            self.confirm_delete()
        elif key == "c" and self.selected and self.manager.current_connection is None:
            self.connect_selected()
        elif key == "x" and self.manager.current_connection is not None:
            self.disconnect()
        elif key == "q":
            self.quit()
            return False
        return True

    def open_form(self, server: Server | None) -> None:
        base = server or Server()
        title = "Edit Server" if server else "Add Server"
        console.print(f"[bold yellow]{title}[/bold yellow] [dim](Ctrl+C to cancel)")

        try:
            values = {
                field: self.ask(label, str(getattr(base, field)))
                for label, field in FORM_FIELDS
            }
        except (KeyboardInterrupt, EOFError):
            logger.debug("Form cancelled")
            self.status_message = "Cancelled"
            return
        self.save_form(base, values)

    def save_form(self, base: Server, values: dict[str, str]) -> bool:
        """Validate form values on top of ``base`` and save them."""
        data = base.to_dict()
        for field, value in values.items():
            data[field] = parse_form_port(value) if field in PORT_FIELDS else value.strip()
        server = Server.from_dict(data)

        errors = server.errors()
        if errors:
            logger.warning(f"Validation failed: {', '.join(errors)}")
            self.status_message = f"Error: {', '.join(errors)}"
            return False

        try:
            self.store.save(server)
        except ConfigStoreError as e:
            self.status_message = f"Error saving server: {e}"
            return False

        self.servers = self.store.all()
        self.status_message = "Server saved"
        return True

    def confirm_delete(self) -> None:
        server = self.selected
        if server is None:
            return
        if self.manager.current_connection and self.manager.current_connection.id == server.id:
            self.status_message = "Disconnect before deleting this server"
            return
        if not self.ask_yes_no(f"Delete server '{server.display_name}'?"):
            return

        logger.info(f"Executing delete for server: {server.display_name}")
        if not self.store.delete(server.id):
            self.status_message = "Error deleting server"
            return
        self.servers = self.store.all()
        self.selected_index = max(min(self.selected_index, len(self.servers) - 1), 0)
        self.status_message = "Server deleted"

    def connect_selected(self) -> None:
        server = self.selected
        if server is None:
            return
        with console.status(f"Connecting to {server.display_name}..."):
            result = self.manager.connect(server)
        self.status_message = result.message

    def disconnect(self) -> None:
        with console.status("Disconnecting..."):
            result = self.manager.disconnect()
        self.status_message = result.message

    def quit(self) -> None:
        if self.manager.current_connection is not None:
            logger.info("Disconnecting before exit")
            self.manager.disconnect()
