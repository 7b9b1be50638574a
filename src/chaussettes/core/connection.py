"""Connection lifecycle management.

The connection manager is the single entry point the user interfaces call.
It combines the tunnel supervisor and the proxy controller so that a tunnel
and the system proxy pointing at it are brought up and torn down together:

- connect: start the tunnel first, then enable the proxy
- disconnect: stop the tunnel, then disable the proxy, always both

Only one connection can be current. A second connect is rejected rather than
queued. The network service is detected once, when the manager is created.

If enabling the proxy fails after the tunnel came up, the connection is still
recorded as current: the tunnel is live and the failure is reported in the
result message.

Example:
    manager = ConnectionManager()
    result = manager.connect(server)
    console.print(result.message)
"""

from dataclasses import dataclass

from loguru import logger

from chaussettes.core.models import Server
from chaussettes.core.network import InterfaceLocator
from chaussettes.core.proxy import ProxyController
from chaussettes.core.tunnel import TunnelSupervisor


@dataclass(frozen=True)
class ConnectionResult:
    """Outcome of a connect or disconnect request.

    Attributes:
        success: Whether the request did what was asked
        message: Short status line suitable for the user
    """

    success: bool
    message: str

    def __bool__(self) -> bool:
        return self.success


class ConnectionManager:
    """Own the one current connection and its tunnel and proxy."""

    def __init__(
        self,
        supervisor: TunnelSupervisor | None = None,
        proxy: ProxyController | None = None,
        locator: InterfaceLocator | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            supervisor: Tunnel supervisor, a default one when omitted
            proxy: Proxy controller; when omitted the primary network service
                is detected with ``locator`` and a controller built for it
            locator: Interface locator used when ``proxy`` is omitted
        """
        self.supervisor = supervisor or TunnelSupervisor()
        if proxy is None:
            interface = (locator or InterfaceLocator()).detect()
            logger.info(f"Detected primary network interface: {interface}")
            proxy = ProxyController(interface)
        self.proxy = proxy
        self._current: Server | None = None

    @property
    def interface(self) -> str | None:
        return self.proxy.interface

    @property
    def current_connection(self) -> Server | None:
        return self._current

    def is_connected(self) -> bool:
        return self.supervisor.is_connected()

    def connect(self, server: Server) -> ConnectionResult:
        """Start a tunnel to ``server`` and route the system proxy through it."""
        if self._current is not None:
            logger.warning(
                f"Connect to {server.display_name} rejected, "
                f"already connected to {self._current.display_name}"
            )
            return ConnectionResult(False, f"Already connected to {self._current.display_name}")

        errors = server.errors()
        if errors:
            logger.warning(f"Validation failed for {server.display_name}: {', '.join(errors)}")
            return ConnectionResult(False, f"Error: {', '.join(errors)}")

        logger.info(
            f"Connecting to server: {server.display_name} ({server.host}:{server.ssh_port})"
        )
        if not self.supervisor.connect(server):
            logger.error(f"Failed to connect to {server.display_name}")
            return ConnectionResult(False, f"Failed to connect to {server.display_name}")

        logger.info("SSH tunnel established, enabling proxy")
        proxy_enabled = self.proxy.enable(server.socks_port)
        self._current = server

        if not proxy_enabled:
            logger.warning(f"Connected to {server.display_name} but system proxy was not applied")
            return ConnectionResult(
                True, f"Connected to {server.display_name} (system proxy not applied)"
            )
        logger.info(f"Successfully connected to {server.display_name}")
        return ConnectionResult(True, f"Connected to {server.display_name}")

    def disconnect(self) -> ConnectionResult:
        """Stop the tunnel and turn the system proxy off."""
        if self._current is None:
            return ConnectionResult(False, "Not connected")

        logger.info(f"Disconnecting from server: {self._current.display_name}")

        try:
            self.supervisor.disconnect()
        except Exception:
            logger.exception("Error stopping SSH tunnel")
        finally:
            # Runs on Ctrl+C too, the proxy must not outlive the tunnel
            try:
                self.proxy.disable()
            except Exception:
                logger.exception("Error disabling system proxy")
            self._current = None

        logger.info("Disconnected successfully")
        return ConnectionResult(True, "Disconnected")
