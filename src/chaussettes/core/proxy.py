"""System SOCKS proxy configuration through ``networksetup``.

This module reads and changes the SOCKS proxy ("SOCKS firewall proxy" in
``networksetup`` terms) of one network service. Every mutation is a separate
``networksetup`` call; failures are logged and reported as ``False`` and are
never rolled back, so a half-applied configuration stays visible to the caller.

Example:
    controller = ProxyController("Wi-Fi")
    if controller.enable(7070):
        print(controller.current_settings())
"""

import re
from dataclasses import dataclass
from typing import Final

from loguru import logger

from chaussettes.core.exceptions import CommandError
from chaussettes.core.utils.utils import CommandRunner, run_command

LOOPBACK: Final = "127.0.0.1"

SETTING_LINE_RE: Final = re.compile(r"^(Enabled|Server|Port):\s*(.*)$")


@dataclass
class ProxySettings:
    """Snapshot of a service's SOCKS proxy configuration.

    Attributes:
        enabled: Whether the proxy is turned on
        server: Configured proxy host
        port: Configured proxy port, 0 when the OS reported garbage

    Fields missing from the ``networksetup`` output stay ``None``.
    """

    enabled: bool | None = None
    server: str | None = None
    port: int | None = None


def parse_port(value: str) -> int:
    """Parse a port the way ``networksetup`` prints it, 0 if not numeric."""
    match = re.match(r"\d+", value.strip())
    return int(match.group(0)) if match else 0


def parse_proxy_settings(output: str) -> ProxySettings:
    """Parse ``networksetup -getsocksfirewallproxy`` output.

    Tolerates partial output: lines that are missing leave their field unset.
    """
    settings = ProxySettings()
    for line in output.splitlines():
        match = SETTING_LINE_RE.match(line.strip())
        if not match:
            continue
        key, value = match.group(1), match.group(2).strip()
        if key == "Enabled":
            settings.enabled = value == "Yes"
        elif key == "Server":
            settings.server = value
        else:
            settings.port = parse_port(value)
    return settings


class ProxyController:
    """Turn the SOCKS proxy of one network service on and off."""

    def __init__(self, interface: str | None, runner: CommandRunner = run_command) -> None:
        self.interface = interface
        self._run = runner

    def _execute(self, args: list[str]) -> bool:
        try:
            self._run(args)
        except CommandError as e:
            logger.error(f"networksetup call failed: {e}")
            return False
        except Exception:
            logger.exception(f"Unexpected error running {' '.join(args)}")
            return False
        return True

    def _query(self) -> str:
        try:
            return self._run(["networksetup", "-getsocksfirewallproxy", self.interface])
        except CommandError as e:
            logger.debug(f"Could not read proxy settings: {e}")
        except Exception:
            logger.exception("Unexpected error reading proxy settings")
        return ""

    def enable(self, port: int) -> bool:
        """Point the service's SOCKS proxy at ``127.0.0.1:port`` and turn it on."""
        if not self.interface:
            logger.error("Cannot enable SOCKS proxy: no network interface resolved")
            return False

        logger.info(f"Enabling SOCKS proxy on interface {self.interface} at port {port}")
        logger.debug(f"Setting proxy server to {LOOPBACK}:{port}")
        server_set = self._execute(
            ["networksetup", "-setsocksfirewallproxy", self.interface, LOOPBACK, str(port)]
        )
        logger.debug("Setting proxy state to: on")
        state_set = self._execute(
            ["networksetup", "-setsocksfirewallproxystate", self.interface, "on"]
        )

        if server_set and state_set:
            logger.info("SOCKS proxy enabled successfully")
            return True
        logger.error(
            f"SOCKS proxy only partially applied (server set: {server_set}, enabled: {state_set})"
        )
        return False

    def disable(self) -> bool:
        """Turn the service's SOCKS proxy off."""
        if not self.interface:
            logger.error("Cannot disable SOCKS proxy: no network interface resolved")
            return False

        logger.info(f"Disabling SOCKS proxy on interface {self.interface}")
        if not self._execute(["networksetup", "-setsocksfirewallproxystate", self.interface, "off"]):
            return False
        logger.info("SOCKS proxy disabled successfully")
        return True

    def is_enabled(self) -> bool:
        if not self.interface:
            return False
        enabled = "Enabled: Yes" in self._query()
        logger.debug(f"Proxy enabled check: {enabled}")
        return enabled

    def current_settings(self) -> ProxySettings | None:
        """Current SOCKS proxy snapshot, ``None`` when no interface is resolved."""
        if not self.interface:
            return None
        settings = parse_proxy_settings(self._query())
        logger.debug(f"Current proxy settings: {settings}")
        return settings
