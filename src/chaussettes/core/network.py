"""Network service detection.

This module finds the macOS network service (``Wi-Fi``, ``USB 10/100/1000
LAN``...) that currently carries default traffic. Proxy settings are applied
per service name, not per device, so the device behind the default route has
to be mapped back to the service that owns it.

Detection tries, in order:
- The service owning the default route's device
- The first enabled, non-VPN, non-virtual service with an IPv4 address
- The conventional ``Wi-Fi`` service name

Every query is best-effort: missing tools, failing commands and garbled output
just move detection to the next step.

Example:
    interface = InterfaceLocator().detect()
    print(f"Proxy settings will be applied to {interface}")
"""

import re
from typing import Final

from loguru import logger

from chaussettes.core.exceptions import CommandError
from chaussettes.core.utils.utils import CommandRunner, run_command

DEFAULT_INTERFACE: Final = "Wi-Fi"

# Services that never carry the default route for our purposes
SKIPPED_SERVICE_MARKERS: Final = ("vpn", "virtual", "thunderbolt bridge")

DISABLED_SERVICES_HEADER: Final = "An asterisk"

ROUTE_INTERFACE_RE: Final = re.compile(r"interface:\s*(\w+)")
HARDWARE_PORT_RE: Final = re.compile(r"^Hardware Port:\s*(.+)$")
DEVICE_RE: Final = re.compile(r"^Device:\s*(\w+)")
IP_ADDRESS_RE: Final = re.compile(r"IP address:\s*(\d+\.\d+\.\d+\.\d+)")


class InterfaceLocator:
    """Locate the network service that should carry the proxy configuration."""

    def __init__(self, runner: CommandRunner = run_command) -> None:
        self._run = runner

    def detect(self) -> str:
        """Return the name of the primary network service.

        Never raises; falls back to ``DEFAULT_INTERFACE`` when nothing matches.
        """
        logger.debug("Detecting primary network interface")

        device = self.default_route_device()
        if device:
            service = self.service_for_device(device)
            if service:
                logger.info(f"Detected primary interface from default route: {service} ({device})")
                return service

        service = self.first_active_service()
        if service:
            logger.info(f"Detected primary interface (first active): {service}")
            return service

        logger.warning(f"Could not detect primary interface, falling back to {DEFAULT_INTERFACE}")
        return DEFAULT_INTERFACE

    def _query(self, args: list[str]) -> str:
        try:
            return self._run(args)
        except CommandError as e:
            logger.debug(f"Query failed: {e}")
        except Exception:
            logger.exception(f"Unexpected error running {' '.join(args)}")
        return ""

    def default_route_device(self) -> str | None:
        """Device name of the default route, e.g. ``en0``."""
        match = ROUTE_INTERFACE_RE.search(self._query(["route", "-n", "get", "default"]))
        if not match:
            return None
        logger.debug(f"Default route interface: {match.group(1)}")
        return match.group(1)

    def service_for_device(self, device: str) -> str | None:
        """Map a device name to the hardware port (service) listing it."""
        output = self._query(["networksetup", "-listallhardwareports"])

        # Each "Hardware Port" line precedes the "Device" line it owns
        current_service = None
        for line in output.splitlines():
            port_match = HARDWARE_PORT_RE.match(line)
            if port_match:
                current_service = port_match.group(1).strip()
                continue
            device_match = DEVICE_RE.match(line)
            if device_match and device_match.group(1) == device and current_service:
                return current_service
        return None

    def first_active_service(self) -> str | None:
        """First enabled, non-virtual service that reports an IPv4 address."""
        output = self._query(["networksetup", "-listallnetworkservices"])

        for line in output.splitlines():
            if line.startswith(DISABLED_SERVICES_HEADER):
                continue
            service = line.strip()
            if not service or "*" in service:
                continue
            lowered = service.lower()
            if any(marker in lowered for marker in SKIPPED_SERVICE_MARKERS):
                continue

            info = self._query(["networksetup", "-getinfo", service])
            match = IP_ADDRESS_RE.search(info)
            if match and match.group(1) != "0.0.0.0":
                return service
        return None
