"""SSH tunnel process supervision.

This module owns the ``ssh -N -D`` subprocess that exposes a local SOCKS
endpoint. The supervisor walks a small state machine:

    IDLE -> STARTING -> RUNNING -> STOPPING -> IDLE

A failed start goes straight back to IDLE. Liveness is never cached: every
``is_connected()`` call probes the process again, so an ssh that died on its
own (network drop, remote reboot) is noticed on the next check.

Example:
    supervisor = TunnelSupervisor()
    if supervisor.connect(server):
        ...
        supervisor.disconnect()
"""

import contextlib
import subprocess
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Final

import psutil
from loguru import logger

from chaussettes.core.models import Server
from chaussettes.core.proxy import LOOPBACK

# Constants
STARTUP_GRACE_PERIOD: Final = 2.0  # Seconds an immediately failing ssh gets to exit
TERMINATE_TIMEOUT: Final = 5.0  # Seconds to wait after SIGTERM before SIGKILL
KILL_WAIT_TIMEOUT: Final = 1.0  # Seconds to wait for reaping after SIGKILL
SERVER_ALIVE_INTERVAL: Final = 30
SERVER_ALIVE_COUNT_MAX: Final = 3


class TunnelState(Enum):
    """Lifecycle states of the tunnel subprocess."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


@dataclass
class TunnelHandle:
    """Live ssh subprocess bound to one server.

    Attributes:
        pid: Process identifier of the ssh client
        server: Server the tunnel was started for
        process: The running subprocess
        alive: Result of the most recent liveness probe
    """

    pid: int
    server: Server
    process: subprocess.Popen
    alive: bool = True


def process_alive(pid: int) -> bool:
    """Probe a process without signalling it.

    Returns False when the process is gone or a zombie. Any other probe error
    (permissions, platform quirks) is logged and also reported as not alive.
    """
    try:
        return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
    except psutil.Error as e:
        logger.warning(f"Could not probe process {pid}: {e}")
        return False


def build_ssh_command(server: Server, ssh_binary: str = "ssh") -> list[str]:
    """Build the ssh invocation for dynamic port forwarding to ``server``."""
    cmd = [
        ssh_binary,
        "-N",  # No remote command, forwarding only
        "-D", f"{LOOPBACK}:{server.socks_port}",
        "-p", str(server.ssh_port),
        "-o", "StrictHostKeyChecking=accept-new",
        "-o", "UserKnownHostsFile=/dev/null",
        "-o", f"ServerAliveInterval={SERVER_ALIVE_INTERVAL}",
        "-o", f"ServerAliveCountMax={SERVER_ALIVE_COUNT_MAX}",
    ]

    if server.key_path:
        key_path = Path(server.key_path).expanduser()
        if key_path.exists():
            cmd.extend(["-i", str(key_path)])
        else:
            logger.debug(f"Key file {key_path} not found, relying on ssh defaults")

    cmd.append(f"{server.user}@{server.host}")
    return cmd


class TunnelSupervisor:
    """Start, watch and stop the single ssh tunnel subprocess."""

    def __init__(
        self,
        grace_period: float = STARTUP_GRACE_PERIOD,
        terminate_timeout: float = TERMINATE_TIMEOUT,
        ssh_binary: str = "ssh",
    ) -> None:
        self.grace_period = grace_period
        self.terminate_timeout = terminate_timeout
        self.ssh_binary = ssh_binary
        self._state = TunnelState.IDLE
        self._handle: TunnelHandle | None = None

    @property
    def state(self) -> TunnelState:
        return self._state

    @property
    def handle(self) -> TunnelHandle | None:
        return self._handle

    @property
    def pid(self) -> int | None:
        return self._handle.pid if self._handle else None

    @property
    def current_server(self) -> Server | None:
        return self._handle.server if self._handle else None

    def connect(self, server: Server) -> bool:
        """Spawn ssh for ``server`` and report whether it survived startup."""
        logger.info(
            f"Attempting to connect to server: {server.display_name} "
            f"({server.host}:{server.ssh_port})"
        )

        if self._state is not TunnelState.IDLE:
            logger.warning(f"Tunnel supervisor is {self._state.value}, refusing to connect")
            return False
        errors = server.errors()
        if errors:
            logger.warning(f"Refusing to connect to invalid server: {', '.join(errors)}")
            return False

        self._state = TunnelState.STARTING
        process: subprocess.Popen | None = None
        try:
            cmd = build_ssh_command(server, self.ssh_binary)
            logger.debug(f"Executing SSH command: {' '.join(cmd)}")

            process = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            logger.debug(f"SSH process started with PID: {process.pid}")

            # Auth failures and unreachable hosts make ssh exit within this window
            time.sleep(self.grace_period)

            if process.poll() is None and process_alive(process.pid):
                self._handle = TunnelHandle(pid=process.pid, server=server, process=process)
                self._state = TunnelState.RUNNING
                logger.info(f"SSH tunnel successfully started for {server.display_name}")
                logger.info(f"SOCKS proxy available at {LOOPBACK}:{server.socks_port}")
                return True

            logger.error(f"SSH process died immediately (exit status: {process.returncode})")
        except Exception as e:
            logger.error(f"SSH connection error for {server.host}: {type(e).__name__} - {e}")
            logger.opt(exception=True).debug("SSH connection error details")
        finally:
            # Also reached when Ctrl+C lands in the grace period
            if self._state is not TunnelState.RUNNING:
                self._discard(process)
                self._state = TunnelState.IDLE
        return False

    def _discard(self, process: subprocess.Popen | None) -> None:
        """Kill and reap a process that is no longer wanted, ignoring errors."""
        if process is None:
            return
        with contextlib.suppress(Exception):
            if process.poll() is None:
                process.kill()
            process.wait(timeout=KILL_WAIT_TIMEOUT)

    def disconnect(self) -> bool:
        """Stop the running tunnel, escalating to SIGKILL if needed.

        Returns False only when no tunnel is running.
        """
        if self._state is not TunnelState.RUNNING or self._handle is None:
            return False

        handle = self._handle
        logger.info(f"Disconnecting from server: {handle.server.display_name}")
        self._state = TunnelState.STOPPING
        process = handle.process

        try:
            if process.poll() is None:
                process.terminate()
                try:
                    process.wait(timeout=self.terminate_timeout)
                except subprocess.TimeoutExpired:
                    logger.warning("SSH process did not exit gracefully, forcing kill")
                    # May already be gone
                    with contextlib.suppress(Exception):
                        process.kill()
                        process.wait(timeout=KILL_WAIT_TIMEOUT)
        except OSError as e:
            logger.warning(f"Error while stopping SSH process {handle.pid}: {e}")
        except KeyboardInterrupt:
            logger.warning("Interrupted while stopping SSH process, forcing kill")
            self._discard(process)
            raise
        finally:
            handle.alive = False
            self._handle = None
            self._state = TunnelState.IDLE

        logger.info("SSH tunnel disconnected successfully")
        return True

    def is_connected(self) -> bool:
        """Re-probe the tunnel process; True only if it is still running."""
        if self._handle is None:
            return False
        alive = self._handle.process.poll() is None and process_alive(self._handle.pid)
        self._handle.alive = alive
        return alive
