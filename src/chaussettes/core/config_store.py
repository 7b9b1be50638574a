"""Persisted server registry.

Servers are stored in a TOML file as an array of flat tables, one per server,
each carrying every ``Server`` field by name:

    [[servers]]
    id = "0b6f..."
    alias_name = "work"
    host = "bastion.example.com"
    user = "me"
    ssh_port = 22
    socks_port = 7070
    key_path = "/Users/me/.ssh/id_rsa"

Reading is forgiving (a missing or corrupt file is an empty registry), writing
is not: failures raise ``ConfigStoreError`` so the caller can tell the user.
"""

import os
import sys
from pathlib import Path
from typing import Final

import tomli_w
from loguru import logger

from chaussettes.core.exceptions import ConfigStoreError
from chaussettes.core.models import Server

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

CONFIG_DIR: Final = Path.home() / ".config" / "chaussettes"
CONFIG_FILE: Final = CONFIG_DIR / "servers.toml"
CONFIG_ENV_VAR: Final = "CHAUSSETTES_CONFIG"


def default_config_file() -> Path:
    """Registry path, overridable through ``CHAUSSETTES_CONFIG``."""
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override).expanduser() if override else CONFIG_FILE


class ServerStore:
    """CRUD over the servers saved in one TOML file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path or default_config_file()
        logger.debug(f"ServerStore initialized. Config file: {self.path}")

    def all(self) -> list[Server]:
        if not self.path.exists():
            logger.debug("Config file does not exist, returning empty list")
            return []

        try:
            with self.path.open("rb") as f:
                data = tomllib.load(f)
            servers = [Server.from_dict(entry) for entry in data.get("servers", [])]
        except (OSError, tomllib.TOMLDecodeError, TypeError, AttributeError) as e:
            logger.error(f"Error loading config file {self.path}: {e}")
            return []

        logger.info(f"Loaded {len(servers)} server(s) from config")
        return servers

    def find(self, server_id: str) -> Server | None:
        logger.debug(f"Looking for server with ID: {server_id}")
        return next((server for server in self.all() if server.id == server_id), None)

    def find_by_name(self, name: str) -> Server | None:
        """Find a server by id, alias or ``user@host``."""
        servers = self.all()
        for matches in (
            lambda s: s.id == name,
            lambda s: s.alias_name == name,
            lambda s: f"{s.user}@{s.host}" == name,
        ):
            found = next((server for server in servers if matches(server)), None)
            if found:
                return found
        return None

    def save(self, server: Server) -> Server:
        """Insert ``server`` or replace the saved record with the same id."""
        logger.info(f"Saving server: {server.display_name} (ID: {server.id})")
        servers = self.all()
        index = next((i for i, s in enumerate(servers) if s.id == server.id), None)

        if index is None:
            logger.debug("Adding new server")
            servers.append(server)
        else:
            logger.debug(f"Updating existing server at index {index}")
            servers[index] = server

        self._write(servers)
        logger.info("Server saved successfully")
        return server

    def delete(self, server_id: str) -> bool:
        logger.info(f"Deleting server with ID: {server_id}")
        servers = [server for server in self.all() if server.id != server_id]
        try:
            self._write(servers)
        except ConfigStoreError as e:
            logger.error(f"Error deleting server: {e}")
            return False
        logger.info("Server deleted successfully")
        return True

    def clear(self) -> None:
        logger.warning("Clearing all servers from config")
        self._write([])

    def _write(self, servers: list[Server]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("wb") as f:
                tomli_w.dump({"servers": [server.to_dict() for server in servers]}, f)
        except OSError as e:
            logger.error(f"Failed to write config file {self.path}: {e}")
            raise ConfigStoreError(f"Could not write {self.path}: {e}") from e
        logger.debug(f"Wrote {len(servers)} server(s) to config file")
