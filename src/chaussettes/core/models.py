"""Server records describing one SSH endpoint and its tunnel parameters.

A ``Server`` is plain data: the registry owns and persists it, the connection
manager only reads it for the duration of a connect/disconnect cycle.

Example:
    server = Server(host="bastion.example.com", user="me", alias_name="work")
    if not server.is_valid():
        print(server.errors())
"""

import os
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Final

DEFAULT_SSH_PORT: Final = 22
DEFAULT_SOCKS_PORT: Final = 7070
DEFAULT_KEY_PATH: Final = os.path.expanduser("~/.ssh/id_rsa")

MIN_PORT: Final = 1
MAX_PORT: Final = 65535

# Older registry files used these names
LEGACY_KEYS: Final = {"alias": "alias_name", "port": "ssh_port"}


def is_valid_port(port: Any) -> bool:
    """Return True if ``port`` is an integer in the TCP port range."""
    return isinstance(port, int) and not isinstance(port, bool) and MIN_PORT <= port <= MAX_PORT


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Server:
    """Saved SSH host with its tunnel parameters.

    Attributes:
        host: Hostname or address of the SSH server
        user: Remote login name
        alias_name: Optional display alias
        ssh_port: Port of the SSH daemon
        socks_port: Local port the SOCKS endpoint listens on
        key_path: Private key passed to ssh when the file exists
        id: Unique identifier, fixed once the record is created
    """

    host: str = ""
    user: str = ""
    alias_name: str = ""
    ssh_port: int = DEFAULT_SSH_PORT
    socks_port: int = DEFAULT_SOCKS_PORT
    key_path: str = DEFAULT_KEY_PATH
    id: str = field(default_factory=_new_id)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "id" and "id" in self.__dict__:
            raise AttributeError("Server id cannot be changed")
        super().__setattr__(name, value)

    @property
    def display_name(self) -> str:
        """Alias when set, otherwise ``user@host``."""
        return self.alias_name or f"{self.user}@{self.host}"

    def errors(self) -> list[str]:
        """Return the violated constraints, empty when the record is valid."""
        errors = []
        if not self.host:
            errors.append("Host is required")
        if not self.user:
            errors.append("User is required")
        if not is_valid_port(self.ssh_port):
            errors.append("SSH port must be between 1 and 65535")
        if not is_valid_port(self.socks_port):
            errors.append("SOCKS port must be between 1 and 65535")
        return errors

    def is_valid(self) -> bool:
        return not self.errors()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Server":
        """Build a record from its flat key/value form.

        Unknown keys are ignored, missing ones take their defaults, and a new
        id is generated when the data carries none.
        """
        known = set(cls.__dataclass_fields__)
        values = {key: value for key, value in data.items() if key in known}
        for legacy, key in LEGACY_KEYS.items():
            if legacy in data and key not in values:
                values[key] = data[legacy]
        if not values.get("id"):
            values.pop("id", None)
        return cls(**values)
