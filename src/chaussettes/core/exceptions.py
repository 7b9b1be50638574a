"""Custom exceptions for chaussettes.

Most OS-facing components never raise: they log and return booleans. These
exceptions cover the places where a caller has to react to a failure:
- Shell commands that could not be run
- Registry files that could not be written

Example:
    try:
        store.save(server)
    except ConfigStoreError as e:
        console.print(f"[red]Could not save server: {e}")
"""


class ChaussettesError(Exception):
    """Base exception for chaussettes errors."""


class CommandError(ChaussettesError):
    """Raised when an external command cannot be executed or fails."""

    def __init__(self, args: list[str], message: str) -> None:
        super().__init__(f"{' '.join(args)}: {message}")
        self.command = args


class ConfigStoreError(ChaussettesError):
    """Raised when the server registry cannot be written."""
