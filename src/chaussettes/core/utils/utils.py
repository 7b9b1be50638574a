"""Common utility functions."""

import subprocess
from collections.abc import Callable
from typing import Final

from chaussettes.core.exceptions import CommandError

# Seconds before a query to an OS tool is abandoned
COMMAND_TIMEOUT: Final = 10

# Anything with run_command's shape; tests pass canned fakes
CommandRunner = Callable[[list[str]], str]

# Time constants
SECONDS_PER_MINUTE: Final = 60
SECONDS_PER_HOUR: Final = SECONDS_PER_MINUTE * 60
SECONDS_PER_DAY: Final = SECONDS_PER_HOUR * 24


def run_command(args: list[str], timeout: float = COMMAND_TIMEOUT) -> str:
    """Run a command and return its standard output.

    Args:
        args: Program and arguments, no shell involved
        timeout: Seconds to wait before giving up

    Returns:
        str: Captured standard output

    Raises:
        CommandError: If the program is missing, times out or exits non-zero
    """
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        raise CommandError(args, "command not found") from e
    except subprocess.TimeoutExpired as e:
        raise CommandError(args, f"timed out after {timeout}s") from e
    except OSError as e:
        raise CommandError(args, str(e)) from e

    if result.returncode != 0:
        raise CommandError(args, f"exit status {result.returncode}: {result.stderr.strip()}")
    return result.stdout


def format_duration(seconds: float) -> str:
    """Format a duration as a compact human readable string.

    Args:
        seconds: Elapsed time in seconds

    Returns:
        str: For example ``"45s"``, ``"3m 12s"``, ``"2h 05m"`` or ``"1d 04h"``
    """
    seconds = max(int(seconds), 0)
    if seconds < SECONDS_PER_MINUTE:
        return f"{seconds}s"
    if seconds < SECONDS_PER_HOUR:
        minutes, secs = divmod(seconds, SECONDS_PER_MINUTE)
        return f"{minutes}m {secs:02d}s"
    if seconds < SECONDS_PER_DAY:
        hours, rest = divmod(seconds, SECONDS_PER_HOUR)
        return f"{hours}h {rest // SECONDS_PER_MINUTE:02d}m"
    days, rest = divmod(seconds, SECONDS_PER_DAY)
    return f"{days}d {rest // SECONDS_PER_HOUR:02d}h"
