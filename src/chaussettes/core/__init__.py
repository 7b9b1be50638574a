"""Core connection lifecycle implementation.

This package contains the components behind a connection:
- Server records and their validation
- Network service detection
- System SOCKS proxy configuration
- SSH tunnel process supervision
- The connection manager tying tunnel and proxy together
- The persisted server registry

Nothing here prints to the terminal; results are returned as values and
details go to the log.
"""
