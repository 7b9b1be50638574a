"""Command line interface modules.

This package provides the user-facing entry points:
- The Typer application (server registry commands, connect, interface info)
- The interactive terminal UI for browsing and connecting to servers
- Network service information display

The command modules only talk to the connection manager and the server
store; every OS interaction lives in the core package.
"""
