"""Prompt and UI utilities."""

from chaussettes.core.utils.prompt.prompt import PromptHandler, console
from chaussettes.core.utils.prompt.status_ui import TunnelStatusUI, server_table

__all__ = ["console", "PromptHandler", "server_table", "TunnelStatusUI"]
