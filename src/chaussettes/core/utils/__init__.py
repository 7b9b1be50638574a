"""Utility functions and helpers."""

from chaussettes.core.utils.prompt import PromptHandler, TunnelStatusUI
from chaussettes.core.utils.utils import format_duration, run_command

__all__ = ["format_duration", "PromptHandler", "run_command", "TunnelStatusUI"]
