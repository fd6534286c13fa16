"""Shared Rich console instances for CLI output.

Status output goes to stderr; stdout carries build results only.
"""

from rich.console import Console

console = Console(stderr=True, highlight=False)

__all__ = ["console"]
