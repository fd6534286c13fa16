"""Shared helpers for the bale CLI."""

from bale_cli.utils.error_format import entry_error_message
from bale_cli.utils.error_format import escape_markup
from bale_cli.utils.error_format import format_error_message

__all__ = ["entry_error_message", "escape_markup", "format_error_message"]
