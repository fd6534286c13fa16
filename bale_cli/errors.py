"""Exception types raised by the bale orchestration layer.

Components raise these; the top-level driver decides whether a reported
error ends the process.
"""

from __future__ import annotations

from pathlib import Path


class BaleError(Exception):
    """Base class for every error bale reports to the user."""

    @classmethod
    def from_value(cls, value: object) -> BaleError:
        """Normalize a raw error value into a structured error.

        Strings become a ``BaleError`` carrying that message; existing
        ``BaleError`` instances pass through; any other exception is
        wrapped with its formatted message.
        """
        if isinstance(value, BaleError):
            return value
        if isinstance(value, BaseException):
            from .utils.error_format import format_error_message

            error = cls(format_error_message(value))
            error.__cause__ = value
            return error
        return cls(str(value))


class BuildError(BaleError):
    """The bundling engine failed for an entry."""

    def __init__(self, message: str, entry: str | Path | None = None):
        super().__init__(message)
        self.entry = entry


class PluginLoadError(BaleError):
    """A transform plugin could not be resolved or instantiated."""

    def __init__(self, name: str, message: str):
        super().__init__(f"Plugin '{name}' failed to load: {message}")
        self.name = name


class SubcommandNotFoundError(BaleError):
    """No executable exists for a ``bale-<name>`` subcommand."""

    def __init__(self, binary: str):
        super().__init__(f"{binary} does not exist")
        self.binary = binary
