"""Status event schemas for the build event log."""

from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

ERROR = "error"

# Lifecycle categories forwarded from a build session, in the order they fire
LIFECYCLE_EVENTS = (
    "resolving",
    "resolved",
    "installing",
    "installed",
    "building",
    "built",
)

# Only shown with --verbose
VERBOSE_CATEGORIES = frozenset({"resolving", "resolved", "found"})

CATEGORY_STYLES: dict[str, str] = {
    "resolving": "dim",
    "resolved": "dim",
    "found": "cyan",
    "installing": "yellow",
    "installed": "green",
    "building": "magenta",
    "built": "green",
    "watching": "blue",
    "changed": "blue",
    "wrote": "green",
    ERROR: "bold red",
}


class LogEvent(BaseModel):
    """One rendered status line."""

    model_config = ConfigDict(frozen=True)

    category: str = Field(description="Event category, e.g. 'building'")
    label: str = Field(default="", description="Rendered display label")

    @property
    def is_error(self) -> bool:
        return self.category == ERROR


class ErrorEvent(LogEvent):
    """Error event; carries the normalized message."""

    category: Literal["error"] = ERROR
    error_type: str = Field(default="BaleError", description="Exception class name")
