"""Transform plugin capability interface."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol
from typing import runtime_checkable


@dataclass(frozen=True)
class TransformContext:
    """What a transform knows about the build it runs in.

    Attributes:
        entry: Entry path, or the synthetic ``source.<type>`` slug for stdin
        entry_type: Declared content type ("js", "css", ...)
        root: Project root
        development: Whether development-only behaviour is enabled
    """

    entry: str
    entry_type: str
    root: Path
    development: bool = False


@runtime_checkable
class Transform(Protocol):
    """A loaded transform plugin.

    Plugin modules expose ``plugin``, a class or zero-argument factory whose
    result satisfies this protocol. ``name`` is set by the loader to the name
    given on the command line when the instance does not define one.
    """

    name: str

    def transform(self, source: str, context: TransformContext) -> str: ...


def plugin_slug(plugin: object) -> str:
    """Display slug for a plugin: its ``slug`` when defined, else its name."""
    slug = getattr(plugin, "slug", None)
    if slug:
        return str(slug)
    return str(getattr(plugin, "name", type(plugin).__name__))
