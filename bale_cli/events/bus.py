"""Process-wide status event log.

The EventLog is constructed once by the driver and passed to every component
that reports progress. Reporting an error never exits the process here; that
policy belongs to the driver, which reads ``error_count`` to decide.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from rich.console import Console

from bale_cli.errors import BaleError
from bale_cli.events.schemas import CATEGORY_STYLES
from bale_cli.events.schemas import ERROR
from bale_cli.events.schemas import VERBOSE_CATEGORIES
from bale_cli.events.schemas import ErrorEvent
from bale_cli.events.schemas import LogEvent
from bale_cli.utils.error_format import escape_markup

logger = logging.getLogger(__name__)

# Shown in place of the synthetic entry name of a stdin-sourced build
STDIN_LABEL = "from stdin"

_CATEGORY_WIDTH = max(len(name) for name in CATEGORY_STYLES)


def display_label(payload: Any, cwd: Path | None = None) -> str:
    """Map a lifecycle payload to the string shown to the user.

    Plugin-like payloads expose a ``slug``; anything else is treated as a
    path and shown relative to the working directory when it lies inside it.
    """
    slug = getattr(payload, "slug", None)
    label = str(slug if slug is not None else payload)

    if os.path.isabs(label):
        base = cwd or Path.cwd()
        try:
            return str(Path(label).relative_to(base))
        except ValueError:
            return label
    return label


class EventLog:
    """Line-oriented status reporter with named categories.

    Subscribers receive every printed event. Errors in subscribers are
    isolated and logged so one failing handler cannot break reporting.
    """

    def __init__(
        self,
        console: Console | None = None,
        *,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        if console is None:
            from bale_cli.console import console as default_console

            console = default_console
        self.console = console
        self.quiet = quiet
        self.verbose = verbose
        self.error_count = 0
        self._subscribers: list[Callable[[LogEvent], None]] = []

    def subscribe(self, handler: Callable[[LogEvent], None]) -> None:
        """Subscribe a handler to receive every event that gets printed."""
        self._subscribers.append(handler)

    def is_enabled(self, category: str) -> bool:
        """Whether events of this category are printed under the current flags."""
        if category == ERROR:
            return True
        if self.quiet:
            return False
        if category in VERBOSE_CATEGORIES:
            return self.verbose
        return True

    def emit(self, category: str, payload: Any = "", *, stdin: bool = False) -> LogEvent | None:
        """Render a status line for ``payload`` under ``category``.

        Args:
            category: Event category, e.g. "building"
            payload: Path, slug-bearing object or text to display
            stdin: The payload names a build read from stdin; shown as
                "from stdin" whatever its synthetic name

        Returns:
            The printed event, or None when the category is suppressed.
        """
        if not self.is_enabled(category):
            return None
        label = STDIN_LABEL if stdin else display_label(payload)
        event = LogEvent(category=category, label=label)
        self._render(event)
        return event

    def error(self, err: object) -> BaleError:
        """Report an error.

        String errors are normalized into a ``BaleError`` first. The console
        is flushed so the message is visible before the caller exits.

        Returns:
            The normalized error.
        """
        error = BaleError.from_value(err)
        self.error_count += 1
        event = ErrorEvent(label=str(error), error_type=type(error).__name__)
        self._render(event)
        self.console.file.flush()
        logger.debug(f"[events:error] {error}")
        return error

    def _render(self, event: LogEvent) -> None:
        style = CATEGORY_STYLES.get(event.category, "bold")
        name = event.category.rjust(_CATEGORY_WIDTH)
        self.console.print(f"[{style}]{name}[/{style}] {escape_markup(event.label)}")

        for handler in self._subscribers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in event handler {getattr(handler, '__name__', handler)!r}")
