"""File-watch rebuild loop.

A WatchSession re-runs a build action whenever files under the project root
change. Only one watch loop may run per session; starting it again (as the
rebuild action itself does) is a no-op.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from collections.abc import Awaitable
from collections.abc import Callable
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import watchfiles

from .events import EventLog

logger = logging.getLogger(__name__)

ChangeSet = set[tuple[watchfiles.Change, str]]
ChangesFactory = Callable[[Path, Iterable[Path]], AsyncIterator[ChangeSet]]


def watch_changes(root: Path, ignore: Iterable[Path] = ()) -> AsyncIterator[ChangeSet]:
    """Yield batches of filesystem changes under ``root``.

    Uses watchfiles' default filter (VCS directories, caches, editor swap
    files) extended with ``ignore``, which keeps build output from retriggering
    the build that wrote it.
    """
    watch_filter = watchfiles.DefaultFilter(ignore_paths=[str(p) for p in ignore])
    return watchfiles.awatch(root, watch_filter=watch_filter)


class WatchSession:
    """Guards a single active watch loop and serializes its rebuilds."""

    def __init__(self, events: EventLog | None = None, changes: ChangesFactory = watch_changes):
        self.events = events
        self.active = False
        self.rebuilds = 0
        self._changes = changes
        self._lock = asyncio.Lock()

    async def watch(
        self,
        root: Path,
        action: Callable[[], Awaitable[Any]],
        ignore: Iterable[Path] = (),
    ) -> None:
        """Run ``action`` on every change under ``root`` until the process ends.

        Returns immediately when this session is already watching.
        """
        if self.active:
            logger.debug("[watch] already active, ignoring start request")
            return
        self.active = True

        if self.events:
            self.events.emit("watching", root)

        async for changes in self._changes(root, tuple(ignore)):
            if self.events:
                for _change, path in sorted(changes, key=lambda c: c[1]):
                    self.events.emit("changed", path)
            await self.rebuild(action)

        logger.debug("[watch] change stream ended")

    async def rebuild(self, action: Callable[[], Awaitable[Any]]) -> None:
        """Run one rebuild; concurrent triggers wait for the running one."""
        async with self._lock:
            self.rebuilds += 1
            logger.debug(f"[watch] rebuild #{self.rebuilds}")
            await action()
