"""Build orchestration.

Runs one build session per entry for the selected build target: a single
in-memory build written to stdout, a stdin build, or a concurrent batch
written into an output directory. Optionally hands the same build to the
watch loop afterwards.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Sequence
from functools import partial
from pathlib import Path
from typing import IO

from .engine import BuildSession
from .engine import SessionFactory
from .engine import SessionOptions
from .errors import BuildError
from .events import LIFECYCLE_EVENTS
from .events import EventLog
from .invocation import BuildPlan
from .invocation import BuildTarget
from .invocation import Invocation
from .plugin_resolution import Transform
from .utils.error_format import entry_error_message
from .utils.error_format import format_error_message
from .watch import WatchSession

logger = logging.getLogger(__name__)


class BuildOrchestrator:
    """Constructs, wires and runs build sessions for one invocation."""

    def __init__(
        self,
        invocation: Invocation,
        root: Path,
        plugins: Sequence[Transform],
        events: EventLog,
        watcher: WatchSession | None = None,
        session_factory: SessionFactory = BuildSession,
        stdin: IO[str] | None = None,
        stdout: IO[bytes] | None = None,
    ):
        self.invocation = invocation
        self.root = root
        self.plugins = tuple(plugins)
        self.events = events
        self.watcher = watcher or WatchSession(events)
        self.session_factory = session_factory
        self.stdin = stdin
        self.stdout = stdout

    async def run(self, plan: BuildPlan) -> None:
        """Execute a build plan.

        Raises:
            BuildError: Any session failed
        """
        logger.debug(f"[build] target={plan.target.value} entries={list(plan.entries)} output={plan.output_dir}")

        if plan.target is BuildTarget.STDIN_STDOUT:
            stdin = self.stdin if self.stdin is not None else sys.stdin
            await self.build_stdin(stdin.read())
        elif plan.target is BuildTarget.SINGLE_STDOUT:
            await self.build_single(plan.entries[0])
        elif plan.target in (BuildTarget.SINGLE_DIRECTORY, BuildTarget.MULTI_DIRECTORY):
            assert plan.output_dir is not None
            await self.build_batch(plan.entries, plan.output_dir)
        else:
            raise ValueError(f"Nothing to build for target {plan.target.value}")

    def session_options(self, output_dir: Path | None = None) -> SessionOptions:
        inv = self.invocation
        return SessionOptions(
            root=self.root,
            development=inv.development,
            copy_files=inv.copy_files,
            global_name=inv.global_name,
            output_dir=output_dir,
            plugins=self.plugins,
            entry_type=inv.entry_type,
        )

    def create_session(
        self,
        entry: str | None,
        output_dir: Path | None = None,
        source: str | None = None,
    ) -> BuildSession:
        """Construct a session for one entry and wire its events."""
        session = self.session_factory(entry, self.session_options(output_dir), source=source)
        self.wire_events(session)
        return session

    def wire_events(self, session: BuildSession) -> None:
        """Forward a session's lifecycle notifications to the event log.

        The event log drops what --quiet and --verbose exclude. A session
        without an entry path reads stdin, so its synthetic name is never
        shown.
        """
        stdin = getattr(session, "entry", None) is None
        for event in LIFECYCLE_EVENTS:
            session.on(event, partial(self.events.emit, event, stdin=stdin))

    async def build_stdin(self, source: str) -> None:
        """Build source text read from stdin and write it to stdout."""
        session = self.create_session(None, source=source)
        self._write_stdout(await self._bundle(session))

    async def build_single(self, entry: str) -> None:
        """Build one entry to stdout, then keep rebuilding under --watch."""
        session = self.create_session(entry)
        self._write_stdout(await self._bundle(session))

        if self.invocation.watch:
            await self.watcher.watch(self.root, partial(self.build_single, entry))

    async def build_batch(self, entries: Sequence[str], output_dir: Path) -> list[Path]:
        """Build every entry concurrently into ``output_dir``.

        Every session runs to completion or failure before the outcome is
        decided. Outputs already written by successful entries are kept when
        another entry fails.

        Returns:
            Written output paths, in entry order

        Raises:
            BuildError: At least one entry failed; names the first in entry order
        """
        sessions = [self.create_session(entry, output_dir) for entry in entries]
        results = await asyncio.gather(*(s.write() for s in sessions), return_exceptions=True)

        written: list[Path] = []
        failures: list[tuple[str, BaseException]] = []
        for entry, result in zip(entries, results, strict=True):
            if isinstance(result, BaseException):
                failures.append((entry, result))
            else:
                written.append(result)
                self.events.emit("wrote", result)

        if failures:
            entry, error = failures[0]
            for other_entry, other in failures[1:]:
                logger.debug(f"[build] {other_entry} also failed: {format_error_message(other)}")
            raise self._as_build_error(entry, error, failed=len(failures), total=len(entries))

        if self.invocation.watch:
            await self.watcher.watch(
                self.root,
                partial(self.build_batch, entries, output_dir),
                ignore=[output_dir.absolute()],
            )
        return written

    async def _bundle(self, session: BuildSession) -> bytes:
        try:
            return await session.bundle()
        except Exception as e:
            raise self._as_build_error(session.slug, e) from e

    def _write_stdout(self, data: bytes) -> None:
        stdout = self.stdout if self.stdout is not None else sys.stdout.buffer
        stdout.write(data)
        stdout.flush()

    @staticmethod
    def _as_build_error(entry: str, error: BaseException, failed: int = 1, total: int = 1) -> BuildError:
        build_error = BuildError(entry_error_message(entry, error, failed=failed, total=total), entry=entry)
        build_error.__cause__ = error
        return build_error
