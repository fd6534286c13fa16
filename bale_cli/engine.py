"""Bundling engine interface and the reference engine.

The orchestrator only relies on this surface:
- ``BuildSession(entry, options, source=None)``
- ``session.on(event, handler)`` for lifecycle notifications
- ``await session.bundle()`` returning the built bytes
- ``await session.write()`` writing into ``options.output_dir``

The reference engine reads the entry, runs the transform plugins over it in
order, optionally exposes JavaScript output as a named global, and writes the
result. Any class with the same surface can replace it via the ``engine``
setting ("package.module:ClassName").
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import os
import pkgutil
import shutil
from collections import defaultdict
from collections.abc import Callable
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path
from typing import Any

from .errors import BaleError
from .errors import BuildError
from .events.schemas import LIFECYCLE_EVENTS
from .invocation import DEFAULT_ENTRY_TYPE
from .plugin_resolution.protocol import Transform
from .plugin_resolution.protocol import TransformContext
from .plugin_resolution.protocol import plugin_slug
from .utils.error_format import entry_error_message
from .utils.error_format import format_error_message

logger = logging.getLogger(__name__)

# Entry name given to a build whose source came from stdin
STDIN_SLUG_TEMPLATE = "source.{type}"

_GLOBAL_WRAPPER = """(function (root, factory) {{
  root[{name!r}] = factory();
}})(typeof self !== "undefined" ? self : this, function () {{
var module = {{ exports: {{}} }};
var exports = module.exports;
{source}
return module.exports;
}});
"""


def stdin_slug(entry_type: str = DEFAULT_ENTRY_TYPE) -> str:
    return STDIN_SLUG_TEMPLATE.format(type=entry_type)


@dataclass
class SessionOptions:
    """Configuration shared by every session of one invocation."""

    root: Path
    development: bool = False
    copy_files: bool = False
    global_name: str | None = None
    output_dir: Path | None = None
    plugins: Sequence[Transform] = field(default_factory=tuple)
    entry_type: str = DEFAULT_ENTRY_TYPE


class BuildSession:
    """One build of one entry. Not reusable once it has run."""

    def __init__(self, entry: str | Path | None, options: SessionOptions, source: str | None = None):
        if entry is None and source is None:
            raise ValueError("BuildSession needs an entry path or source text")

        self.options = options
        self.source = source
        if entry is None:
            self.entry: Path | None = None
            self.slug = stdin_slug(options.entry_type)
            self.entry_type = options.entry_type
        else:
            self.entry = Path(entry)
            self.slug = str(self.entry)
            self.entry_type = self.entry.suffix.lstrip(".") or options.entry_type

        self._handlers: dict[str, list[Callable[[Any], None]]] = defaultdict(list)
        self._started = False

    def on(self, event: str, handler: Callable[[Any], None]) -> None:
        """Register a handler for a lifecycle event."""
        if event not in LIFECYCLE_EVENTS:
            raise ValueError(f"Unknown lifecycle event: {event}")
        self._handlers[event].append(handler)

    def emit(self, event: str, payload: Any) -> None:
        for handler in self._handlers.get(event, ()):
            handler(payload)

    @property
    def transforms_output(self) -> bool:
        """Whether the built output differs from the entry file on disk."""
        return bool(self.options.plugins) or self._wraps_global()

    async def bundle(self) -> bytes:
        """Run the build and return its output.

        Raises:
            BuildError: The entry could not be read or a transform failed
        """
        self._claim()
        try:
            text = await self._resolve()
            self._install()
            return (await self._build(text)).encode("utf-8")
        except BaleError:
            raise
        except Exception as e:
            raise BuildError(entry_error_message(self.slug, e), entry=self.entry) from e

    async def write(self) -> Path:
        """Run the build and write its output into the output directory.

        Untransformed entries are symlinked unless ``copy_files`` is set.

        Returns:
            Path of the written output file
        """
        output_dir = self.options.output_dir
        if output_dir is None:
            raise BuildError(f"{self.slug}: no output directory configured", entry=self.entry)
        if self.entry is None:
            raise BuildError("stdin builds can only be written to stdout")

        target = output_dir / self.entry.name

        if not self.transforms_output:
            self._claim()
            try:
                source_path = await self._locate()
                self._install()
                self.emit("building", self.slug)
                await asyncio.to_thread(self._place, source_path, target)
                self.emit("built", self.slug)
            except BaleError:
                raise
            except Exception as e:
                raise BuildError(entry_error_message(self.slug, e), entry=self.entry) from e
            return target

        data = await self.bundle()
        try:
            await asyncio.to_thread(self._write_bytes, target, data)
        except OSError as e:
            raise BuildError(f"{self.slug}: cannot write {target}: {format_error_message(e)}", entry=self.entry) from e
        return target

    def _claim(self) -> None:
        if self._started:
            raise RuntimeError("BuildSession has already run")
        self._started = True

    async def _locate(self) -> Path:
        assert self.entry is not None
        self.emit("resolving", self.slug)
        path = self.entry if self.entry.is_absolute() else Path.cwd() / self.entry
        if not path.is_file():
            raise BuildError(f"Cannot find entry {self.entry}", entry=self.entry)
        self.emit("resolved", str(path))
        return path

    async def _resolve(self) -> str:
        if self.entry is None:
            self.emit("resolving", self.slug)
            self.emit("resolved", self.slug)
            return self.source or ""
        path = await self._locate()
        return await asyncio.to_thread(path.read_text, encoding="utf-8")

    def _install(self) -> None:
        # The reference engine has no dependencies to fetch; plugins are
        # already instantiated, so this only marks the phase.
        self.emit("installing", self.slug)
        for plugin in self.options.plugins:
            logger.debug(f"[engine] {self.slug}: using {plugin_slug(plugin)}")
        self.emit("installed", self.slug)

    async def _build(self, text: str) -> str:
        self.emit("building", self.slug)
        context = TransformContext(
            entry=self.slug,
            entry_type=self.entry_type,
            root=self.options.root,
            development=self.options.development,
        )
        for plugin in self.options.plugins:
            result = plugin.transform(text, context)
            if inspect.isawaitable(result):
                result = await result
            if not isinstance(result, str):
                raise BuildError(
                    f"{self.slug}: plugin {plugin_slug(plugin)} returned {type(result).__name__}, expected str",
                    entry=self.entry,
                )
            text = result

        if self._wraps_global():
            text = _GLOBAL_WRAPPER.format(name=self.options.global_name, source=text)
        elif self.options.global_name:
            logger.debug(f"[engine] --global ignored for {self.entry_type} entry {self.slug}")

        self.emit("built", self.slug)
        return text

    def _wraps_global(self) -> bool:
        return bool(self.options.global_name) and self.entry_type == "js"

    def _place(self, source_path: Path, target: Path) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_symlink() or target.exists():
            target.unlink()
        if self.options.copy_files:
            shutil.copy2(source_path, target)
        else:
            os.symlink(source_path, target)

    def _write_bytes(self, target: Path, data: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.is_symlink():
            target.unlink()
        target.write_bytes(data)


SessionFactory = Callable[..., BuildSession]


def load_engine(spec: str | None) -> SessionFactory:
    """Return the session class named by ``spec`` ("module:Class").

    No spec selects the reference engine.

    Raises:
        BaleError: The engine cannot be imported
    """
    if not spec:
        return BuildSession
    try:
        engine = pkgutil.resolve_name(spec)
    except (ImportError, AttributeError, ValueError) as e:
        raise BaleError(f"Cannot load engine '{spec}': {format_error_message(e)}") from e
    if not callable(engine):
        raise BaleError(f"Engine '{spec}' is not callable")
    logger.debug(f"[engine] using {spec}")
    return engine
