"""Load the transform plugins named by --use."""

import logging
from collections.abc import Iterable
from pathlib import Path

from ..errors import PluginLoadError
from ..events import EventLog
from ..settings import split_plugin_spec
from ..utils.error_format import format_error_message
from .protocol import Transform
from .protocol import plugin_slug
from .resolvers import PluginResolver

logger = logging.getLogger(__name__)


def load_plugins(
    spec: str | Iterable[str] | None,
    root: Path,
    events: EventLog,
    resolver: PluginResolver | None = None,
) -> list[Transform]:
    """Resolve and instantiate every named plugin.

    A plugin that fails to resolve, import or construct is reported through
    the event log and skipped; the remaining names still load.

    Args:
        spec: Comma-separated names (as given to --use) or a list of names
        root: Project root used by the path-based sources
        events: Event log receiving "found" and error events
        resolver: Resolver to use (defaults to the standard one for ``root``)

    Returns:
        Loaded plugins in the order they were named
    """
    if not spec:
        return []

    names = split_plugin_spec(spec) if isinstance(spec, str) else [n for n in spec if n]
    resolver = resolver or PluginResolver.for_root(root)

    plugins: list[Transform] = []
    for name in names:
        try:
            plugins.append(_load_one(name, resolver))
        except PluginLoadError as e:
            events.error(e)
        except Exception as e:
            events.error(PluginLoadError(name, format_error_message(e)))
        else:
            events.emit("found", plugin_slug(plugins[-1]))
    return plugins


def _load_one(name: str, resolver: PluginResolver) -> Transform:
    factory, source = resolver.resolve_with_source(name)
    try:
        plugin = factory()
    except Exception as e:
        raise PluginLoadError(name, f"constructor raised {format_error_message(e)}") from e

    if not callable(getattr(plugin, "transform", None)):
        raise PluginLoadError(name, f"{type(plugin).__name__} has no transform() method")
    if not getattr(plugin, "name", None):
        try:
            plugin.name = name
        except AttributeError:
            logger.debug(f"[plugin:load] cannot set name on {type(plugin).__name__}")

    logger.debug(f"[plugin:load] {name} loaded from {source}")
    return plugin
