"""Ordered plugin resolution.

Resolution order (first match wins):
1. Local path relative to the project root
2. Project dependency directory (<root>/.bale/plugins/<name>)
3. Installed package entry point (bale.plugins group)
"""

import logging
from pathlib import Path

from ..errors import PluginLoadError
from .sources import DependencySource
from .sources import EntryPointSource
from .sources import LocalPathSource
from .sources import PluginFactory
from .sources import PluginSource

logger = logging.getLogger(__name__)


class PluginResolver:
    """Resolves a plugin name through a list of sources, in order."""

    def __init__(self, sources: list[PluginSource]):
        self.sources = sources

    @classmethod
    def for_root(cls, root: Path) -> "PluginResolver":
        """Standard resolver for a project root."""
        return cls([LocalPathSource(root), DependencySource(root), EntryPointSource()])

    def resolve_with_source(self, name: str) -> tuple[PluginFactory, str]:
        """Resolve a plugin name and report which source matched.

        Returns:
            Tuple of (factory, source label)

        Raises:
            PluginLoadError: No source knows the name, or the matching source
                failed to import it
        """
        for source in self.sources:
            factory = source.resolve(name)
            if factory is not None:
                return factory, source.label

        logger.debug(f"[plugin:resolve] {name} -> not found in {len(self.sources)} sources")
        attempted = "\n".join(f"  - {source!r}" for source in self.sources)
        raise PluginLoadError(name, f"not found\n\nResolution attempted:\n{attempted}")

    def __repr__(self) -> str:
        return f"PluginResolver({len(self.sources)} sources)"
