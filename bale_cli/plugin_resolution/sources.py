"""Plugin sources - the places a plugin name can resolve to.

Each source answers one question: does this name live here, and if so,
what factory builds it?
- LocalPathSource: a path relative to the project root
- DependencySource: a plugin installed under <root>/.bale/plugins/
- EntryPointSource: an installed distribution advertising ``bale.plugins``

``resolve`` returns None when the name is not found at that location and
raises PluginLoadError when it is found but cannot be imported.
"""

import hashlib
import importlib.metadata
import importlib.util
import logging
import re
import sys
from collections.abc import Callable
from pathlib import Path
from types import ModuleType

from ..errors import PluginLoadError
from ..paths import plugin_dir

logger = logging.getLogger(__name__)

PluginFactory = Callable[[], object]

ENTRY_POINT_GROUP = "bale.plugins"
PLUGIN_ATTR = "plugin"


def load_module_from_path(name: str, path: Path) -> ModuleType:
    """Import a plugin file or package directory under a private module name.

    Args:
        name: Plugin name (for error messages)
        path: A ``.py`` file or a package directory with ``__init__.py``

    Raises:
        PluginLoadError: The module could not be imported
    """
    if path.is_dir():
        init = path / "__init__.py"
        search = [str(path)]
    else:
        init = path
        search = None

    # Unique per path so two projects' "minify" plugins never collide
    digest = hashlib.sha1(str(path).encode()).hexdigest()[:10]
    safe_name = re.sub(r"\W", "_", name)
    module_name = f"_bale_plugin_{safe_name}_{digest}"

    spec = importlib.util.spec_from_file_location(module_name, init, submodule_search_locations=search)
    if spec is None or spec.loader is None:
        raise PluginLoadError(name, f"cannot import {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        raise PluginLoadError(name, f"error importing {path}: {e}") from e
    return module


def factory_from_module(name: str, module: ModuleType) -> PluginFactory:
    """Return the module's ``plugin`` factory."""
    factory = getattr(module, PLUGIN_ATTR, None)
    if factory is None or not callable(factory):
        raise PluginLoadError(name, f"module {module.__name__} does not define a callable '{PLUGIN_ATTR}'")
    return factory


class PluginSource:
    """Base class for a plugin resolution strategy."""

    label = "source"

    def resolve(self, name: str) -> PluginFactory | None:
        raise NotImplementedError


class DirectorySource(PluginSource):
    """Plugins stored as files or package directories under a base directory."""

    def __init__(self, base: Path):
        self.base = base

    def locate(self, name: str) -> Path | None:
        """Find ``name``, ``name.py`` or a ``name/`` package under the base."""
        candidate = self.base / name
        if candidate.is_file() and candidate.suffix == ".py":
            return candidate
        if candidate.is_dir() and (candidate / "__init__.py").is_file():
            return candidate
        with_suffix = self.base / f"{name}.py"
        if with_suffix.is_file():
            return with_suffix
        return None

    def resolve(self, name: str) -> PluginFactory | None:
        path = self.locate(name)
        if path is None:
            return None
        logger.debug(f"[plugin:resolve] {name} -> {self.label} ({path})")
        return factory_from_module(name, load_module_from_path(name, path))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.base})"


class LocalPathSource(DirectorySource):
    """Plugin given as a path relative to the project root."""

    label = "local"

    def __init__(self, root: Path):
        super().__init__(root)


class DependencySource(DirectorySource):
    """Plugin installed in the project's plugin directory."""

    label = "dependency"

    def __init__(self, root: Path):
        super().__init__(plugin_dir(root))


class EntryPointSource(PluginSource):
    """Plugin shipped by an installed distribution."""

    label = "package"

    def __init__(self, group: str = ENTRY_POINT_GROUP):
        self.group = group

    def resolve(self, name: str) -> PluginFactory | None:
        for ep in importlib.metadata.entry_points(group=self.group):
            if ep.name != name:
                continue
            logger.debug(f"[plugin:resolve] {name} -> {self.label} ({ep.value})")
            try:
                loaded = ep.load()
            except Exception as e:
                raise PluginLoadError(name, f"error loading entry point {ep.value}: {e}") from e
            if isinstance(loaded, ModuleType):
                return factory_from_module(name, loaded)
            if not callable(loaded):
                raise PluginLoadError(name, f"entry point {ep.value} is not callable")
            return loaded
        return None

    def __repr__(self) -> str:
        return f"EntryPointSource({self.group})"
