"""Transform plugin resolution and loading.

Plugin names from --use are resolved through an ordered list of sources and
instantiated once per process; every build session gets the same instances.
"""

from .loader import load_plugins
from .protocol import Transform
from .protocol import TransformContext
from .protocol import plugin_slug
from .resolvers import PluginResolver
from .sources import DependencySource
from .sources import EntryPointSource
from .sources import LocalPathSource

__all__ = [
    "Transform",
    "TransformContext",
    "PluginResolver",
    "LocalPathSource",
    "DependencySource",
    "EntryPointSource",
    "load_plugins",
    "plugin_slug",
]
