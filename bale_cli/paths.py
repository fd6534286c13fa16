"""Project root discovery.

The project root is the nearest directory (walking upward from the working
directory) that contains the ``bale.yaml`` marker file.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

MARKER_FILE = "bale.yaml"

# Project-local directory holding installed plugins and other tool state
STATE_DIR = ".bale"


def find_root(explicit_root: str | Path | None = None, cwd: Path | None = None) -> Path:
    """Find the project root directory.

    Args:
        explicit_root: Root given with --root. Resolved against ``cwd`` and
            returned as-is without checking that it exists.
        cwd: Starting directory (defaults to the process working directory)

    Returns:
        Absolute path of the first directory, from ``cwd`` upward, containing
        the marker file. Falls back to ``cwd`` itself when no ancestor does.
    """
    start = Path(cwd) if cwd is not None else Path.cwd()
    start = start.absolute()

    if explicit_root is not None:
        root = start / Path(explicit_root).expanduser()
        logger.debug(f"[root] explicit root {root}")
        return Path(root.resolve(strict=False))

    # Path.parents ends at the anchor, so the filesystem root is checked once
    for directory in (start, *start.parents):
        if (directory / MARKER_FILE).is_file():
            logger.debug(f"[root] found {MARKER_FILE} in {directory}")
            return directory

    logger.debug(f"[root] no {MARKER_FILE} above {start}, using working directory")
    return start


def plugin_dir(root: Path) -> Path:
    """Directory where project-installed plugins live."""
    return root / STATE_DIR / "plugins"


def default_output_dir(root: Path) -> Path:
    """Output directory used for multi-entry builds with no explicit target."""
    return root / "dist"
