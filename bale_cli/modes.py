"""Build mode selection from positional arguments.

Decides whether the trailing positional argument is an output directory and
which build target the invocation maps to.
"""

import logging
import os
import re
import stat
from collections.abc import Sequence
from pathlib import Path
from typing import Literal

from .invocation import BuildPlan
from .invocation import BuildTarget
from .paths import default_output_dir

logger = logging.getLogger(__name__)

# A final path segment with an extension-like suffix, e.g. "index.js"
_FILE_PATTERN = re.compile(r"^\S+\.\w+$")

_GLOB_CHARS = ("*", "?", "[")


def looks_like_file(path: str | Path) -> bool:
    """Classify a command-line path as a file.

    Two steps: a name with an extension-like suffix is a file; otherwise ask
    the filesystem. A path that cannot be stat'ed is not a file, so output
    directories that do not exist yet are recognised as directories.
    """
    name = os.path.basename(os.path.normpath(str(path)))
    if _FILE_PATTERN.match(name):
        return True
    try:
        st = os.stat(path)
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode)


def filter_globs(args: Sequence[str]) -> list[str]:
    """Drop arguments that still contain glob characters.

    The shell leaves a pattern untouched when it matches nothing, so such an
    argument never names a real entry.
    """
    kept = []
    for arg in args:
        if any(ch in arg for ch in _GLOB_CHARS):
            logger.debug(f"[modes] dropping unmatched glob {arg!r}")
            continue
        kept.append(arg)
    return kept


def resolve_assets(entries: Sequence[str]) -> Path | Literal[False]:
    """Return the output directory named by the last entry, if any.

    Returns:
        The trailing entry as a Path when it does not look like a file,
        otherwise False.
    """
    if not entries:
        return False
    last = entries[-1]
    if looks_like_file(last):
        return False
    return Path(last)


def plan_build(
    args: Sequence[str],
    *,
    root: Path,
    output: Path | None = None,
    stdin_is_tty: bool = True,
) -> BuildPlan:
    """Select the build target for a list of positional arguments.

    Args:
        args: Positional arguments after glob filtering
        root: Project root, used for the default multi-entry output
        output: Explicit --output directory; disables trailing-directory
            inference when given
        stdin_is_tty: Whether standard input is an interactive terminal

    Returns:
        The BuildPlan to execute
    """
    entries = list(args)

    if output is not None:
        assets: Path | Literal[False] = Path(output)
    else:
        assets = resolve_assets(entries)
        if assets is not False:
            entries = entries[:-1]

    if not entries:
        if assets is False and not stdin_is_tty:
            return BuildPlan(BuildTarget.STDIN_STDOUT)
        return BuildPlan(BuildTarget.HELP)

    if assets is not False:
        target = BuildTarget.SINGLE_DIRECTORY if len(entries) == 1 else BuildTarget.MULTI_DIRECTORY
        return BuildPlan(target, tuple(entries), assets)

    if len(entries) == 1:
        return BuildPlan(BuildTarget.SINGLE_STDOUT, tuple(entries))

    return BuildPlan(BuildTarget.MULTI_DIRECTORY, tuple(entries), default_output_dir(root))
