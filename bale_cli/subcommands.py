"""External subcommand discovery and delegation.

``bale <name> ...`` where ``<name>`` is not a buildable file runs the
executable ``bale-<name>``, found in bale's own directory or on PATH. The
child inherits stdin/stdout/stderr and its exit code becomes bale's.
"""

import logging
import os
import subprocess
import sys
import sysconfig
from collections.abc import Sequence
from pathlib import Path

from .errors import SubcommandNotFoundError

logger = logging.getLogger(__name__)

PROGRAM = "bale"


def binary_name(subcommand: str, program: str = PROGRAM) -> str:
    """Conventional executable name for a subcommand."""
    return f"{program}-{subcommand}"


def candidate_dirs(path_env: str | None = None) -> list[Path]:
    """Directories searched for subcommand executables, in order.

    bale's own directory comes first (where the running ``bale`` script and
    the interpreter's scripts live), then each PATH entry.
    """
    dirs: list[Path] = []
    argv0 = sys.argv[0] if sys.argv else ""
    if argv0 and os.path.basename(argv0).startswith(PROGRAM):
        dirs.append(Path(argv0).absolute().parent)
    scripts = sysconfig.get_path("scripts")
    if scripts:
        dirs.append(Path(scripts))

    if path_env is None:
        path_env = os.environ.get("PATH", "")
    dirs.extend(Path(entry) for entry in path_env.split(os.pathsep) if entry)

    seen: set[Path] = set()
    unique = []
    for d in dirs:
        if d not in seen:
            seen.add(d)
            unique.append(d)
    return unique


def find_subcommand(subcommand: str, dirs: Sequence[Path] | None = None) -> Path:
    """Locate the executable for ``subcommand``.

    Raises:
        SubcommandNotFoundError: No candidate directory contains it
    """
    name = binary_name(subcommand)
    for directory in dirs if dirs is not None else candidate_dirs():
        candidate = directory / name
        if candidate.is_file():
            logger.debug(f"[subcommand] {subcommand} -> {candidate}")
            return candidate
    raise SubcommandNotFoundError(name)


def is_python_script(binary: Path) -> bool:
    """Whether ``binary`` must run under the Python interpreter."""
    if binary.suffix == ".py":
        return True
    try:
        with open(binary, "rb") as f:
            first_line = f.readline(256)
    except OSError:
        return False
    return first_line.startswith(b"#!") and b"python" in first_line


def build_command(binary: Path, args: Sequence[str]) -> list[str]:
    """Command line that runs ``binary`` with ``args``.

    Python scripts are proxied through the interpreter running bale, so
    subcommands share its runtime even when their shebang points elsewhere.
    """
    cmd = [str(binary), *args]
    if is_python_script(binary):
        cmd.insert(0, sys.executable)
    return cmd


def dispatch(subcommand: str, args: Sequence[str], dirs: Sequence[Path] | None = None) -> int:
    """Run a subcommand to completion with inherited stdio.

    Args:
        subcommand: Name following ``bale``
        args: Remaining command-line arguments, forwarded unchanged
        dirs: Search directories (defaults to ``candidate_dirs()``)

    Returns:
        The child's exit code

    Raises:
        SubcommandNotFoundError: The executable does not exist
    """
    binary = find_subcommand(subcommand, dirs)
    cmd = build_command(binary, args)
    logger.info(f"[subcommand] exec {cmd}")
    result = subprocess.run(cmd, check=False)
    # Killed by a signal: report it the way a shell would
    if result.returncode < 0:
        return 128 - result.returncode
    return result.returncode
