"""Pytest configuration and shared fixtures for bale CLI tests."""

import sys
from io import StringIO
from pathlib import Path

import pytest
from rich.console import Console

# Allow running the suite from a checkout without installing the package
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root))

from bale_cli.events import EventLog  # noqa: E402
from bale_cli.events import LogEvent  # noqa: E402
from bale_cli.paths import MARKER_FILE  # noqa: E402


@pytest.fixture
def console_buffer() -> StringIO:
    return StringIO()


@pytest.fixture
def events(console_buffer: StringIO) -> EventLog:
    """Event log printing to an in-memory buffer."""
    console = Console(file=console_buffer, force_terminal=False, no_color=True, width=200)
    return EventLog(console)


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project root containing bale.yaml, used as the working directory."""
    root = tmp_path / "project"
    root.mkdir()
    (root / MARKER_FILE).write_text("")
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def recorded(events: EventLog) -> list[LogEvent]:
    """Events printed by the ``events`` log, in order."""
    seen: list[LogEvent] = []
    events.subscribe(seen.append)
    return seen
