"""Build status events and the process-wide event log."""

from bale_cli.events.bus import STDIN_LABEL
from bale_cli.events.bus import EventLog
from bale_cli.events.bus import display_label
from bale_cli.events.schemas import LIFECYCLE_EVENTS
from bale_cli.events.schemas import ErrorEvent
from bale_cli.events.schemas import LogEvent

__all__ = [
    "EventLog",
    "LogEvent",
    "ErrorEvent",
    "LIFECYCLE_EVENTS",
    "STDIN_LABEL",
    "display_label",
]
