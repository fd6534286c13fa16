"""Display messages for errors reported to the user.

Every error bale prints must say something, even for exceptions whose
``str()`` is empty, and build errors must name the entry they came from.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from rich.markup import escape as _escape_markup

# Shown for exception types that usually carry no message of their own
FRIENDLY_MESSAGES: dict[type, str] = {
    TimeoutError: "Operation timed out.",
    asyncio.CancelledError: "Build was cancelled.",
    BrokenPipeError: "Output stream was closed before the build finished.",
    KeyboardInterrupt: "Interrupted.",
    FileNotFoundError: "File not found.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception as a non-empty message.

    Args:
        e: The exception to format
        include_type: Prefix the exception class name unless the message
            already mentions it

    Examples:
        >>> format_error_message(ValueError("invalid input"))
        'ValueError: invalid input'
        >>> format_error_message(TimeoutError())
        'TimeoutError: Operation timed out.'
    """
    type_name = type(e).__name__
    text = str(e)

    if not text:
        friendly = next(
            (msg for exc_type, msg in FRIENDLY_MESSAGES.items() if isinstance(e, exc_type)),
            "(no additional details)",
        )
        return f"{type_name}: {friendly}"

    if include_type and type_name not in text:
        return f"{type_name}: {text}"
    return text


def entry_error_message(
    entry: str | Path,
    error: BaseException,
    *,
    failed: int = 1,
    total: int = 1,
) -> str:
    """Message for a build failure of one entry.

    Errors raised by bale itself keep their text as-is; anything else is
    formatted with its type. The entry is prefixed unless the message already
    names it, and batch builds with several failures append the count.

    Examples:
        >>> entry_error_message("a.js", ValueError("bad token"))
        'a.js: ValueError: bad token'
        >>> entry_error_message("b.js", ValueError("b.js: bad"), failed=2, total=3)
        'ValueError: b.js: bad (2 of 3 entries failed)'
    """
    from ..errors import BaleError

    message = str(error) if isinstance(error, BaleError) else format_error_message(error)
    if str(entry) not in message:
        message = f"{entry}: {message}"
    if failed > 1:
        message = f"{message} ({failed} of {total} entries failed)"
    return message


def escape_markup(value: object) -> str:
    """``str(value)`` with brackets escaped for rich markup.

    File paths and error text often contain ``[...]``, which rich would
    otherwise swallow as style tags.
    """
    return _escape_markup(str(value))
