import hashlib
import re
from datetime import datetime, timezone
from typing import Callable, Optional

from clipcore import constants

_WHITESPACE = re.compile(r"\s+")


def get_time(tz: timezone = timezone.utc) -> datetime:
    """
    Get the current time as a timezone-aware datetime.

    Arguments:
        tz (timezone): Timezone of the result. DEFAULT: UTC

    Returns:
        datetime: The current time.
    """
    return datetime.now(tz)


def epoch_ms(moment: datetime) -> int:
    """Milliseconds since the Unix epoch for ``moment``."""
    return int(moment.timestamp() * 1000)


def get_bytes_sha256(data: bytes) -> str:
    """
    Calculate the SHA256 hash of a byte string.

    Arguments:
        data (bytes): The bytes to hash.

    Returns:
        str: The SHA256 hash as a hexadecimal string.

    Raises:
        RuntimeError: If the input cannot be hashed.

    Example:
        >>> get_bytes_sha256(b"abc")[:12]
        'ba7816bf8f01'
    """
    try:
        return hashlib.sha256(data).hexdigest()
    except TypeError as e:
        raise RuntimeError(f"Error calculating SHA256 of {type(data).__name__}: {e}") from e


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to at most ``limit`` characters."""
    if limit < 0:
        raise ValueError("limit must be >= 0")
    return text if len(text) <= limit else text[:limit]


def one_line(text: Optional[str], limit: int = constants.DISPLAY_MAX_CHARS) -> str:
    """
    Collapse ``text`` into the single-line form shown in result lists.

    Leading/trailing whitespace is stripped, inner whitespace runs become a single
    space and the result is cut to ``limit`` characters followed by an ellipsis.

    Example:
        >>> one_line("  foo\\n\\n  bar ")
        'foo bar'
    """
    collapsed = _WHITESPACE.sub(" ", (text or "").strip())
    if len(collapsed) > limit:
        return collapsed[:limit] + constants.DISPLAY_ELLIPSIS
    return collapsed


class MonotonicIdGenerator:
    """
    Time-derived entry ids that never repeat.

    Each id is the current time in milliseconds, bumped past the previous id when
    the clock has not advanced (or went backwards).

    Attributes:
        last (int): The most recently issued id (or the seeded floor).
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = get_time,
        floor: int = 0,
    ) -> None:
        self._clock = clock
        self.last = floor

    def seed(self, floor: int) -> None:
        """Raise the floor so no id at or below ``floor`` is issued."""
        self.last = max(self.last, floor)

    def __call__(self) -> int:
        candidate = epoch_ms(self._clock())
        self.last = candidate if candidate > self.last else self.last + 1
        return self.last


__all__ = [
    "MonotonicIdGenerator",
    "epoch_ms",
    "get_bytes_sha256",
    "get_time",
    "one_line",
    "truncate",
]
