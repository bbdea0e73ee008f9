# tracker/duration_codec.py
"""
Duration codec: human duration text <-> canonical integer minutes.

Recognized shapes, tried in order (first match wins):
    combined   "1h30m", "1h 30m", "2 hours 15 minutes"
    hours      "2h", "1.5h", "2 hours"
    minutes    "45m", "45 minutes", "45"

Decimal hours round half-up to the nearest whole minute. Results must fall
in [1, MAX_DURATION_MINUTES].
"""
import re
from decimal import Decimal, ROUND_HALF_UP

from .errors import InvalidDurationFormat, DurationOutOfRange

MAX_DURATION_MINUTES = 1440

_HOURS_UNIT = r'(?:h|hr|hrs|hour|hours)'
_MINUTES_UNIT = r'(?:m|min|mins|minute|minutes)'
_DECIMAL = r'(\d+(?:\.\d+)?|\.\d+)'

COMBINED_RE = re.compile(rf'^{_DECIMAL}\s*{_HOURS_UNIT}\s*(\d+)\s*{_MINUTES_UNIT}$')
HOURS_RE = re.compile(rf'^{_DECIMAL}\s*{_HOURS_UNIT}$')
MINUTES_RE = re.compile(rf'^(\d+)\s*{_MINUTES_UNIT}?$')


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def _check_range(minutes: int, text: str) -> int:
    if minutes <= 0 or minutes > MAX_DURATION_MINUTES:
        raise DurationOutOfRange(minutes, text)
    return minutes


def parse_duration(text: str) -> int:
    """Parse duration text into whole minutes.

    Raises:
        InvalidDurationFormat: text matches none of the recognized shapes
        DurationOutOfRange: parsed value is <= 0 or > 1440 minutes
    """
    if not isinstance(text, str):
        raise InvalidDurationFormat(str(text))

    normalized = text.strip().lower()

    match = COMBINED_RE.match(normalized)
    if match:
        hours = Decimal(match.group(1))
        minutes = Decimal(match.group(2))
        return _check_range(_round_half_up(hours * 60 + minutes), text)

    match = HOURS_RE.match(normalized)
    if match:
        return _check_range(_round_half_up(Decimal(match.group(1)) * 60), text)

    match = MINUTES_RE.match(normalized)
    if match:
        return _check_range(int(match.group(1)), text)

    raise InvalidDurationFormat(text)


def format_duration(minutes: int) -> str:
    """Format minutes for display; output always parses back to the same value."""
    minutes = int(minutes)
    if minutes < 0:
        raise ValueError(f"Duration cannot be negative (got {minutes})")
    if minutes < 60:
        return f"{minutes}m"

    hours, remaining = divmod(minutes, 60)
    if remaining == 0:
        return f"{hours}h"
    return f"{hours}h{remaining}m"


def is_valid_duration(text: str) -> bool:
    try:
        parse_duration(text)
    except (InvalidDurationFormat, DurationOutOfRange):
        return False
    return True
