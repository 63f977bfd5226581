"""Timestamp parsing and rendering for schema format hints."""

import re
from datetime import UTC, datetime

# Format hints understood by timestamp fields. Anything containing a '%' is
# treated as a strptime layout.
RFC3339 = "rfc3339"
UNIX = "unix"
UNIX_MS = "unix_ms"

KNOWN_HINTS = frozenset({RFC3339, UNIX, UNIX_MS})

# Layouts tried before falling back to fromisoformat
TIMESTAMP_FORMATS = [
    "%Y-%m-%dT%H:%M:%S.%fZ",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
]

_EPOCH_PATTERN = re.compile(r"^\d{9,}(\.\d+)?$")


def is_valid_hint(hint: str | None) -> bool:
    """Check that a format hint is either known or a strptime layout."""
    return hint is None or hint in KNOWN_HINTS or "%" in hint


def parse_timestamp(value: object, hint: str | None = None) -> datetime:
    """Parse a loosely-typed value into an aware UTC datetime.

    Raises:
        ValueError: if the value cannot be interpreted with the given hint.
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if isinstance(value, bool):
        raise ValueError("boolean is not a timestamp")

    if hint in (UNIX, UNIX_MS):
        return _from_epoch(_as_number(value), 1000 if hint == UNIX_MS else 1)

    if hint is not None and "%" in hint:
        if not isinstance(value, str):
            raise ValueError(f"expected string for layout {hint!r}")
        return _as_utc(datetime.strptime(value.strip(), hint))

    if isinstance(value, (int, float)):
        if hint == RFC3339:
            raise ValueError("expected RFC3339 string")
        # Milliseconds when the magnitude only makes sense that way
        if value > 1e12:
            return _from_epoch(value, 1000)
        return _from_epoch(value)

    if not isinstance(value, str):
        raise ValueError(f"cannot parse {type(value).__name__} as timestamp")

    text = value.strip()
    if _EPOCH_PATTERN.match(text) and hint is None:
        return parse_timestamp(float(text))
    for fmt in TIMESTAMP_FORMATS:
        try:
            return _as_utc(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return _as_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))


def format_timestamp(value: datetime) -> str:
    """Render a timestamp in canonical form, e.g. 2021-01-01T00:00:00Z."""
    value = _as_utc(value)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += f".{value.microsecond:06d}"
    return text + "Z"


def _as_number(value: object) -> float:
    if isinstance(value, bool):
        raise ValueError("boolean is not an epoch")
    try:
        if isinstance(value, (int, float)):
            return float(value)
        if isinstance(value, str):
            return float(value.strip())
    except OverflowError as e:
        raise ValueError(f"epoch out of range: {e}") from e
    raise ValueError(f"cannot parse {type(value).__name__} as epoch")


def _from_epoch(epoch: float, divisor: int = 1) -> datetime:
    try:
        return datetime.fromtimestamp(epoch / divisor, tz=UTC)
    except (OverflowError, OSError) as e:
        raise ValueError(f"epoch out of range: {e}") from e


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
