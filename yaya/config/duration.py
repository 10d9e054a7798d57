"""Duration parsing for interval settings such as ``reconcile_interval``."""

import re

_ISO_PATTERN = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$")
_HUMAN_PATTERN = re.compile(r"(\d+)([smhd])")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed or is out of range."""

    pass


def parse_duration(duration_str: str) -> int:
    """Parse a duration string into seconds.

    Accepts human-readable values ("30s", "15m", "1h30m", "2d") and ISO-8601
    durations ("PT15M", "PT1H", "P1D").

    Raises:
        DurationParseError: If the string is empty, malformed or zero

    Examples:
        >>> parse_duration("15m")
        900
        >>> parse_duration("PT1H30M")
        5400
    """
    cleaned = re.sub(r"\s+", "", duration_str or "").lower()
    if not cleaned:
        raise DurationParseError("Duration string cannot be empty")

    if cleaned.startswith("p"):
        match = _ISO_PATTERN.match(cleaned.upper())
        if not match:
            raise DurationParseError(
                f"Invalid ISO-8601 duration format: '{duration_str}'. "
                "Expected format like 'PT15M', 'PT1H' or 'P1D'"
            )
        days, hours, minutes, seconds = (int(part or 0) for part in match.groups())
        total = days * 86400 + hours * 3600 + minutes * 60 + seconds
    else:
        parts = _HUMAN_PATTERN.findall(cleaned)
        if not parts or "".join(num + unit for num, unit in parts) != cleaned:
            raise DurationParseError(
                f"Invalid duration format: '{duration_str}'. "
                "Use digits with units s, m, h or d, e.g. '15m' or '1h30m'"
            )
        total = sum(int(num) * _UNIT_SECONDS[unit] for num, unit in parts)

    if total == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")

    return total


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int = 60,
    max_seconds: int = 86400,
) -> None:
    """Check that a parsed duration is within [min_seconds, max_seconds].

    Raises:
        DurationParseError: If the duration is outside the range
    """
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"Interval too short: {duration_seconds}s. Minimum is {min_seconds}s."
        )
    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"Interval too long: {duration_seconds}s. Maximum is {max_seconds}s."
        )
