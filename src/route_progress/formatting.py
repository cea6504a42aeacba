"""
Human readable formatting of durations and distances.
"""

import math


def format_duration(seconds) -> str:
    """
    Format a duration as "{hours}h {minutes}m".

    Partial minutes are dropped, never rounded up. Anything that is not a
    positive number (zero, negative, NaN, None) formats as "0h 0m".

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        return "0h 0m"

    if not math.isfinite(value) or value <= 0:
        return "0h 0m"

    minutes = int(value // 60)
    hours, remaining_minutes = divmod(minutes, 60)
    return f"{hours}h {remaining_minutes}m"


def format_km(meters: float) -> str:
    """Format a distance in meters as kilometres with two decimals."""
    return f"{meters / 1000:.2f}"
