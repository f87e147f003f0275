"""Clock tools — current time and date arithmetic."""

from __future__ import annotations

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from langchain_core.tools import tool


def make_clock_tools() -> list:
    """Create time utility tools."""

    @tool
    def get_current_time(timezone_name: str = "UTC") -> str:
        """Get the current date and time. Returns ISO format with day of week.

        Use this tool whenever you need to know the current time, date,
        or day of week. ``timezone_name`` is an IANA name such as
        "Europe/Berlin" or "America/New_York".
        """
        try:
            tz = ZoneInfo(timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {timezone_name!r}") from None
        now = datetime.now(tz)
        return (
            f"{now.strftime('%Y-%m-%d %H:%M:%S')} ({now.strftime('%A')}), "
            f"timezone: {timezone_name}"
        )

    @tool
    def add_days(date: str, days: int) -> str:
        """Add (or subtract, with a negative number) days to a YYYY-MM-DD date."""
        start = datetime.strptime(date, "%Y-%m-%d")
        result = start + timedelta(days=days)
        return f"{result.strftime('%Y-%m-%d')} ({result.strftime('%A')})"

    return [get_current_time, add_days]
