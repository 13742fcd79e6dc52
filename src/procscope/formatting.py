"""Human-readable formatting for numbers and times."""

from datetime import datetime, timedelta

NBSP = " "


def format_bytes(size: int, suffix: str = "B") -> str:
    """Format a byte count with decimal (1000-based) units."""
    if size > 1000**3:
        return f"{size / 1000**3:.2f}{NBSP}G{suffix}"
    if size > 1000**2:
        return f"{size / 1000**2:.2f}{NBSP}M{suffix}"
    if size > 1000:
        return f"{size / 1000:.2f}{NBSP}K{suffix}"
    return f"{size}{NBSP}{suffix}"


def format_rate(rate: float, suffix: str = "Bps") -> str:
    """Format a per-second rate."""
    if rate > 1000**2:
        return f"{rate / 1000**2:.1f}{NBSP}M{suffix}"
    if rate > 1000:
        return f"{rate / 1000:.1f}{NBSP}K{suffix}"
    return f"{rate:.1f}{NBSP}{suffix}"


def format_limit(value: int | None) -> str:
    return "Unlimited" if value is None else str(value)


def format_duration(seconds: float) -> str:
    """Format CPU time as H:MM:SS.ss, dropping the hours when zero."""
    minutes, secs = divmod(seconds, 60)
    hours, minutes = divmod(int(minutes), 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:05.2f}"
    return f"{minutes}:{secs:05.2f}"


def format_time(when: datetime, now: datetime | None = None) -> str:
    """
    Format a start time with as little detail as is unambiguous.

    Today-ish times show only the clock, recent ones add the date and old
    or future ones the year too.
    """
    now = now or datetime.now()
    if when > now:
        return f"{when:%b} {when.day} {when:%Y %H:%M:%S}"
    age = now - when
    if age < timedelta(hours=12):
        return f"{when:%H:%M:%S}"
    if age < timedelta(days=60):
        return f"{when:%b} {when.day} {when:%H:%M:%S}"
    return f"{when:%b} {when.day} {when:%Y %H:%M:%S}"
