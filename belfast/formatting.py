"""Small formatting helpers used by the web interface templates."""

from __future__ import annotations

import struct
from datetime import datetime, timedelta
from typing import Optional

UNITS = ("B", "Kb", "Mb", "Gb", "Tb", "Pb")
EPOCH_ISO = "1970-01-01T00:00:00"
ISO_FORMAT = "%Y-%m-%dT%H:%M:%S"
ACTIVE_TAB_CLASS = "text-primary"
INACTIVE_TAB_CLASS = "text-secondary"

_PERMANENT_BADGE = '<span class="badge badge-outline badge-error">Permanently Banned</span>'
_ACTIVE_BADGE = '<span class="badge badge-outline badge-success">Active</span>'
_TEMPORARY_BADGE = (
    '<span class="badge badge-outline badge-warning" title="Lifts in {days:02d} days, '
    '{hours:02d} hours, {minutes:02d} minutes, {seconds:02d} seconds">Temporarily Banned</span>'
)


def _now_like(t: datetime) -> datetime:
    """Return the current time, aware or naive to match t."""
    return datetime.now(t.tzinfo) if t.tzinfo is not None else datetime.now()


def _to_float32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def account_status_badge(
    lift_timestamp: Optional[datetime], is_permanent: Optional[bool]
) -> str:
    """Return an HTML badge describing whether an account is banned."""
    if is_permanent:
        return _PERMANENT_BADGE
    if lift_timestamp is not None:
        now = _now_like(lift_timestamp)
        if now < lift_timestamp:
            total = int((lift_timestamp - now).total_seconds())
            days, rest = divmod(total, 86400)
            hours, rest = divmod(rest, 3600)
            minutes, seconds = divmod(rest, 60)
            return _TEMPORARY_BADGE.format(
                days=days, hours=hours, minutes=minutes, seconds=seconds
            )
    return _ACTIVE_BADGE


def human_readable_size(n: int) -> str:
    """Format a byte count with two decimals and a binary unit."""
    x = _to_float32(float(n))
    index = 0
    while x >= 1024:
        x /= 1024
        index += 1
    if index >= len(UNITS):
        raise ValueError(f"size {n} is too large to format")
    return f"{x:.2f} {UNITS[index]}"


def iso_timestamp(t: Optional[datetime]) -> str:
    """Format a time as YYYY-MM-DDTHH:MM:SS; None gives the Unix epoch."""
    if t is None:
        return EPOCH_ISO
    return t.strftime(ISO_FORMAT)


def seconds_left(t: datetime) -> int:
    """Return the whole seconds until t, or 0 if t is in the past."""
    return max(int((t - _now_like(t)).total_seconds()), 0)


def tab_color(page: str, current_page: str) -> str:
    """Return the CSS class of a navigation tab: highlighted when it is the current page."""
    is_current = page == current_page
    if is_current:
        return ACTIVE_TAB_CLASS
    return INACTIVE_TAB_CLASS


def time_format(t: datetime) -> str:
    """Format a time as dd/mm/yyyy hh:mm:ss."""
    return f"{t.day:02d}/{t.month:02d}/{t.year} {t.hour:02d}:{t.minute:02d}:{t.second:02d}"


def _format_duration(seconds: int) -> str:
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{minutes}m{secs}s"
    return f"{secs}s"


def time_left(t: datetime, passed_string: str) -> str:
    """Return the time until t (e.g. 1h2m3s), or passed_string if t has passed."""
    now = _now_like(t)
    if t < now:
        return passed_string
    micros = (t - now) // timedelta(microseconds=1)
    return _format_duration((micros + 500_000) // 1_000_000)


def time_span(t: datetime) -> str:
    """Describe how long ago t was, in days, hours, minutes or seconds."""
    diff = (_now_like(t) - t).total_seconds()
    hours = diff / 3600
    minutes = diff / 60
    if hours > 24:
        return f"{int(hours / 24)} days ago"
    if hours > 1:
        return f"{int(hours)} hours ago"
    if minutes > 1:
        return f"{int(minutes)} minutes ago"
    return f"{int(diff)} seconds ago"