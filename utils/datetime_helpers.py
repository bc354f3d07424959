"""Timezone-aware date/time helpers for the camera booking application."""

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from flask import current_app


def get_timezone() -> ZoneInfo:
    """Get the configured timezone."""
    tz_name = current_app.config.get('TIMEZONE', 'America/Santiago')
    return ZoneInfo(tz_name)


def get_today() -> date:
    """Get today's date in the configured timezone."""
    return datetime.now(get_timezone()).date()


def get_now() -> datetime:
    """Get current datetime in the configured timezone."""
    return datetime.now(get_timezone())


def localize(moment: datetime) -> datetime:
    """Attach the configured timezone to naive datetimes; convert aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=get_timezone())
    return moment.astimezone(get_timezone())


def combine_local(day: str, hhmm: str) -> datetime:
    """Build an aware datetime from 'YYYY-MM-DD' and 'HH:MM' in local time."""
    return datetime.combine(
        date.fromisoformat(day),
        time.fromisoformat(hhmm[:5])
    ).replace(tzinfo=get_timezone())


def week_bounds(week_start: date) -> tuple:
    """Return (monday, sunday) for the week containing week_start."""
    monday = week_start - timedelta(days=week_start.weekday())
    return monday, monday + timedelta(days=6)


def iso_timestamp(moment: datetime = None) -> str:
    """ISO-8601 timestamp in the configured timezone, second precision."""
    return localize(moment or get_now()).isoformat(timespec='seconds')
