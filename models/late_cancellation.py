"""
Late-cancellation ledger.
A cancellation is late when fewer than LATE_CANCELLATION_HOURS remain
before the booking's committed end-of-use. Counts are lifetime totals per
agent.
"""

from datetime import datetime, timedelta

from flask import current_app

from database import get_db
from models.overdue import committed_end
from utils.datetime_helpers import get_now, localize


def get_late_threshold() -> timedelta:
    return timedelta(hours=current_app.config.get('LATE_CANCELLATION_HOURS', 12))


def is_late_cancellation(booking: dict, now: datetime = None) -> bool:
    """
    Check whether cancelling a booking at ``now`` counts as late.

    Exactly LATE_CANCELLATION_HOURS before the committed end is not late.

    Args:
        booking: Booking dict
        now: Cancellation time (defaults to current local time)

    Returns:
        bool: True if late
    """
    now = localize(now) if now else get_now()
    return committed_end(booking) - now < get_late_threshold()


def get_late_cancellation_counts() -> list:
    """
    Per-agent lifetime count of late cancellations.

    Returns:
        list: Dicts with agent_id, username, name, late_count, last_cancelled_at
            and flagged (count >= LATE_CANCELLATION_FLAG_THRESHOLD), highest first
    """
    threshold = current_app.config.get('LATE_CANCELLATION_FLAG_THRESHOLD', 3)

    db = get_db()
    cursor = db.execute('''
        SELECT b.agent_id,
               u.username,
               u.first_name,
               u.last_name,
               COUNT(*) AS late_count,
               MAX(b.cancelled_at) AS last_cancelled_at
        FROM camera_bookings b
        LEFT JOIN users u ON u.id = b.agent_id
        WHERE b.status = 'cancelled'
          AND b.is_late_cancellation = 1
        GROUP BY b.agent_id
        ORDER BY late_count DESC, b.agent_id
    ''')

    counts = []
    for row in cursor.fetchall():
        entry = dict(row)
        entry['name'] = f"{entry.pop('first_name') or ''} {entry.pop('last_name') or ''}".strip() or entry['username']
        entry['flagged'] = entry['late_count'] >= threshold
        counts.append(entry)
    return counts


def get_agent_late_cancellation_count(agent_id: int) -> int:
    """Lifetime late cancellations for one agent."""
    db = get_db()
    cursor = db.execute('''
        SELECT COUNT(*) FROM camera_bookings
        WHERE agent_id = ?
          AND status = 'cancelled'
          AND is_late_cancellation = 1
    ''', (agent_id,))
    return cursor.fetchone()[0]
