"""
Overdue custody detection.
A booking is overdue when it is approved, picked up, not returned, and the
current time is strictly after its committed end-of-use. Always computed
on read; nothing is stored.
"""

from datetime import datetime

from database import get_db
from models.booking import row_to_booking
from utils.datetime_helpers import combine_local, get_now, localize


def committed_end(booking: dict) -> datetime:
    """
    Committed end-of-use timestamp of a booking.

    Args:
        booking: Booking dict

    Returns:
        datetime: Aware datetime at end_date (or start_date) + end_time
    """
    return combine_local(booking.get('end_date') or booking['start_date'], booking['end_time'])


def is_overdue(booking: dict, now: datetime = None) -> bool:
    """
    Check if a booking's custody has passed its committed return time.

    Args:
        booking: Booking dict
        now: Reference datetime (defaults to current local time)

    Returns:
        bool: True if overdue
    """
    if not booking or booking.get('status') != 'approved':
        return False
    if not booking.get('pickup_confirmed_at') or booking.get('return_confirmed_at'):
        return False

    now = localize(now) if now else get_now()
    return now > committed_end(booking)


def get_overdue_bookings(now: datetime = None) -> list:
    """
    All bookings currently overdue, oldest committed end first.

    Args:
        now: Reference datetime (defaults to current local time)

    Returns:
        list: Booking dicts with an added 'overdue_minutes' key
    """
    now = localize(now) if now else get_now()

    db = get_db()
    cursor = db.execute('''
        SELECT * FROM camera_bookings
        WHERE status = 'approved'
          AND pickup_confirmed_at IS NOT NULL
          AND return_confirmed_at IS NULL
          AND end_date <= ?
        ORDER BY end_date, end_time
    ''', (now.date().isoformat(),))

    overdue = []
    for row in cursor.fetchall():
        booking = row_to_booking(row)
        if is_overdue(booking, now):
            booking['overdue_minutes'] = int((now - committed_end(booking)).total_seconds() // 60)
            overdue.append(booking)
    return overdue
