"""
Availability engine.
Overlap detection between a requested custody window and the existing
bookings of a camera unit.

Conflict rule:
- date intervals must intersect (inclusive on both ends)
- when both bookings are the same single day, time-of-day must also
  overlap (exclusive boundaries, so 09:00-11:00 and 11:00-13:00 are fine)
- a multi-day booking on either side occupies every day of its span, so
  any date intersection is a conflict regardless of times
"""

from database import get_db
from models.booking import RELEASED_STATUSES, row_to_booking


# =============================================================================
# PURE OVERLAP RULE
# =============================================================================

def windows_overlap(requested: dict, existing: dict) -> bool:
    """
    Check whether two custody windows conflict.

    Args:
        requested: dict with start_date, end_date, start_time, end_time
        existing: dict with the same keys

    Returns:
        bool: True if the windows conflict
    """
    req_start = requested['start_date']
    req_end = requested.get('end_date') or req_start
    ex_start = existing['start_date']
    ex_end = existing.get('end_date') or ex_start

    if req_start > ex_end or req_end < ex_start:
        return False

    if req_start == req_end == ex_start == ex_end:
        return (requested['start_time'][:5] < existing['end_time'][:5]
                and requested['end_time'][:5] > existing['start_time'][:5])

    return True


# =============================================================================
# QUERIES
# =============================================================================

def get_conflicting_bookings(
    unit_id: int,
    start_date: str,
    end_date: str,
    start_time: str,
    end_time: str,
    exclude_booking_id: int = None,
    statuses: tuple = None,
    cursor=None
) -> list:
    """
    Find bookings on a unit that conflict with the requested window.

    Only bookings outside rejected/cancelled are considered unless
    ``statuses`` narrows the search further (e.g. ('approved',)).

    Args:
        unit_id: Camera unit ID
        start_date: Pickup date (YYYY-MM-DD)
        end_date: Return date (YYYY-MM-DD), empty means start_date
        start_time: Pickup time (HH:MM)
        end_time: Return time (HH:MM)
        exclude_booking_id: Booking to ignore (for reschedules/approvals)
        statuses: Restrict to these statuses
        cursor: Optional cursor of an open transaction

    Returns:
        list: Conflicting booking dicts, oldest first
    """
    end_date = end_date or start_date
    requested = {
        'start_date': start_date,
        'end_date': end_date,
        'start_time': start_time,
        'end_time': end_time,
    }

    query = f'''
        SELECT * FROM camera_bookings
        WHERE camera_unit = ?
          AND start_date <= ?
          AND end_date >= ?
          AND status NOT IN ({','.join('?' * len(RELEASED_STATUSES))})
    '''
    params = [unit_id, end_date, start_date, *RELEASED_STATUSES]

    if statuses:
        query += f" AND status IN ({','.join('?' * len(statuses))})"
        params.extend(statuses)

    if exclude_booking_id:
        query += ' AND id != ?'
        params.append(exclude_booking_id)

    query += ' ORDER BY created_at, id'

    cur = cursor or get_db().cursor()
    cur.execute(query, params)
    candidates = [row_to_booking(row) for row in cur.fetchall()]

    return [b for b in candidates if windows_overlap(requested, b)]


def has_conflict(
    unit_id: int,
    start_date: str,
    end_date: str,
    start_time: str,
    end_time: str,
    exclude_booking_id: int = None,
    cursor=None
) -> bool:
    """
    Check if the requested window conflicts with any live booking on the unit.

    Returns:
        bool: True if at least one conflicting booking exists
    """
    return bool(get_conflicting_bookings(
        unit_id, start_date, end_date, start_time, end_time,
        exclude_booking_id=exclude_booking_id,
        cursor=cursor
    ))


def get_day_occupancy(day: str) -> dict:
    """
    Per-unit bookings that occupy a given day.

    A booking occupies a day when start_date <= day <= end_date and it is
    not rejected or cancelled.

    Args:
        day: Date (YYYY-MM-DD)

    Returns:
        dict: {unit_id: [booking, ...]} for every registered unit
    """
    db = get_db()
    occupancy = {row['id']: [] for row in db.execute('SELECT id FROM camera_units ORDER BY id')}

    cursor = db.execute(f'''
        SELECT * FROM camera_bookings
        WHERE start_date <= ?
          AND end_date >= ?
          AND status NOT IN ({','.join('?' * len(RELEASED_STATUSES))})
        ORDER BY start_date, start_time
    ''', (day, day, *RELEASED_STATUSES))

    for row in cursor.fetchall():
        booking = row_to_booking(row)
        occupancy.setdefault(booking['camera_unit'], []).append(booking)

    return occupancy
