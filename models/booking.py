"""
Camera booking store.
Create, read, update and range-filtered queries over camera_bookings, plus
the status history audit trail. Holds no lifecycle rules.
"""

import json

from database import get_db
from models.errors import BookingNotFoundError
from utils.messages import MESSAGES


# =============================================================================
# STATUS CONSTANTS
# =============================================================================

BOOKING_STATUSES = ('pending', 'approved', 'rejected', 'completed', 'cancelled', 'waitlisted')

# No further transition is legal from these
TERMINAL_STATUSES = ('completed', 'rejected', 'cancelled')

# Bookings in these statuses no longer occupy the calendar
RELEASED_STATUSES = ('rejected', 'cancelled')

_JSON_FIELDS = ('pickup_condition', 'return_condition')
_BOOL_FIELDS = ('is_urgent', 'is_late_cancellation')

_UPDATABLE_FIELDS = {
    'camera_unit', 'start_date', 'end_date', 'start_time', 'end_time',
    'status', 'notes', 'waitlist_for_booking_id',
    'pickup_confirmed_at', 'pickup_condition',
    'return_confirmed_at', 'return_condition',
    'approver_id', 'admin_notes', 'handoff_agent_id', 'handoff_location',
    'cancelled_at', 'is_late_cancellation',
    'calendar_task_id_agent', 'calendar_task_id_admin',
}


def row_to_booking(row) -> dict:
    """Convert a camera_bookings row to a dict with decoded JSON/bool fields."""
    if row is None:
        return None

    booking = dict(row)
    for field in _JSON_FIELDS:
        if booking.get(field):
            booking[field] = json.loads(booking[field])
    for field in _BOOL_FIELDS:
        if field in booking:
            booking[field] = bool(booking[field])
    return booking


# =============================================================================
# CREATE
# =============================================================================

def insert_booking(cursor, data: dict) -> int:
    """
    Insert a booking row inside the caller's transaction.

    Args:
        cursor: Cursor of an open transaction
        data: Booking fields; window, unit, agent and status required

    Returns:
        int: New booking ID
    """
    cursor.execute('''
        INSERT INTO camera_bookings (
            camera_unit, agent_id, property_address, mandate_id,
            start_date, end_date, start_time, end_time,
            status, is_urgent, notes, waitlist_for_booking_id
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    ''', (
        data['camera_unit'],
        data['agent_id'],
        data.get('property_address') or 'Sin dirección',
        data.get('mandate_id'),
        data['start_date'],
        data['end_date'],
        data['start_time'],
        data['end_time'],
        data['status'],
        1 if data.get('is_urgent') else 0,
        data.get('notes'),
        data.get('waitlist_for_booking_id'),
    ))
    return cursor.lastrowid


# =============================================================================
# READ
# =============================================================================

def get_booking(booking_id: int, cursor=None) -> dict:
    """
    Get booking by ID.

    Args:
        booking_id: Booking ID
        cursor: Optional cursor of an open transaction

    Returns:
        dict or None
    """
    cur = cursor or get_db().cursor()
    cur.execute('SELECT * FROM camera_bookings WHERE id = ?', (booking_id,))
    return row_to_booking(cur.fetchone())


def get_booking_or_raise(booking_id: int, cursor=None) -> dict:
    booking = get_booking(booking_id, cursor)
    if not booking:
        raise BookingNotFoundError(MESSAGES['booking_not_found'])
    return booking


def list_bookings(
    status: str = None,
    date_from: str = None,
    date_to: str = None,
    agent_id: int = None,
    unit_id: int = None,
    exclude_released: bool = False,
    limit: int = None
) -> list:
    """
    List bookings with optional filters.

    A booking matches the date range when its [start_date, end_date]
    interval intersects [date_from, date_to].

    Args:
        status: Only this status
        date_from: Range start (YYYY-MM-DD)
        date_to: Range end (YYYY-MM-DD)
        agent_id: Only this agent's bookings
        unit_id: Only this unit
        exclude_released: Skip rejected/cancelled bookings
        limit: Maximum rows

    Returns:
        list: Booking dicts ordered by start date/time
    """
    filters = []
    params = []

    if status:
        filters.append('status = ?')
        params.append(status)
    if date_from:
        filters.append('end_date >= ?')
        params.append(date_from)
    if date_to:
        filters.append('start_date <= ?')
        params.append(date_to)
    if agent_id is not None:
        filters.append('agent_id = ?')
        params.append(agent_id)
    if unit_id is not None:
        filters.append('camera_unit = ?')
        params.append(unit_id)
    if exclude_released:
        filters.append(f"status NOT IN ({','.join('?' * len(RELEASED_STATUSES))})")
        params.extend(RELEASED_STATUSES)

    where_clause = f"WHERE {' AND '.join(filters)}" if filters else ''
    query = f'''
        SELECT * FROM camera_bookings
        {where_clause}
        ORDER BY start_date, start_time, id
    '''
    if limit:
        query += ' LIMIT ?'
        params.append(limit)

    db = get_db()
    cursor = db.execute(query, params)
    return [row_to_booking(row) for row in cursor.fetchall()]


def get_agent_recent_bookings(agent_id: int, limit: int = 10) -> list:
    """Agent's most recent bookings that are not rejected or cancelled."""
    db = get_db()
    placeholders = ','.join('?' * len(RELEASED_STATUSES))
    cursor = db.execute(f'''
        SELECT * FROM camera_bookings
        WHERE agent_id = ?
          AND status NOT IN ({placeholders})
        ORDER BY start_date DESC, start_time DESC
        LIMIT ?
    ''', (agent_id, *RELEASED_STATUSES, limit))
    return [row_to_booking(row) for row in cursor.fetchall()]


def get_active_custody_for_agent(agent_id: int, cursor=None) -> dict:
    """The agent's booking with pickup confirmed and no return, if any."""
    cur = cursor or get_db().cursor()
    cur.execute('''
        SELECT * FROM camera_bookings
        WHERE agent_id = ?
          AND status = 'approved'
          AND pickup_confirmed_at IS NOT NULL
          AND return_confirmed_at IS NULL
        LIMIT 1
    ''', (agent_id,))
    return row_to_booking(cur.fetchone())


# =============================================================================
# UPDATE
# =============================================================================

def update_booking(cursor, booking_id: int, **fields) -> bool:
    """
    Update booking columns inside the caller's transaction.

    Args:
        cursor: Cursor of an open transaction
        booking_id: Booking ID
        **fields: Column values; dict values are stored as JSON

    Returns:
        bool: True if a row was updated

    Raises:
        ValueError: If an unknown column is passed
    """
    unknown = set(fields) - _UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Campos no actualizables: {sorted(unknown)}")
    if not fields:
        return False

    assignments = []
    params = []
    for column, value in fields.items():
        if isinstance(value, dict):
            value = json.dumps(value, ensure_ascii=False)
        elif isinstance(value, bool):
            value = 1 if value else 0
        assignments.append(f'{column} = ?')
        params.append(value)

    params.append(booking_id)
    cursor.execute(f'''
        UPDATE camera_bookings
        SET {', '.join(assignments)}, updated_at = CURRENT_TIMESTAMP
        WHERE id = ?
    ''', params)
    return cursor.rowcount > 0


# =============================================================================
# STATUS HISTORY
# =============================================================================

def record_status_change(
    cursor,
    booking_id: int,
    from_status: str,
    to_status: str,
    action: str,
    changed_by: int = None,
    notes: str = ''
) -> None:
    """Append an entry to booking_status_history inside the caller's transaction."""
    cursor.execute('''
        INSERT INTO booking_status_history
        (booking_id, from_status, to_status, action, changed_by, notes, created_at)
        VALUES (?, ?, ?, ?, ?, ?, CURRENT_TIMESTAMP)
    ''', (booking_id, from_status, to_status, action, changed_by, notes))


def get_status_history(booking_id: int) -> list:
    """
    Get state change history for a booking.

    Args:
        booking_id: Booking ID

    Returns:
        list: History entries, oldest first
    """
    db = get_db()
    cursor = db.execute('''
        SELECT * FROM booking_status_history
        WHERE booking_id = ?
        ORDER BY id
    ''', (booking_id,))
    return [dict(r) for r in cursor.fetchall()]
