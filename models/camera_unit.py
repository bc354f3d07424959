"""
Camera unit registry.
Tracks each physical unit's operational status and the booking holding it.

Occupancy (status='in_use', current_booking_id) is only written through
occupy_unit/release_unit, which custody and lifecycle operations call
inside their own transactions.
"""

import logging

from database import get_db, transaction
from models.errors import UnitNotFoundError, UnitUnavailableError, ConcurrencyConflictError
from utils.messages import MESSAGES

logger = logging.getLogger(__name__)


UNIT_STATUSES = ('available', 'in_use', 'maintenance')


# =============================================================================
# QUERIES
# =============================================================================

def get_all_units() -> list:
    """
    Get all camera units.

    Returns:
        list: Unit dicts ordered by id
    """
    db = get_db()
    cursor = db.execute('SELECT * FROM camera_units ORDER BY id')
    return [dict(row) for row in cursor.fetchall()]


def get_unit(unit_id: int, cursor=None) -> dict:
    """
    Get a unit by ID.

    Args:
        unit_id: Unit ID
        cursor: Optional cursor of an open transaction

    Returns:
        dict or None
    """
    cur = cursor or get_db().cursor()
    cur.execute('SELECT * FROM camera_units WHERE id = ?', (unit_id,))
    row = cur.fetchone()
    return dict(row) if row else None


def get_unit_or_raise(unit_id: int, cursor=None) -> dict:
    unit = get_unit(unit_id, cursor)
    if not unit:
        raise UnitNotFoundError(MESSAGES['unknown_unit'].format(unit_id=unit_id))
    return unit


def get_bookable_unit_ids() -> list:
    """Unit IDs offered in new-booking flows (maintenance units excluded)."""
    db = get_db()
    cursor = db.execute('''
        SELECT id FROM camera_units
        WHERE status != 'maintenance'
        ORDER BY id
    ''')
    return [row['id'] for row in cursor.fetchall()]


def assert_unit_bookable(unit_id: int, cursor=None) -> dict:
    """
    Ensure a unit exists and is not under maintenance.

    Raises:
        UnitNotFoundError: Unknown unit
        UnitUnavailableError: Unit under maintenance
    """
    unit = get_unit_or_raise(unit_id, cursor)
    if unit['status'] == 'maintenance':
        raise UnitUnavailableError(MESSAGES['unit_in_maintenance'].format(unit_id=unit_id))
    return unit


# =============================================================================
# OCCUPANCY
# =============================================================================

def occupy_unit(cursor, unit_id: int, booking_id: int) -> None:
    """
    Mark the unit as held by a booking.

    Raises:
        UnitUnavailableError: Unit under maintenance
        ConcurrencyConflictError: Unit already held by another booking
    """
    unit = get_unit_or_raise(unit_id, cursor)
    if unit['status'] == 'maintenance':
        raise UnitUnavailableError(MESSAGES['unit_in_maintenance'].format(unit_id=unit_id))
    if unit['status'] == 'in_use' and unit['current_booking_id'] != booking_id:
        raise ConcurrencyConflictError(MESSAGES['slot_taken'])

    cursor.execute('''
        UPDATE camera_units
        SET status = 'in_use',
            current_booking_id = ?,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = ?
    ''', (booking_id, unit_id))


def release_unit(cursor, unit_id: int, booking_id: int) -> bool:
    """
    Free the unit if (and only if) this booking is the one holding it.

    Returns:
        bool: True if the unit was released
    """
    cursor.execute('''
        UPDATE camera_units
        SET status = 'available',
            current_booking_id = NULL,
            updated_at = CURRENT_TIMESTAMP
        WHERE id = ? AND current_booking_id = ?
    ''', (unit_id, booking_id))
    return cursor.rowcount > 0


# =============================================================================
# MAINTENANCE
# =============================================================================

def set_maintenance(unit_id: int, notes: str = None) -> dict:
    """
    Put a unit under maintenance.

    Args:
        unit_id: Unit ID
        notes: Optional maintenance notes

    Returns:
        dict: Updated unit

    Raises:
        UnitNotFoundError: Unknown unit
        UnitUnavailableError: Unit is in use (active custody)
    """
    with transaction() as cursor:
        unit = get_unit_or_raise(unit_id, cursor)
        if unit['status'] == 'in_use':
            raise UnitUnavailableError(MESSAGES['unit_in_use'].format(unit_id=unit_id))

        cursor.execute('''
            UPDATE camera_units
            SET status = 'maintenance',
                maintenance_notes = ?,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (notes or None, unit_id))

    logger.info(f"Camera unit {unit_id} set to maintenance")
    return get_unit(unit_id)


def clear_maintenance(unit_id: int) -> dict:
    """
    Return a unit from maintenance to available.

    Args:
        unit_id: Unit ID

    Returns:
        dict: Updated unit

    Raises:
        UnitNotFoundError: Unknown unit
        UnitUnavailableError: Unit is in use (active custody)
    """
    with transaction() as cursor:
        unit = get_unit_or_raise(unit_id, cursor)
        if unit['status'] == 'in_use':
            raise UnitUnavailableError(MESSAGES['unit_in_use'].format(unit_id=unit_id))

        cursor.execute('''
            UPDATE camera_units
            SET status = 'available',
                maintenance_notes = NULL,
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (unit_id,))

    logger.info(f"Camera unit {unit_id} back from maintenance")
    return get_unit(unit_id)
