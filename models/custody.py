"""
Custody tracking.
Pickup and return confirmations for approved bookings, each gated by the
equipment condition checklist. A checklist with any unchecked item is
refused before anything is written.
"""

import logging
import sqlite3

from database import get_db, transaction
from models.booking import get_booking, get_booking_or_raise, update_booking, record_status_change, row_to_booking
from models.camera_unit import occupy_unit, release_unit
from models.errors import (
    ChecklistIncompleteError, ConcurrencyConflictError, InvalidStateTransitionError, PermissionDeniedError
)
from models.overdue import is_overdue, committed_end
from models.user import is_admin
from services.calendar_sync import complete_custody_events
from services.notifications import CAMERA_EVENTS, notify_booking_event
from utils.datetime_helpers import get_now, iso_timestamp, localize
from utils.messages import MESSAGES
from utils.validators import sanitize_input

logger = logging.getLogger(__name__)


# =============================================================================
# CHECKLIST
# =============================================================================

CONDITION_ITEMS = {
    'battery': 'Batería cargada (>50%)',
    'physical': 'Sin daño físico visible',
    'accessories': 'Trípode y funda incluidos',
    'memory': 'Tarjeta SD presente',
}

_CHECKED_VALUES = (True, 1, '1', 'true', 'on', 'yes', 'si', 'sí')


def _is_checked(value) -> bool:
    if isinstance(value, str):
        value = value.strip().lower()
    return value in _CHECKED_VALUES


def validate_checklist(checklist: dict) -> dict:
    """
    Ensure every condition item is checked.

    Args:
        checklist: {item_key: bool-like}

    Returns:
        dict: {item_key: True} for every item

    Raises:
        ChecklistIncompleteError: If any item is missing or unchecked
    """
    checklist = checklist or {}
    missing = [key for key in CONDITION_ITEMS if not _is_checked(checklist.get(key))]
    if missing:
        raise ChecklistIncompleteError(MESSAGES['checklist_incomplete'])
    return {key: True for key in CONDITION_ITEMS}


def _assert_custody_actor(booking: dict, actor_id: int) -> None:
    if booking['agent_id'] != actor_id and not is_admin(actor_id):
        raise PermissionDeniedError(MESSAGES['custody_not_owner'])


# =============================================================================
# PICKUP / RETURN
# =============================================================================

def confirm_pickup(booking_id: int, actor_id: int, checklist: dict, note: str = '', now=None) -> dict:
    """
    Confirm the agent picked up the camera.

    Args:
        booking_id: Booking ID
        actor_id: Owning agent or an administrator
        checklist: Condition checklist, every item must be checked
        note: Free-text condition note
        now: Confirmation time (defaults to current local time)

    Returns:
        dict: Updated booking

    Raises:
        ChecklistIncompleteError: Any checklist item unchecked
        BookingNotFoundError: Unknown booking
        PermissionDeniedError: Actor is neither the owner nor an admin
        InvalidStateTransitionError: Booking not approved or already picked up
        UnitUnavailableError: Unit under maintenance
        ConcurrencyConflictError: Unit still held by another booking
    """
    condition = validate_checklist(checklist)
    now = localize(now) if now else get_now()
    confirmed_at = iso_timestamp(now)
    condition.update({'notes': sanitize_input(note or '', 1000), 'confirmed_at': confirmed_at})

    try:
        with transaction() as cursor:
            booking = get_booking_or_raise(booking_id, cursor)
            _assert_custody_actor(booking, actor_id)
            if booking['status'] != 'approved':
                raise InvalidStateTransitionError(MESSAGES['pickup_not_allowed'])
            if booking.get('pickup_confirmed_at'):
                raise InvalidStateTransitionError(MESSAGES['pickup_already_confirmed'])

            occupy_unit(cursor, booking['camera_unit'], booking_id)
            update_booking(cursor, booking_id, pickup_confirmed_at=confirmed_at, pickup_condition=condition)
            record_status_change(cursor, booking_id, 'approved', 'approved', 'pickup', actor_id, condition['notes'])
    except sqlite3.IntegrityError:
        # Another custody on the unit was committed concurrently
        raise ConcurrencyConflictError(MESSAGES['slot_taken'])

    logger.info(f"Pickup confirmed for booking {booking_id} (unit {booking['camera_unit']})")

    booking = get_booking(booking_id)
    notify_booking_event(CAMERA_EVENTS['PICKUP_CONFIRMED'], booking, condition['notes'])
    return booking


def confirm_return(
    booking_id: int,
    actor_id: int,
    checklist: dict,
    note: str = '',
    is_early: bool = False,
    now=None
) -> dict:
    """
    Confirm the camera was returned and complete the booking.

    Args:
        booking_id: Booking ID
        actor_id: Owning agent or an administrator
        checklist: Condition checklist, every item must be checked
        note: Free-text condition note
        is_early: Returned before the committed window ends
        now: Confirmation time (defaults to current local time)

    Returns:
        dict: Updated booking (status 'completed')

    Raises:
        ChecklistIncompleteError: Any checklist item unchecked
        BookingNotFoundError: Unknown booking
        PermissionDeniedError: Actor is neither the owner nor an admin
        InvalidStateTransitionError: No pickup yet or already returned
    """
    condition = validate_checklist(checklist)
    now = localize(now) if now else get_now()
    confirmed_at = iso_timestamp(now)
    condition.update({
        'notes': sanitize_input(note or '', 1000),
        'confirmed_at': confirmed_at,
        'is_early': bool(is_early),
    })

    with transaction() as cursor:
        booking = get_booking_or_raise(booking_id, cursor)
        _assert_custody_actor(booking, actor_id)
        if not booking.get('pickup_confirmed_at'):
            raise InvalidStateTransitionError(MESSAGES['return_without_pickup'])
        if booking.get('return_confirmed_at'):
            raise InvalidStateTransitionError(MESSAGES['return_already_confirmed'])
        if booking['status'] != 'approved':
            raise InvalidStateTransitionError(
                MESSAGES['invalid_transition'].format(from_status=booking['status'], to_status='completed')
            )

        update_booking(
            cursor, booking_id,
            status='completed',
            return_confirmed_at=confirmed_at,
            return_condition=condition
        )
        release_unit(cursor, booking['camera_unit'], booking_id)
        record_status_change(
            cursor, booking_id, 'approved', 'completed',
            'early_return' if is_early else 'return', actor_id, condition['notes']
        )

    logger.info(f"Return confirmed for booking {booking_id} (unit {booking['camera_unit']}, early={bool(is_early)})")

    if booking.get('calendar_task_id_agent') or booking.get('calendar_task_id_admin'):
        complete_custody_events(booking, booking['agent_id'], actor_id)

    booking = get_booking(booking_id)
    event = CAMERA_EVENTS['EARLY_RETURN'] if is_early else CAMERA_EVENTS['RETURN_CONFIRMED']
    notify_booking_event(event, booking, condition['notes'])
    return booking


# =============================================================================
# AGENT VIEW
# =============================================================================

def get_agent_active_bookings(agent_id: int, now=None) -> list:
    """
    Approved bookings of an agent with derived custody flags.

    Args:
        agent_id: Agent ID
        now: Reference datetime (defaults to current local time)

    Returns:
        list: Booking dicts with needs_pickup, needs_return, is_overdue and
            committed_end added, ordered by start date
    """
    now = localize(now) if now else get_now()

    db = get_db()
    cursor = db.execute('''
        SELECT * FROM camera_bookings
        WHERE agent_id = ?
          AND status = 'approved'
        ORDER BY start_date, start_time
    ''', (agent_id,))

    bookings = []
    for row in cursor.fetchall():
        booking = row_to_booking(row)
        booking['needs_pickup'] = not booking.get('pickup_confirmed_at')
        booking['needs_return'] = bool(booking.get('pickup_confirmed_at')) and not booking.get('return_confirmed_at')
        booking['is_overdue'] = is_overdue(booking, now)
        booking['committed_end'] = iso_timestamp(committed_end(booking))
        bookings.append(booking)
    return bookings
