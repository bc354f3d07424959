"""
Booking admission and waitlist.
Turns an agent request into a pending booking, a waitlist entry contending
for an existing booking's slot, or a denial when the slot already has a
waiter. The conflict check and the insert run in one write transaction.
"""

import logging
import sqlite3
from collections import namedtuple

from flask import current_app

from database import get_db, transaction
from models.availability import get_conflicting_bookings
from models.booking import insert_booking, get_booking, get_active_custody_for_agent, record_status_change, row_to_booking
from models.camera_unit import assert_unit_bookable
from models.errors import BookingValidationError, UnreturnedUnitError
from models.user import get_users_by_ids
from services.notifications import CAMERA_EVENTS, notify_booking_event
from utils.datetime_helpers import get_now, localize
from utils.messages import MESSAGES
from utils.validators import normalize_booking_window, sanitize_input

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

ADMISSION_CREATED = 'created'
ADMISSION_WAITLISTED = 'waitlisted'
ADMISSION_DENIED = 'denied'

AdmissionResult = namedtuple('AdmissionResult', ['outcome', 'booking', 'conflicting'])


# =============================================================================
# QUERIES
# =============================================================================

def count_waiters(booking_id: int, cursor=None) -> int:
    """
    Count waitlisted bookings contending for a booking's slot.

    Args:
        booking_id: Contested booking ID
        cursor: Optional cursor of an open transaction

    Returns:
        int: Number of waitlisted bookings referencing it
    """
    cur = cursor or get_db().cursor()
    cur.execute('''
        SELECT COUNT(*) FROM camera_bookings
        WHERE waitlist_for_booking_id = ?
          AND status = 'waitlisted'
    ''', (booking_id,))
    return cur.fetchone()[0]


def get_waitlisted_for(booking_id: int) -> dict:
    """
    The waitlisted booking contending for a booking's slot, if any.

    Args:
        booking_id: Contested booking ID

    Returns:
        dict or None
    """
    db = get_db()
    cursor = db.execute('''
        SELECT * FROM camera_bookings
        WHERE waitlist_for_booking_id = ?
          AND status = 'waitlisted'
        ORDER BY created_at, id
        LIMIT 1
    ''', (booking_id,))
    return row_to_booking(cursor.fetchone())


# =============================================================================
# ADMISSION
# =============================================================================

def admit_request(cursor, request: dict) -> AdmissionResult:
    """
    Decide and persist the admission of a validated request.

    Must be called inside an open write transaction so that the conflict
    check and the insert are serialized against other writers.

    Decision:
    - no conflicting booking on the unit -> 'pending' booking
    - conflicts, and no waitlist entry already overlaps the window nor
      contends for the first conflicting booking -> 'waitlisted' booking
      referencing that booking
    - otherwise -> denied, nothing written

    Args:
        cursor: Cursor of an open transaction
        request: Normalized booking fields (camera_unit, agent_id, window...)

    Returns:
        AdmissionResult
    """
    cap = current_app.config.get('WAITLIST_CAP_PER_SLOT', 1)

    conflicting = get_conflicting_bookings(
        request['camera_unit'],
        request['start_date'],
        request['end_date'],
        request['start_time'],
        request['end_time'],
        cursor=cursor
    )

    if not conflicting:
        booking_id = insert_booking(cursor, {**request, 'status': 'pending'})
        record_status_change(cursor, booking_id, None, 'pending', 'request', request['agent_id'])
        return AdmissionResult(ADMISSION_CREATED, get_booking(booking_id, cursor), [])

    overlapping_waiters = [b for b in conflicting if b['status'] == 'waitlisted']
    if len(overlapping_waiters) >= cap:
        return AdmissionResult(ADMISSION_DENIED, None, conflicting)

    contested = next((b for b in conflicting if b['status'] != 'waitlisted'), conflicting[0])
    if count_waiters(contested['id'], cursor) >= cap:
        return AdmissionResult(ADMISSION_DENIED, None, conflicting)

    try:
        booking_id = insert_booking(cursor, {
            **request,
            'status': 'waitlisted',
            'waitlist_for_booking_id': contested['id'],
        })
    except sqlite3.IntegrityError:
        # Another waiter for the same booking got in first
        return AdmissionResult(ADMISSION_DENIED, None, conflicting)

    record_status_change(
        cursor, booking_id, None, 'waitlisted', 'waitlist_request', request['agent_id'],
        f"En espera de la reserva #{contested['id']}"
    )
    return AdmissionResult(ADMISSION_WAITLISTED, get_booking(booking_id, cursor), conflicting)


def request_booking(
    agent_id: int,
    unit_id: int,
    start_date: str,
    end_date: str,
    start_time: str,
    end_time: str,
    property_address: str = None,
    notes: str = None,
    is_urgent: bool = False,
    mandate_id: str = None,
    now=None
) -> AdmissionResult:
    """
    Submit an agent's camera request.

    Args:
        agent_id: Requesting agent
        unit_id: Camera unit ID
        start_date: Pickup date (YYYY-MM-DD)
        end_date: Return date (YYYY-MM-DD), empty for single-day
        start_time: Pickup time (HH:MM)
        end_time: Return time (HH:MM)
        property_address: Property to photograph
        notes: Free-text notes
        is_urgent: Urgent request (notification priority only)
        mandate_id: Optional property mandate reference
        now: Reference datetime (defaults to current local time)

    Returns:
        AdmissionResult: outcome is 'created', 'waitlisted' or 'denied'

    Raises:
        BookingValidationError: Invalid window or unknown unit id
        UnitNotFoundError: Unit does not exist
        UnitUnavailableError: Unit under maintenance
        UnreturnedUnitError: Agent holds an unreturned unit (non-urgent request)
    """
    now = localize(now) if now else get_now()

    try:
        unit_id = int(unit_id)
    except (TypeError, ValueError):
        raise BookingValidationError(MESSAGES['unknown_unit'].format(unit_id=unit_id))

    window = normalize_booking_window(start_date, end_date, start_time, end_time, today=now.date())

    request = {
        'camera_unit': unit_id,
        'agent_id': agent_id,
        'property_address': sanitize_input(property_address or '', 255) or 'Sin dirección',
        'mandate_id': mandate_id or None,
        'notes': sanitize_input(notes or '', 1000) or None,
        'is_urgent': bool(is_urgent),
        **window,
    }

    with transaction() as cursor:
        assert_unit_bookable(unit_id, cursor)

        if not is_urgent and get_active_custody_for_agent(agent_id, cursor):
            raise UnreturnedUnitError(MESSAGES['unreturned_unit'])

        result = admit_request(cursor, request)

    if result.outcome == ADMISSION_CREATED:
        logger.info(f"Booking {result.booking['id']} requested by agent {agent_id} on unit {unit_id}")
        event = CAMERA_EVENTS['URGENT_REQUEST'] if is_urgent else CAMERA_EVENTS['BOOKING_REQUESTED']
        notify_booking_event(event, result.booking)
    elif result.outcome == ADMISSION_WAITLISTED:
        logger.info(
            f"Booking {result.booking['id']} waitlisted for booking "
            f"{result.booking['waitlist_for_booking_id']} on unit {unit_id}"
        )
        _notify_waitlisted(result)
    else:
        logger.info(f"Request by agent {agent_id} on unit {unit_id} denied: waitlist full")

    return result


def _notify_waitlisted(result: AdmissionResult) -> None:
    """Send waitlist_requested with the current holder of the contested slot."""
    contested = next(
        (b for b in result.conflicting if b['id'] == result.booking['waitlist_for_booking_id']),
        result.conflicting[0]
    )
    holder = get_users_by_ids([contested['agent_id']]).get(contested['agent_id']) or {}
    holder_name = (
        f"{holder.get('first_name') or ''} {holder.get('last_name') or ''}".strip()
        or holder.get('username')
        or 'otro agente'
    )

    admin_notes = (
        f"Pre-reserva en lista de espera. Horario actual ocupado por {holder_name} "
        f"({contested['start_time'][:5]}-{contested['end_time'][:5]})"
    )
    extra = {
        'original_booking': {
            'id': contested['id'],
            'agent_name': holder_name,
            'start_date': contested['start_date'],
            'end_date': contested['end_date'],
            'start_time': contested['start_time'][:5],
            'end_time': contested['end_time'][:5],
        }
    }
    notify_booking_event(CAMERA_EVENTS['WAITLIST_REQUESTED'], result.booking, admin_notes, extra)
