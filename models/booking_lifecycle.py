"""
Booking lifecycle.
Status transitions (approve, reject, cancel, complete), in-place
rescheduling and handoff designation. Each operation re-reads and
re-validates the booking inside a write transaction, records the change
in booking_status_history, and calls the calendar and notification
collaborators only after commit.

Transitions:
    pending    -> approved, rejected, cancelled
    waitlisted -> approved, rejected
    approved   -> cancelled, completed
    rejected, cancelled, completed are terminal
"""

import logging

from database import transaction
from models.availability import get_conflicting_bookings
from models.booking import get_booking, get_booking_or_raise, update_booking, record_status_change
from models.camera_unit import assert_unit_bookable, release_unit
from models.errors import (
    BookingValidationError, InvalidStateTransitionError, PermissionDeniedError, SlotUnavailableError
)
from models.late_cancellation import is_late_cancellation
from models.user import get_user_by_id, is_admin
from services.calendar_sync import (
    create_custody_events, update_custody_events, delete_custody_events, complete_custody_events
)
from services.notifications import CAMERA_EVENTS, notify_booking_event
from utils.datetime_helpers import get_now, iso_timestamp, localize
from utils.messages import MESSAGES
from utils.validators import normalize_booking_window, sanitize_input

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

VALID_TRANSITIONS = {
    'pending': ('approved', 'rejected', 'cancelled'),
    'waitlisted': ('approved', 'rejected'),
    'approved': ('cancelled', 'completed'),
    'rejected': (),
    'cancelled': (),
    'completed': (),
}

RESCHEDULABLE_STATUSES = ('pending', 'approved')

# Statuses a rescheduled window must not overlap (waitlisted never lock the unit)
RESCHEDULE_BLOCKING_STATUSES = ('pending', 'approved', 'completed')


# =============================================================================
# HELPERS
# =============================================================================

def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in VALID_TRANSITIONS.get(from_status, ())


def _assert_transition(booking: dict, to_status: str) -> None:
    if not can_transition(booking['status'], to_status):
        raise InvalidStateTransitionError(
            MESSAGES['invalid_transition'].format(from_status=booking['status'], to_status=to_status)
        )


def _in_custody(booking: dict) -> bool:
    return bool(booking.get('pickup_confirmed_at')) and not booking.get('return_confirmed_at')


def _require_admin(actor_id: int) -> None:
    if not is_admin(actor_id):
        raise PermissionDeniedError(MESSAGES['permission_denied'])


def _has_calendar_refs(booking: dict) -> bool:
    return bool(booking.get('calendar_task_id_agent') or booking.get('calendar_task_id_admin'))


def _store_calendar_refs(booking_id: int, agent_task_id, admin_task_id) -> None:
    """Persist calendar task ids returned by the collaborator (best-effort)."""
    try:
        with transaction() as cursor:
            update_booking(
                cursor, booking_id,
                calendar_task_id_agent=agent_task_id,
                calendar_task_id_admin=admin_task_id
            )
    except Exception as e:
        logger.error(f"Could not store calendar references for booking {booking_id}: {e}")


def format_window(booking: dict) -> str:
    """Short human-readable window, e.g. 'Cámara 1 2024-03-10 09:00-11:00'."""
    end_date = booking.get('end_date') or booking['start_date']
    if end_date == booking['start_date']:
        span = f"{booking['start_date']} {booking['start_time'][:5]}-{booking['end_time'][:5]}"
    else:
        span = (f"{booking['start_date']} {booking['start_time'][:5]} - "
                f"{end_date} {booking['end_time'][:5]}")
    return f"Cámara {booking['camera_unit']} {span}"


# =============================================================================
# APPROVE / REJECT
# =============================================================================

def approve_booking(booking_id: int, approver_id: int, notes: str = '') -> dict:
    """
    Approve a pending or waitlisted booking.

    The window is re-checked against the other approved bookings of the
    unit, so a waitlisted booking can only be approved once the booking it
    contends with no longer holds the slot.

    Args:
        booking_id: Booking ID
        approver_id: Administrator approving
        notes: Optional admin notes

    Returns:
        dict: Updated booking

    Raises:
        BookingNotFoundError: Unknown booking
        PermissionDeniedError: Approver is not an administrator
        InvalidStateTransitionError: Booking not pending/waitlisted
        UnitUnavailableError: Unit under maintenance
        SlotUnavailableError: Window overlaps another approved booking
    """
    _require_admin(approver_id)
    notes = sanitize_input(notes or '', 1000)

    with transaction() as cursor:
        booking = get_booking_or_raise(booking_id, cursor)
        _assert_transition(booking, 'approved')
        assert_unit_bookable(booking['camera_unit'], cursor)

        clashes = get_conflicting_bookings(
            booking['camera_unit'],
            booking['start_date'],
            booking['end_date'],
            booking['start_time'],
            booking['end_time'],
            exclude_booking_id=booking_id,
            statuses=('approved',),
            cursor=cursor
        )
        if clashes:
            raise SlotUnavailableError(MESSAGES['slot_unavailable'].format(unit_id=booking['camera_unit']))

        update_booking(
            cursor, booking_id,
            status='approved',
            approver_id=approver_id,
            admin_notes=notes or None,
            waitlist_for_booking_id=None
        )
        record_status_change(cursor, booking_id, booking['status'], 'approved', 'approve', approver_id, notes)

    logger.info(f"Booking {booking_id} approved by {approver_id}")

    booking = get_booking(booking_id)
    refs = create_custody_events(booking, booking['agent_id'], approver_id, notes)
    if refs.get('agent_task_id') or refs.get('admin_task_id'):
        _store_calendar_refs(booking_id, refs.get('agent_task_id'), refs.get('admin_task_id'))
        booking = get_booking(booking_id)

    notify_booking_event(CAMERA_EVENTS['BOOKING_APPROVED'], booking, notes)
    return booking


def reject_booking(booking_id: int, approver_id: int, notes: str) -> dict:
    """
    Reject a pending or waitlisted booking.

    Args:
        booking_id: Booking ID
        approver_id: Administrator rejecting
        notes: Rejection reason (required)

    Returns:
        dict: Updated booking

    Raises:
        BookingValidationError: Empty rejection reason
        BookingNotFoundError: Unknown booking
        PermissionDeniedError: Approver is not an administrator
        InvalidStateTransitionError: Booking not pending/waitlisted
    """
    notes = sanitize_input(notes or '', 1000)
    if not notes:
        raise BookingValidationError(MESSAGES['reject_reason_required'])
    _require_admin(approver_id)

    with transaction() as cursor:
        booking = get_booking_or_raise(booking_id, cursor)
        _assert_transition(booking, 'rejected')

        update_booking(
            cursor, booking_id,
            status='rejected',
            approver_id=approver_id,
            admin_notes=notes,
            waitlist_for_booking_id=None
        )
        record_status_change(cursor, booking_id, booking['status'], 'rejected', 'reject', approver_id, notes)

    logger.info(f"Booking {booking_id} rejected by {approver_id}")

    if _has_calendar_refs(booking):
        delete_custody_events(booking, booking['agent_id'], approver_id)
        _store_calendar_refs(booking_id, None, None)

    booking = get_booking(booking_id)
    notify_booking_event(CAMERA_EVENTS['BOOKING_REJECTED'], booking, notes)
    return booking


# =============================================================================
# RESCHEDULE
# =============================================================================

def reschedule_booking(
    booking_id: int,
    actor_id: int,
    start_date: str,
    end_date: str,
    start_time: str,
    end_time: str,
    unit_id: int = None,
    notes: str = '',
    now=None
) -> dict:
    """
    Move a pending or approved booking to a new window and/or unit.

    Status is preserved. The new window must not overlap any pending,
    approved or completed booking on the target unit other than this one.

    Args:
        booking_id: Booking ID
        actor_id: Administrator rescheduling
        start_date: New pickup date
        end_date: New return date (empty for single-day)
        start_time: New pickup time
        end_time: New return time
        unit_id: New unit (None keeps the current one)
        notes: Optional reason
        now: Reference datetime for the past-date rule

    Returns:
        dict: Updated booking

    Raises:
        BookingValidationError: Missing or invalid window
        BookingNotFoundError: Unknown booking
        PermissionDeniedError: Actor is not an administrator
        InvalidStateTransitionError: Booking not pending/approved, or unit
            change during active custody
        UnitUnavailableError: Target unit under maintenance
        SlotUnavailableError: New window overlaps another booking
    """
    if not start_date or not start_time or not end_time:
        raise BookingValidationError(MESSAGES['reschedule_fields_required'])
    _require_admin(actor_id)

    now = localize(now) if now else get_now()
    window = normalize_booking_window(start_date, end_date, start_time, end_time, today=now.date())
    notes = sanitize_input(notes or '', 1000)

    with transaction() as cursor:
        booking = get_booking_or_raise(booking_id, cursor)
        if booking['status'] not in RESCHEDULABLE_STATUSES:
            raise InvalidStateTransitionError(MESSAGES['reschedule_not_allowed'])

        target_unit = int(unit_id) if unit_id else booking['camera_unit']
        if target_unit != booking['camera_unit'] and _in_custody(booking):
            raise InvalidStateTransitionError(MESSAGES['reschedule_unit_in_custody'])
        assert_unit_bookable(target_unit, cursor)

        clashes = get_conflicting_bookings(
            target_unit,
            window['start_date'],
            window['end_date'],
            window['start_time'],
            window['end_time'],
            exclude_booking_id=booking_id,
            statuses=RESCHEDULE_BLOCKING_STATUSES,
            cursor=cursor
        )
        if clashes:
            raise SlotUnavailableError(MESSAGES['slot_unavailable'].format(unit_id=target_unit))

        new_window = {**window, 'camera_unit': target_unit}
        admin_note = f"Reprogramado: {format_window(booking)} → {format_window(new_window)}."
        if notes:
            admin_note = f"{admin_note} {notes}"

        update_booking(cursor, booking_id, admin_notes=admin_note, **new_window)
        record_status_change(
            cursor, booking_id, booking['status'], booking['status'], 'reschedule', actor_id, admin_note
        )

    logger.info(f"Booking {booking_id} rescheduled by {actor_id}: {admin_note}")

    if _has_calendar_refs(booking):
        update_custody_events(booking, booking['agent_id'], actor_id, new_window, admin_note)

    booking = get_booking(booking_id)
    notify_booking_event(CAMERA_EVENTS['BOOKING_RESCHEDULED'], booking, admin_note)
    return booking


# =============================================================================
# CANCEL / COMPLETE
# =============================================================================

def cancel_booking(booking_id: int, actor_id: int, now=None) -> dict:
    """
    Cancel a pending or approved booking before pickup.

    Args:
        booking_id: Booking ID
        actor_id: Owning agent or an administrator
        now: Cancellation time (defaults to current local time)

    Returns:
        dict: Updated booking (is_late_cancellation tells whether it was late)

    Raises:
        BookingNotFoundError: Unknown booking
        PermissionDeniedError: Actor is neither the owner nor an admin
        InvalidStateTransitionError: Not cancellable or custody already started
    """
    now = localize(now) if now else get_now()

    with transaction() as cursor:
        booking = get_booking_or_raise(booking_id, cursor)
        if booking['agent_id'] != actor_id and not is_admin(actor_id):
            raise PermissionDeniedError(MESSAGES['cancel_not_owner'])
        if _in_custody(booking):
            raise InvalidStateTransitionError(MESSAGES['cancel_in_custody'])
        _assert_transition(booking, 'cancelled')

        late = is_late_cancellation(booking, now)
        update_booking(
            cursor, booking_id,
            status='cancelled',
            cancelled_at=iso_timestamp(now),
            is_late_cancellation=late
        )
        release_unit(cursor, booking['camera_unit'], booking_id)
        record_status_change(
            cursor, booking_id, booking['status'], 'cancelled', 'cancel', actor_id,
            'Cancelación tardía' if late else ''
        )

    logger.info(f"Booking {booking_id} cancelled by {actor_id} (late={late})")

    if _has_calendar_refs(booking):
        delete_custody_events(booking, booking['agent_id'], actor_id)
        _store_calendar_refs(booking_id, None, None)

    booking = get_booking(booking_id)
    notify_booking_event(CAMERA_EVENTS['BOOKING_CANCELLED'], booking)
    return booking


def complete_booking(booking_id: int, actor_id: int, notes: str = '', now=None) -> dict:
    """
    Administrator-forced completion of a booking in custody.

    Args:
        booking_id: Booking ID
        actor_id: Administrator
        notes: Optional admin notes
        now: Completion time (defaults to current local time)

    Returns:
        dict: Updated booking

    Raises:
        BookingNotFoundError: Unknown booking
        PermissionDeniedError: Actor is not an administrator
        InvalidStateTransitionError: Booking not approved and in custody
    """
    _require_admin(actor_id)
    now = localize(now) if now else get_now()
    notes = sanitize_input(notes or '', 1000)

    with transaction() as cursor:
        booking = get_booking_or_raise(booking_id, cursor)
        if booking['status'] != 'approved' or not _in_custody(booking):
            raise InvalidStateTransitionError(MESSAGES['complete_requires_custody'])

        update_booking(
            cursor, booking_id,
            status='completed',
            return_confirmed_at=iso_timestamp(now),
            return_condition={
                'forced_by': actor_id,
                'notes': notes,
                'confirmed_at': iso_timestamp(now),
                'is_early': False,
            }
        )
        release_unit(cursor, booking['camera_unit'], booking_id)
        record_status_change(cursor, booking_id, 'approved', 'completed', 'force_complete', actor_id, notes)

    logger.info(f"Booking {booking_id} force-completed by {actor_id}")

    if _has_calendar_refs(booking):
        complete_custody_events(booking, booking['agent_id'], actor_id)

    booking = get_booking(booking_id)
    notify_booking_event(CAMERA_EVENTS['RETURN_CONFIRMED'], booking, notes)
    return booking


# =============================================================================
# HANDOFF
# =============================================================================

def set_handoff(booking_id: int, actor_id: int, handoff_agent_id: int, location: str = None) -> dict:
    """
    Record a mid-custody transfer target. Informational only.

    Args:
        booking_id: Booking ID
        actor_id: Administrator
        handoff_agent_id: Agent who will receive the camera
        location: Optional handoff location

    Returns:
        dict: Updated booking

    Raises:
        BookingValidationError: Missing or unknown handoff agent
        PermissionDeniedError: Actor is not an administrator
        InvalidStateTransitionError: Booking not approved
    """
    _require_admin(actor_id)
    if not handoff_agent_id or not get_user_by_id(handoff_agent_id):
        raise BookingValidationError(MESSAGES['handoff_agent_required'])
    location = sanitize_input(location or '', 255) or None

    with transaction() as cursor:
        booking = get_booking_or_raise(booking_id, cursor)
        if booking['status'] != 'approved':
            raise InvalidStateTransitionError(MESSAGES['handoff_not_allowed'])

        update_booking(cursor, booking_id, handoff_agent_id=handoff_agent_id, handoff_location=location)
        record_status_change(
            cursor, booking_id, 'approved', 'approved', 'handoff', actor_id,
            f"Traspaso a usuario #{handoff_agent_id}" + (f" en {location}" if location else '')
        )

    logger.info(f"Booking {booking_id} handoff set to agent {handoff_agent_id}")
    return get_booking(booking_id)
