"""
Camera booking API routes.
Agent requests, admin review (approve/reject/reschedule/complete/handoff)
and cancellation.
"""

import logging
from datetime import date
from flask import request, current_app
from flask_login import login_required, current_user

from models.booking import get_booking_or_raise, list_bookings, get_agent_recent_bookings, get_status_history
from models.booking_lifecycle import (
    approve_booking, reject_booking, reschedule_booking, cancel_booking, complete_booking, set_handoff
)
from models.errors import CameraBookingError
from models.overdue import is_overdue
from models.user import get_users_by_ids
from models.waitlist import request_booking, get_waitlisted_for, ADMISSION_CREATED, ADMISSION_WAITLISTED
from utils.api_response import api_success, api_error
from utils.datetime_helpers import week_bounds
from utils.decorators import admin_required
from utils.helpers import get_request_data, parse_bool, parse_int
from utils.messages import MESSAGES
from utils.validators import validate_date_format

logger = logging.getLogger(__name__)


def _with_agent_names(bookings: list) -> list:
    """Attach agent_name to each booking."""
    users = get_users_by_ids(b['agent_id'] for b in bookings)
    for booking in bookings:
        user = users.get(booking['agent_id']) or {}
        booking['agent_name'] = (
            f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip()
            or user.get('username', '')
        )
    return bookings


def _can_view(booking: dict) -> bool:
    return current_user.is_admin or booking['agent_id'] == current_user.id


def register_routes(bp):
    """Register booking routes on the blueprint."""

    # =========================================================================
    # AGENT REQUESTS
    # =========================================================================

    @bp.route('/bookings', methods=['POST'])
    @login_required
    def create_booking():
        """
        Request a camera.

        Request body:
            camera_unit: Unit ID (required)
            start_date: Pickup date YYYY-MM-DD (required)
            end_date: Return date YYYY-MM-DD (optional, defaults to start_date)
            start_time: Pickup time HH:MM (required)
            end_time: Return time HH:MM (required)
            property_address: Property address (optional)
            mandate_id: Property mandate reference (optional)
            notes: Notes (optional)
            is_urgent: Urgent request (optional)

        Returns:
            201 pending booking, 202 waitlisted booking, 409 waitlist full
        """
        data = get_request_data()
        if not data:
            return api_error(MESSAGES['data_required'], status=400)

        is_urgent = parse_bool(data.get('is_urgent'))

        try:
            result = request_booking(
                agent_id=current_user.id,
                unit_id=data.get('camera_unit'),
                start_date=data.get('start_date'),
                end_date=data.get('end_date'),
                start_time=data.get('start_time'),
                end_time=data.get('end_time'),
                property_address=data.get('property_address'),
                notes=data.get('notes'),
                is_urgent=is_urgent,
                mandate_id=data.get('mandate_id')
            )
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)
        except Exception as e:
            logger.error(f"Error creating camera booking: {e}", exc_info=True)
            return api_error('Error al enviar la solicitud', status=500)

        if result.outcome == ADMISSION_CREATED:
            message = MESSAGES['booking_requested_urgent'] if is_urgent else MESSAGES['booking_requested']
            return api_success(data=result.booking, message=message, status=201)

        if result.outcome == ADMISSION_WAITLISTED:
            return api_success(
                data=result.booking,
                message=MESSAGES['booking_waitlisted'],
                status=202,
                conflicting=result.conflicting
            )

        return api_error(MESSAGES['waitlist_full'], status=409, conflicting=result.conflicting)

    @bp.route('/bookings/mine', methods=['GET'])
    @login_required
    def my_bookings():
        """Current agent's last 10 bookings (excluding cancelled/rejected)."""
        return api_success(data={'bookings': get_agent_recent_bookings(current_user.id, limit=10)})

    # =========================================================================
    # READ
    # =========================================================================

    @bp.route('/bookings', methods=['GET'])
    @login_required
    @admin_required
    def list_all_bookings():
        """
        List bookings for review.

        Query params:
            status: Filter by status (optional)
            week_start: Any date of the week to show (optional, Monday-based)
            unit_id: Filter by unit (optional)

        Returns:
            JSON list of bookings with agent names
        """
        status = request.args.get('status') or None
        week_start = request.args.get('week_start')
        unit_id = parse_int(request.args.get('unit_id'))

        date_from = date_to = None
        if week_start:
            if not validate_date_format(week_start):
                return api_error(MESSAGES['invalid_date'], status=400)
            monday, sunday = week_bounds(date.fromisoformat(week_start))
            date_from, date_to = monday.isoformat(), sunday.isoformat()

        bookings = list_bookings(status=status, date_from=date_from, date_to=date_to, unit_id=unit_id)
        return api_success(data={
            'bookings': _with_agent_names(bookings),
            'date_from': date_from,
            'date_to': date_to,
        })

    @bp.route('/bookings/<int:booking_id>', methods=['GET'])
    @login_required
    def get_booking_detail(booking_id):
        """Single booking with its waiter and overdue flag."""
        try:
            booking = get_booking_or_raise(booking_id)
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)

        if not _can_view(booking):
            return api_error(MESSAGES['permission_denied'], status=403)

        booking['is_overdue'] = is_overdue(booking)
        booking['waitlisted_booking'] = get_waitlisted_for(booking_id)
        return api_success(data=_with_agent_names([booking])[0])

    @bp.route('/bookings/<int:booking_id>/history', methods=['GET'])
    @login_required
    def get_booking_history(booking_id):
        """Status change history of a booking."""
        try:
            booking = get_booking_or_raise(booking_id)
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)

        if not _can_view(booking):
            return api_error(MESSAGES['permission_denied'], status=403)

        return api_success(data={'history': get_status_history(booking_id)})

    # =========================================================================
    # ADMIN REVIEW
    # =========================================================================

    @bp.route('/bookings/<int:booking_id>/approve', methods=['POST'])
    @login_required
    @admin_required
    def approve(booking_id):
        """
        Approve a pending or waitlisted booking.

        Request body:
            notes: Admin notes (optional)
        """
        data = get_request_data()
        try:
            booking = approve_booking(booking_id, current_user.id, data.get('notes', ''))
            return api_success(data=booking, message=MESSAGES['booking_approved'])
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)
        except Exception as e:
            logger.error(f"Error approving booking {booking_id}: {e}", exc_info=True)
            return api_error('Error al aprobar la reserva', status=500)

    @bp.route('/bookings/<int:booking_id>/reject', methods=['POST'])
    @login_required
    @admin_required
    def reject(booking_id):
        """
        Reject a pending or waitlisted booking.

        Request body:
            notes: Rejection reason (required)
        """
        data = get_request_data()
        try:
            booking = reject_booking(booking_id, current_user.id, data.get('notes', ''))
            return api_success(data=booking, message=MESSAGES['booking_rejected'])
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)
        except Exception as e:
            logger.error(f"Error rejecting booking {booking_id}: {e}", exc_info=True)
            return api_error('Error al rechazar la reserva', status=500)

    @bp.route('/bookings/<int:booking_id>/reschedule', methods=['POST'])
    @login_required
    @admin_required
    def reschedule(booking_id):
        """
        Move a booking to a new window and/or unit.

        Request body:
            start_date, end_date, start_time, end_time: New window
            camera_unit: New unit (optional)
            notes: Reason (optional)
        """
        data = get_request_data()
        try:
            booking = reschedule_booking(
                booking_id,
                current_user.id,
                start_date=data.get('start_date'),
                end_date=data.get('end_date'),
                start_time=data.get('start_time'),
                end_time=data.get('end_time'),
                unit_id=parse_int(data.get('camera_unit')),
                notes=data.get('notes', '')
            )
            return api_success(data=booking, message=MESSAGES['booking_rescheduled'])
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)
        except Exception as e:
            logger.error(f"Error rescheduling booking {booking_id}: {e}", exc_info=True)
            return api_error('Error al reprogramar la reserva', status=500)

    @bp.route('/bookings/<int:booking_id>/complete', methods=['POST'])
    @login_required
    @admin_required
    def complete(booking_id):
        """Force-complete a booking whose camera is in custody."""
        data = get_request_data()
        try:
            booking = complete_booking(booking_id, current_user.id, data.get('notes', ''))
            return api_success(data=booking, message=MESSAGES['booking_completed'])
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)
        except Exception as e:
            logger.error(f"Error completing booking {booking_id}: {e}", exc_info=True)
            return api_error('Error al completar la reserva', status=500)

    @bp.route('/bookings/<int:booking_id>/handoff', methods=['POST'])
    @login_required
    @admin_required
    def handoff(booking_id):
        """
        Set the handoff agent for an approved booking.

        Request body:
            handoff_agent_id: Receiving agent (required)
            handoff_location: Where the camera changes hands (optional)
        """
        data = get_request_data()
        try:
            booking = set_handoff(
                booking_id,
                current_user.id,
                parse_int(data.get('handoff_agent_id')),
                data.get('handoff_location')
            )
            return api_success(data=booking, message=MESSAGES['handoff_set'])
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)
        except Exception as e:
            logger.error(f"Error setting handoff for booking {booking_id}: {e}", exc_info=True)
            return api_error('Error al configurar traspaso', status=500)

    # =========================================================================
    # CANCEL
    # =========================================================================

    @bp.route('/bookings/<int:booking_id>/cancel', methods=['POST'])
    @login_required
    def cancel(booking_id):
        """Cancel a booking (owner or admin), before pickup."""
        try:
            booking = cancel_booking(booking_id, current_user.id)
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)
        except Exception as e:
            logger.error(f"Error cancelling booking {booking_id}: {e}", exc_info=True)
            return api_error('Error al cancelar', status=500)

        if booking['is_late_cancellation']:
            hours = current_app.config.get('LATE_CANCELLATION_HOURS', 12)
            return api_success(data=booking, message=MESSAGES['booking_cancelled_late'].format(hours=hours))
        return api_success(data=booking, message=MESSAGES['booking_cancelled'])
