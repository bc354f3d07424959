"""
Custody API routes.
Pickup and return confirmations with the condition checklist, and the
agent's active custody view.
"""

import logging
from flask_login import login_required, current_user

from models.custody import CONDITION_ITEMS, confirm_pickup, confirm_return, get_agent_active_bookings
from models.errors import CameraBookingError
from utils.api_response import api_success, api_error
from utils.helpers import get_request_data, parse_bool
from utils.messages import MESSAGES

logger = logging.getLogger(__name__)


def _checklist_from(data: dict) -> dict:
    """Checklist from a nested 'checklist' object or top-level form fields."""
    checklist = data.get('checklist')
    if isinstance(checklist, dict):
        return checklist
    return {key: data.get(key) for key in CONDITION_ITEMS}


def register_routes(bp):
    """Register custody routes on the blueprint."""

    @bp.route('/custody/checklist', methods=['GET'])
    @login_required
    def get_checklist_items():
        """Condition checklist items (key and label)."""
        items = [{'key': key, 'label': label} for key, label in CONDITION_ITEMS.items()]
        return api_success(data={'items': items})

    @bp.route('/custody/active', methods=['GET'])
    @login_required
    def active_custody():
        """
        Current agent's approved bookings with custody flags.

        Returns:
            JSON list with needs_pickup, needs_return and is_overdue per booking
        """
        return api_success(data={'bookings': get_agent_active_bookings(current_user.id)})

    @bp.route('/bookings/<int:booking_id>/pickup', methods=['POST'])
    @login_required
    def pickup(booking_id):
        """
        Confirm camera pickup.

        Request body:
            checklist: {battery, physical, accessories, memory} all true (required)
            notes: Condition notes (optional)
        """
        data = get_request_data()
        try:
            booking = confirm_pickup(
                booking_id,
                current_user.id,
                _checklist_from(data),
                data.get('notes', '')
            )
            return api_success(data=booking, message=MESSAGES['pickup_confirmed'])
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)
        except Exception as e:
            logger.error(f"Error confirming pickup for booking {booking_id}: {e}", exc_info=True)
            return api_error('Error al confirmar retiro', status=500)

    @bp.route('/bookings/<int:booking_id>/return', methods=['POST'])
    @login_required
    def return_camera(booking_id):
        """
        Confirm camera return.

        Request body:
            checklist: {battery, physical, accessories, memory} all true (required)
            notes: Condition notes (optional)
            is_early: Returned before the committed window ends (optional)
        """
        data = get_request_data()
        is_early = parse_bool(data.get('is_early'))
        try:
            booking = confirm_return(
                booking_id,
                current_user.id,
                _checklist_from(data),
                data.get('notes', ''),
                is_early=is_early
            )
            message = MESSAGES['early_return_confirmed'] if is_early else MESSAGES['return_confirmed']
            return api_success(data=booking, message=message)
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)
        except Exception as e:
            logger.error(f"Error confirming return for booking {booking_id}: {e}", exc_info=True)
            return api_error('Error al confirmar devolución', status=500)
