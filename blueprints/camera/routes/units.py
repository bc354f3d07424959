"""
Camera unit API routes.
Unit status listing and maintenance toggles.
"""

import logging
from flask_login import login_required

from models.camera_unit import get_all_units, set_maintenance, clear_maintenance
from models.errors import CameraBookingError
from utils.api_response import api_success, api_error
from utils.decorators import admin_required
from utils.helpers import get_request_data
from utils.messages import MESSAGES, UNIT_STATUS_LABELS

logger = logging.getLogger(__name__)


def _with_label(unit: dict) -> dict:
    unit['status_label'] = UNIT_STATUS_LABELS.get(unit['status'], unit['status'])
    return unit


def register_routes(bp):
    """Register unit routes on the blueprint."""

    @bp.route('/units', methods=['GET'])
    @login_required
    def list_units():
        """All units with status, current booking and maintenance notes."""
        return api_success(data={'units': [_with_label(u) for u in get_all_units()]})

    @bp.route('/units/<int:unit_id>/maintenance', methods=['POST'])
    @login_required
    @admin_required
    def start_maintenance(unit_id):
        """
        Put a unit under maintenance.

        Request body:
            notes: Maintenance notes (optional)
        """
        data = get_request_data()
        try:
            unit = set_maintenance(unit_id, data.get('notes'))
            return api_success(data=_with_label(unit), message=MESSAGES['maintenance_set'])
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)
        except Exception as e:
            logger.error(f"Error setting maintenance on unit {unit_id}: {e}", exc_info=True)
            return api_error('Error al actualizar la cámara', status=500)

    @bp.route('/units/<int:unit_id>/maintenance', methods=['DELETE'])
    @login_required
    @admin_required
    def end_maintenance(unit_id):
        """Return a unit from maintenance."""
        try:
            unit = clear_maintenance(unit_id)
            return api_success(data=_with_label(unit), message=MESSAGES['maintenance_cleared'])
        except CameraBookingError as e:
            return api_error(str(e), status=e.http_status)
        except Exception as e:
            logger.error(f"Error clearing maintenance on unit {unit_id}: {e}", exc_info=True)
            return api_error('Error al actualizar la cámara', status=500)
