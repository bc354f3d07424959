"""
Service-level JSON endpoints for load balancers and uptime checks.
"""

import logging
import sqlite3

from flask import jsonify, current_app, Blueprint

from models.camera_unit import get_all_units

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__)


@api_bp.route('/health')
def health_check():
    """
    Health check endpoint (no authentication required).

    Reports the status of each camera unit so a probe also proves the
    database is reachable.

    Returns:
        JSON with status, version and unit statuses; 503 when the
        database cannot be read
    """
    try:
        units = {str(unit['id']): unit['status'] for unit in get_all_units()}
    except sqlite3.Error as e:
        logger.error(f"Health check could not read camera units: {e}")
        return jsonify({'status': 'unavailable'}), 503

    return jsonify({
        'status': 'ok',
        'version': current_app.config.get('APP_VERSION', '1.0.0'),
        'app': current_app.config.get('APP_NAME', 'Agenda Cámara 360'),
        'units': units,
    })
