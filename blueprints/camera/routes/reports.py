"""
Camera report API routes.
Day occupancy, overdue custodies and late-cancellation counts.
"""

from flask import request
from flask_login import login_required

from models.availability import get_day_occupancy
from models.late_cancellation import get_late_cancellation_counts
from models.overdue import get_overdue_bookings
from utils.api_response import api_success, api_error
from utils.datetime_helpers import get_today
from utils.decorators import admin_required
from utils.messages import MESSAGES
from utils.validators import validate_date_format


def register_routes(bp):
    """Register report routes on the blueprint."""

    @bp.route('/occupancy', methods=['GET'])
    @login_required
    def day_occupancy():
        """
        Bookings occupying each unit on a day.

        Query params:
            date: Date (YYYY-MM-DD), defaults to today

        Returns:
            JSON {date, units: {unit_id: [booking, ...]}}
        """
        day = request.args.get('date') or get_today().isoformat()
        if not validate_date_format(day):
            return api_error(MESSAGES['invalid_date'], status=400)

        occupancy = get_day_occupancy(day)
        return api_success(data={
            'date': day,
            'units': {str(unit_id): bookings for unit_id, bookings in occupancy.items()},
        })

    @bp.route('/overdue', methods=['GET'])
    @login_required
    @admin_required
    def overdue():
        """Custodies past their committed return time."""
        bookings = get_overdue_bookings()
        return api_success(data={'bookings': bookings, 'count': len(bookings)})

    @bp.route('/late-cancellations', methods=['GET'])
    @login_required
    @admin_required
    def late_cancellations():
        """Lifetime late-cancellation counts per agent."""
        return api_success(data={'agents': get_late_cancellation_counts()})
