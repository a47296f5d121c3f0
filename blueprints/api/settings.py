"""
Venue settings API routes.
Booking policy and weekly operating hours.
"""

from flask_login import login_required, current_user

from models.booking_settings import (
    load_booking_settings,
    update_booking_settings,
    get_operating_hours,
    update_operating_hours,
    check_bookings_outside_hours,
)
from utils.api_response import api_success, api_error, api_result, get_json_object
from utils.datetime_helpers import normalize_time
from utils.decorators import venue_access_required
from utils.messages import MESSAGES
from utils.results import ErrorKind


def register_routes(bp):
    """Register settings routes on the blueprint."""

    @bp.route('/venues/<int:venue_id>/settings', methods=['GET'])
    @login_required
    @venue_access_required
    def get_settings(venue_id):
        """Booking settings, created with defaults on first access."""
        return api_result(load_booking_settings(venue_id))

    @bp.route('/venues/<int:venue_id>/settings', methods=['PUT'])
    @login_required
    @venue_access_required
    def put_settings(venue_id):
        """Update booking settings; unknown keys are ignored."""
        updates = get_json_object()
        return api_result(
            update_booking_settings(venue_id, updates, current_user.id),
            message=MESSAGES['settings_updated']
        )

    @bp.route('/venues/<int:venue_id>/hours', methods=['GET'])
    @login_required
    @venue_access_required
    def get_hours(venue_id):
        """Weekly operating hours (Sunday = 0)."""
        return api_success(data=get_operating_hours(venue_id))

    @bp.route('/venues/<int:venue_id>/hours', methods=['PUT'])
    @login_required
    @venue_access_required
    def put_hours(venue_id):
        """
        Replace hours for the given weekdays.

        Request body (JSON):
            hours: List of {day_of_week, open_time, close_time, is_closed}
        """
        data = get_json_object()
        return api_result(
            update_operating_hours(venue_id, data.get('hours'), current_user.id),
            message=MESSAGES['hours_updated']
        )

    @bp.route('/venues/<int:venue_id>/hours/check', methods=['POST'])
    @login_required
    @venue_access_required
    def check_hours(venue_id):
        """
        Upcoming bookings that proposed hours for one weekday would strand.

        Request body (JSON):
            day_of_week, open_time, close_time, is_closed
        """
        data = get_json_object()
        day = data.get('day_of_week')
        if not isinstance(day, int) or isinstance(day, bool) or not 0 <= day <= 6:
            return api_error(MESSAGES['hours_invalid_day'], code=ErrorKind.VALIDATION)

        is_closed = bool(data.get('is_closed'))
        open_time = normalize_time(data.get('open_time') or '')
        close_time = normalize_time(data.get('close_time') or '')
        if not is_closed and (not open_time or not close_time):
            return api_error(MESSAGES['hours_invalid_time'], code=ErrorKind.VALIDATION)

        affected = check_bookings_outside_hours(
            venue_id, day, open_time or '00:00', close_time or '23:59', is_closed
        )
        return api_success(data=affected, count=len(affected))
