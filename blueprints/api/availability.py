"""
Availability API routes.
Slot grid, free tables for a window, and game copy availability.
"""

from flask import request
from flask_login import login_required

from models.booking import get_time_slots, get_available_tables, check_game_availability
from models.venue import get_game_by_id
from utils.api_response import api_success, api_error, api_result
from utils.datetime_helpers import normalize_time, parse_date, time_to_minutes
from utils.messages import MESSAGES
from utils.results import BookingError, ErrorKind, HTTP_STATUS
from utils.decorators import venue_access_required


def register_routes(bp):
    """Register availability routes on the blueprint."""

    @bp.route('/venues/<int:venue_id>/availability/slots', methods=['GET'])
    @login_required
    @venue_access_required
    def slots(venue_id):
        """
        Bookable start times for a date.

        Query params:
            date: Date (YYYY-MM-DD)
            party_size: Number of guests
            duration: Visit length in minutes (optional)
        """
        return api_result(get_time_slots(
            venue_id,
            request.args.get('date'),
            request.args.get('party_size'),
            duration_minutes=request.args.get('duration')
        ))

    @bp.route('/venues/<int:venue_id>/availability/tables', methods=['GET'])
    @login_required
    @venue_access_required
    def tables(venue_id):
        """
        Tables free for a window, best fit first.

        Query params:
            date, start_time, end_time, party_size
        """
        return api_result(get_available_tables(
            venue_id,
            request.args.get('date'),
            request.args.get('start_time'),
            request.args.get('end_time'),
            request.args.get('party_size')
        ))

    @bp.route('/venues/<int:venue_id>/games/<int:game_id>/availability', methods=['GET'])
    @login_required
    @venue_access_required
    def game_availability(venue_id, game_id):
        """
        Copies of a game free for a window.

        Query params:
            date, start_time, end_time
        """
        game = get_game_by_id(game_id)
        if not game or game['venue_id'] != venue_id:
            return api_error(MESSAGES['game_not_found'], status=404, code=ErrorKind.NOT_FOUND)

        day = parse_date(request.args.get('date'))
        start = normalize_time(request.args.get('start_time') or '')
        end = normalize_time(request.args.get('end_time') or '')
        if day is None:
            return api_error(MESSAGES['date_invalid'], code=ErrorKind.VALIDATION)
        if not start or not end:
            return api_error(MESSAGES['start_time_invalid'], code=ErrorKind.VALIDATION)
        if time_to_minutes(end) <= time_to_minutes(start):
            return api_error(MESSAGES['end_before_start'], code=ErrorKind.VALIDATION)

        try:
            availability = check_game_availability(game_id, day, start, end)
        except BookingError as e:
            return api_error(e.message, status=HTTP_STATUS[e.code], code=e.code)
        return api_success(data=availability)
