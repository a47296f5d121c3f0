"""
Booking API routes.
Staff endpoints for listing, creating, transitioning and amending bookings.
"""

from flask import request
from flask_login import login_required, current_user

from models.booking import (
    create_booking,
    confirm_booking,
    cancel_booking,
    mark_arrived,
    mark_no_show,
    complete_booking,
    update_booking,
    seat_party,
    get_booking_by_id,
    get_bookings_for_date,
    get_todays_booking_stats,
    get_no_show_candidates,
    get_booking_modifications,
    build_booking_filters,
    search_bookings,
    get_guest_booking_history,
)
from models.booking_settings import get_or_create_booking_settings
from models.booking_state import BOOKING_STATUSES
from utils.api_response import api_success, api_error, api_result, get_json_object
from utils.datetime_helpers import get_today, parse_date
from utils.decorators import venue_access_required
from utils.messages import MESSAGES
from utils.results import ErrorKind


def _venue_today(venue_id: int):
    settings = get_or_create_booking_settings(venue_id)
    return get_today(settings.get('timezone'))


def register_routes(bp):
    """Register booking routes on the blueprint."""

    @bp.route('/venues/<int:venue_id>/bookings', methods=['GET'])
    @login_required
    @venue_access_required
    def list_bookings(venue_id):
        """
        Get a venue's bookings for a date.

        Query params:
            date: Date (YYYY-MM-DD), defaults to the venue's today
            status: Comma-separated status filter (optional)

        Returns:
            JSON list of bookings
        """
        requested = request.args.get('date')
        day = parse_date(requested) if requested else _venue_today(venue_id)
        if day is None:
            return api_error(MESSAGES['date_invalid'], code=ErrorKind.VALIDATION)

        statuses = None
        if request.args.get('status'):
            statuses = tuple(s for s in request.args['status'].split(',') if s in BOOKING_STATUSES)

        bookings = get_bookings_for_date(venue_id, day.isoformat(), statuses)
        return api_success(data=bookings, count=len(bookings))

    @bp.route('/venues/<int:venue_id>/bookings/stats', methods=['GET'])
    @login_required
    @venue_access_required
    def booking_stats(venue_id):
        """Counts by status for a date (defaults to today)."""
        requested = request.args.get('date')
        day = parse_date(requested) if requested else _venue_today(venue_id)
        if day is None:
            return api_error(MESSAGES['date_invalid'], code=ErrorKind.VALIDATION)
        return api_success(data=get_todays_booking_stats(venue_id, day.isoformat()))

    @bp.route('/venues/<int:venue_id>/bookings/no-show-candidates', methods=['GET'])
    @login_required
    @venue_access_required
    def no_show_candidates(venue_id):
        """Confirmed bookings past their grace period."""
        candidates = get_no_show_candidates(venue_id)
        return api_success(data=candidates, count=len(candidates))

    @bp.route('/venues/<int:venue_id>/bookings/search', methods=['GET'])
    @login_required
    @venue_access_required
    def search(venue_id):
        """
        Search a venue's bookings with filters and paging.

        Query params:
            start_date, end_date: Inclusive date range (start defaults to today)
            include_historical: 1 to drop the default start of today
            status: Comma-separated statuses
            table_id: Table ID
            search: Part of the guest name, email or confirmation code
            sort: booking_date, start_time, guest_name, status or created_at
            dir: asc or desc (default desc)
            limit: Page size (default 25, max 100)
            cursor: next_cursor from the previous page

        Returns:
            JSON list of bookings with total_count and next_cursor
        """
        filters, error = build_booking_filters(request.args, _venue_today(venue_id))
        if error:
            return api_error(error, code=ErrorKind.VALIDATION)

        page = search_bookings(venue_id, filters)
        return api_success(
            data=page['bookings'],
            total_count=page['total_count'],
            next_cursor=page['next_cursor']
        )

    @bp.route('/venues/<int:venue_id>/guests/bookings', methods=['GET'])
    @login_required
    @venue_access_required
    def guest_history(venue_id):
        """A guest's bookings at the venue (query param: email)."""
        email = request.args.get('email', '').strip()
        if not email:
            return api_error(MESSAGES['lookup_email_required'], code=ErrorKind.VALIDATION)

        bookings = get_guest_booking_history(venue_id, email)
        return api_success(data=bookings, count=len(bookings))

    @bp.route('/venues/<int:venue_id>/bookings', methods=['POST'])
    @login_required
    @venue_access_required
    def create(venue_id):
        """
        Create a booking on behalf of a guest.

        Request body (JSON):
            table_id, guest_name, guest_email, guest_phone, booking_date,
            start_time, end_time or duration_minutes, party_size,
            game_id (optional), guest_notes, staff_notes,
            source ('phone', 'walk_in' or 'staff'; defaults to 'staff')

        Returns:
            JSON with the new booking (201)
        """
        params = dict(get_json_object())
        params['venue_id'] = venue_id
        if params.get('source') in (None, '', 'online'):
            params['source'] = 'staff'

        result = create_booking(params, user_id=current_user.id)
        return api_result(result, success_status=201, message=MESSAGES['booking_created'])

    @bp.route('/bookings/<int:booking_id>', methods=['GET'])
    @login_required
    @venue_access_required
    def detail(booking_id):
        """Get a single booking."""
        booking = get_booking_by_id(booking_id)
        if not booking:
            return api_error(MESSAGES['booking_not_found'], status=404, code=ErrorKind.NOT_FOUND)
        return api_success(data=booking)

    @bp.route('/bookings/<int:booking_id>', methods=['PATCH'])
    @login_required
    @venue_access_required
    def amend(booking_id):
        """
        Amend a booking.

        Request body (JSON):
            Any of guest_name, guest_email, guest_phone, booking_date,
            start_time, end_time, duration_minutes, table_id, party_size,
            game_id, guest_notes, staff_notes

        Returns:
            JSON with the updated booking
        """
        updates = get_json_object()
        return api_result(update_booking(booking_id, updates, user_id=current_user.id))

    @bp.route('/bookings/<int:booking_id>/confirm', methods=['POST'])
    @login_required
    @venue_access_required
    def confirm(booking_id):
        """Confirm a pending booking."""
        return api_result(confirm_booking(booking_id, user_id=current_user.id))

    @bp.route('/bookings/<int:booking_id>/cancel', methods=['POST'])
    @login_required
    @venue_access_required
    def cancel(booking_id):
        """
        Cancel a booking.

        Request body (JSON, optional):
            actor: 'venue' (default) or 'guest' when cancelling on the guest's behalf
            reason: Cancellation reason
        """
        data = get_json_object()
        return api_result(cancel_booking(
            booking_id,
            actor=data.get('actor') or 'venue',
            reason=data.get('reason'),
            user_id=current_user.id
        ))

    @bp.route('/bookings/<int:booking_id>/arrive', methods=['POST'])
    @login_required
    @venue_access_required
    def arrive(booking_id):
        """Mark the party as arrived."""
        return api_result(mark_arrived(booking_id, user_id=current_user.id))

    @bp.route('/bookings/<int:booking_id>/no-show', methods=['POST'])
    @login_required
    @venue_access_required
    def no_show(booking_id):
        """Mark the booking as a no-show once the grace period has passed."""
        return api_result(mark_no_show(booking_id, user_id=current_user.id))

    @bp.route('/bookings/<int:booking_id>/seat', methods=['POST'])
    @login_required
    @venue_access_required
    def seat(booking_id):
        """Seat the party and open a table session."""
        return api_result(seat_party(booking_id, user_id=current_user.id))

    @bp.route('/bookings/<int:booking_id>/complete', methods=['POST'])
    @login_required
    @venue_access_required
    def complete(booking_id):
        """Complete a seated booking."""
        return api_result(complete_booking(booking_id, user_id=current_user.id))

    @bp.route('/bookings/<int:booking_id>/modifications', methods=['GET'])
    @login_required
    @venue_access_required
    def modifications(booking_id):
        """Modification history for a booking, oldest first."""
        return api_success(data=get_booking_modifications(booking_id))
