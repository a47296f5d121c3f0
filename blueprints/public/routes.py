"""
Public booking routes.
Anonymous guest endpoints under a venue's slug: venue info, slot search,
online booking, and self-service lookup and cancellation.
"""

from functools import wraps
from flask import Blueprint, request, g

from models.booking import create_booking, get_time_slots, lookup_booking, cancel_guest_booking
from models.booking_lookup import PUBLIC_BOOKING_FIELDS
from models.booking_settings import get_or_create_booking_settings
from models.venue import get_venue_by_slug, get_games_for_venue
from utils.api_response import api_success, api_error, api_result, get_json_object
from utils.messages import MESSAGES
from utils.results import ErrorKind

public_bp = Blueprint('public', __name__)

# Settings a guest may see on the booking page
PUBLIC_SETTING_FIELDS = (
    'bookings_enabled', 'min_advance_hours', 'max_advance_days',
    'default_duration_minutes', 'require_email', 'require_phone',
    'booking_page_message',
)


def venue_from_slug(func):
    """Resolve the venue from the URL slug into g.venue, or 404."""
    @wraps(func)
    def wrapper(slug, *args, **kwargs):
        venue = get_venue_by_slug(slug)
        if not venue:
            return api_error(MESSAGES['venue_not_found'], status=404, code=ErrorKind.NOT_FOUND)
        g.venue = venue
        return func(*args, **kwargs)
    return wrapper


@public_bp.route('/v/<slug>', methods=['GET'])
@venue_from_slug
def venue_info():
    """Venue name, public booking policy and game library."""
    settings = get_or_create_booking_settings(g.venue['id'])
    return api_success(data={
        'name': g.venue['name'],
        'slug': g.venue['slug'],
        'settings': {key: settings[key] for key in PUBLIC_SETTING_FIELDS},
        'games': [
            {'id': game['id'], 'title': game['title']}
            for game in get_games_for_venue(g.venue['id'])
        ],
    })


@public_bp.route('/v/<slug>/slots', methods=['GET'])
@venue_from_slug
def slots():
    """
    Bookable start times for a date.

    Query params:
        date: Date (YYYY-MM-DD)
        party_size: Number of guests
        duration: Visit length in minutes (optional)
    """
    result = get_time_slots(
        g.venue['id'],
        request.args.get('date'),
        request.args.get('party_size'),
        duration_minutes=request.args.get('duration')
    )
    if result['success']:
        # Guests see counts, not which tables are free
        result['data'] = [
            {key: value for key, value in slot.items() if key != 'tables'}
            for slot in result['data']
        ]
    return api_result(result)


@public_bp.route('/v/<slug>/bookings', methods=['POST'])
@venue_from_slug
def book():
    """
    Create an online booking.

    Request body (JSON):
        table_id, guest_name, guest_email, guest_phone, booking_date,
        start_time, duration_minutes or end_time, party_size,
        game_id (optional), guest_notes (optional)

    Returns:
        JSON with the public booking fields and confirmation code (201)
    """
    data = get_json_object()
    params = {
        key: data.get(key) for key in (
            'table_id', 'guest_name', 'guest_email', 'guest_phone',
            'booking_date', 'start_time', 'end_time', 'duration_minutes',
            'party_size', 'game_id', 'guest_notes',
        )
    }
    params['venue_id'] = g.venue['id']
    params['source'] = 'online'

    result = create_booking(params)
    if result['success']:
        result['data'] = {field: result['data'].get(field) for field in PUBLIC_BOOKING_FIELDS}
    return api_result(result, success_status=201, message=MESSAGES['booking_created'])


@public_bp.route('/v/<slug>/lookup', methods=['POST'])
@venue_from_slug
def lookup():
    """
    Find a booking by confirmation code and email.

    Request body (JSON):
        confirmation_code, email
    """
    data = get_json_object()
    return api_result(lookup_booking(
        g.venue['id'], data.get('confirmation_code'), data.get('email')
    ))


@public_bp.route('/v/<slug>/cancel', methods=['POST'])
@venue_from_slug
def cancel():
    """
    Cancel a booking after a code + email match.

    Request body (JSON):
        confirmation_code, email, reason (optional)
    """
    data = get_json_object()
    result = cancel_guest_booking(
        g.venue['id'], data.get('confirmation_code'), data.get('email'), data.get('reason')
    )
    if result['success']:
        result['data'] = {field: result['data'].get(field) for field in PUBLIC_BOOKING_FIELDS}
    return api_result(result)
