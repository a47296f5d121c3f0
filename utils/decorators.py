"""
Route decorators for authorization.
Staff API routes may only touch venues the logged-in user owns.
"""

from functools import wraps
from flask import g
from flask_login import login_required, current_user

from utils.api_response import api_error
from utils.messages import MESSAGES
from utils.results import ErrorKind


def venue_access_required(func):
    """
    Decorator to require ownership of the venue a route acts on.

    The venue is taken from the route's venue_id argument, or resolved from
    booking_id / session_id. The resolved venue is stored on g.venue.

    Usage:
        @bp.route('/venues/<int:venue_id>/bookings')
        @login_required
        @venue_access_required
        def list_bookings(venue_id):
            ...
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        from models.venue import get_venue_by_id

        venue_id = kwargs.get('venue_id')
        if venue_id is None:
            venue_id = _venue_for_resource(kwargs)
        if venue_id is None:
            return api_error(MESSAGES['not_found'], status=404, code=ErrorKind.NOT_FOUND)

        venue = get_venue_by_id(venue_id)
        if not venue:
            return api_error(MESSAGES['venue_not_found'], status=404, code=ErrorKind.NOT_FOUND)
        if venue['owner_id'] != current_user.id:
            return api_error(MESSAGES['forbidden'], status=403, code=ErrorKind.UNAUTHORIZED)

        g.venue = venue
        return func(*args, **kwargs)
    return wrapper


def _venue_for_resource(kwargs):
    """Venue ID owning the booking, session or waitlist entry in the URL."""
    from database import get_db

    lookups = (
        ('booking_id', 'SELECT venue_id FROM bookings WHERE id = ?'),
        ('session_id', 'SELECT venue_id FROM sessions WHERE id = ?'),
        ('entry_id', 'SELECT venue_id FROM waitlist WHERE id = ?'),
    )
    for key, query in lookups:
        if key in kwargs:
            row = get_db().execute(query, (kwargs[key],)).fetchone()
            return row['venue_id'] if row else None
    return None


# Re-export login_required for convenience
__all__ = ['login_required', 'venue_access_required']
