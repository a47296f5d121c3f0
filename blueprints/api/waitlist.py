"""
Waitlist API routes.
Endpoints for managing guests waiting on a full date or time.
"""

import logging
from flask import request
from flask_login import login_required

from models.booking_settings import get_or_create_booking_settings
from models.waitlist import (
    add_to_waitlist,
    get_waitlist,
    get_waitlist_entry,
    update_waitlist_status,
    expire_old_entries,
)
from utils.api_response import api_success, api_error, get_json_object
from utils.datetime_helpers import get_today, parse_date
from utils.decorators import venue_access_required
from utils.messages import MESSAGES
from utils.results import ErrorKind

logger = logging.getLogger(__name__)


def register_routes(bp):
    """Register waitlist routes on the blueprint."""

    @bp.route('/venues/<int:venue_id>/waitlist', methods=['GET'])
    @login_required
    @venue_access_required
    def list_waitlist(venue_id):
        """
        Get waitlist entries for a date.

        Query params:
            date: Date (YYYY-MM-DD), defaults to the venue's today
            include_all: If 'true', include closed entries

        Returns:
            JSON list of entries
        """
        settings = get_or_create_booking_settings(venue_id)
        requested = request.args.get('date')
        day = parse_date(requested) if requested else get_today(settings.get('timezone'))
        if day is None:
            return api_error(MESSAGES['date_invalid'], code=ErrorKind.VALIDATION)
        include_all = request.args.get('include_all', '').lower() == 'true'

        entries = get_waitlist(venue_id, day.isoformat(), include_all=include_all)
        return api_success(
            data=entries,
            count=len([e for e in entries if e['status'] == 'waiting'])
        )

    @bp.route('/venues/<int:venue_id>/waitlist', methods=['POST'])
    @login_required
    @venue_access_required
    def create_waitlist_entry(venue_id):
        """
        Add a guest to the waitlist.

        Request body (JSON):
            guest_name, guest_email / guest_phone, requested_date,
            party_size, requested_time (optional), game_id (optional), notes
        """
        data = get_json_object()
        settings = get_or_create_booking_settings(venue_id)
        try:
            entry_id = add_to_waitlist(venue_id, data, today=get_today(settings.get('timezone')))
        except ValueError as e:
            return api_error(str(e), code=ErrorKind.VALIDATION)

        logger.info('Waitlist entry %s added for venue %s', entry_id, venue_id)
        return api_success(
            data=get_waitlist_entry(entry_id),
            message=MESSAGES['waitlist_added'],
            status=201
        )

    @bp.route('/waitlist/<int:entry_id>/status', methods=['POST'])
    @login_required
    @venue_access_required
    def change_waitlist_status(entry_id):
        """
        Update a waitlist entry's status.

        Request body (JSON):
            status: waiting, notified, converted, cancelled or expired
            booking_id: Booking created for the guest (optional)
        """
        data = get_json_object()
        try:
            update_waitlist_status(entry_id, data.get('status'), data.get('booking_id'))
        except ValueError as e:
            return api_error(str(e), code=ErrorKind.VALIDATION)
        return api_success(data=get_waitlist_entry(entry_id))

    @bp.route('/venues/<int:venue_id>/waitlist/expire', methods=['POST'])
    @login_required
    @venue_access_required
    def expire_waitlist(venue_id):
        """Expire open entries whose date has passed."""
        settings = get_or_create_booking_settings(venue_id)
        count = expire_old_entries(venue_id, get_today(settings.get('timezone')))
        return api_success(
            data={'expired': count},
            message=MESSAGES['waitlist_expired'].format(count=count)
        )
