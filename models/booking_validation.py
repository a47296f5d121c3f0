"""
Booking request validation.

validate_booking_params() checks a creation request against the venue policy
and returns every problem it finds, in a fixed order. Callers surface the
first one so the reported error is deterministic.
"""

from datetime import datetime, timedelta

from utils.datetime_helpers import (
    MINUTES_PER_DAY, combine, minutes_until, normalize_time, parse_date, time_to_minutes
)
from utils.messages import MESSAGES
from utils.validators import parse_positive_int, sanitize_input, validate_email, validate_phone


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def resolve_end_time(start_time: str, end_time=None, duration_minutes=None):
    """
    End time for a normalized start time.

    An explicit end time wins over a duration.

    Returns:
        HH:MM string, or None when it cannot be derived or falls past midnight
    """
    if not _blank(end_time):
        return normalize_time(end_time)

    duration = parse_positive_int(duration_minutes)
    if duration is None:
        return None

    end_minutes = time_to_minutes(start_time) + duration
    if end_minutes >= MINUTES_PER_DAY:
        return None
    return f'{end_minutes // 60:02d}:{end_minutes % 60:02d}'


def validate_booking_params(params: dict, settings: dict, now: datetime) -> list:
    """
    Validate a booking creation request.

    Args:
        params: Request fields (venue_id, table_id, guest_name, guest_email,
            guest_phone, booking_date, start_time, end_time,
            duration_minutes, party_size)
        settings: Venue booking settings
        now: Current moment in the venue's timezone

    Returns:
        Ordered list of error messages (empty if valid)
    """
    errors = []

    # Required fields
    required = (
        ('venue_id', 'venue_required'),
        ('table_id', 'table_required'),
        ('guest_name', 'guest_name_required'),
        ('booking_date', 'date_required'),
        ('start_time', 'start_time_required'),
    )
    for field, message_key in required:
        if _blank(params.get(field)):
            errors.append(MESSAGES[message_key])

    has_end_time = not _blank(params.get('end_time'))
    has_duration = not _blank(params.get('duration_minutes'))
    if not has_end_time and not has_duration:
        errors.append(MESSAGES['duration_required'])

    # Numbers
    if _blank(params.get('party_size')):
        errors.append(MESSAGES['party_size_required'])
    elif parse_positive_int(params.get('party_size')) is None:
        errors.append(MESSAGES['party_size_invalid'])

    if has_duration and not has_end_time and parse_positive_int(params.get('duration_minutes')) is None:
        errors.append(MESSAGES['duration_invalid'])

    # Contact
    email = sanitize_input(params.get('guest_email')) or ''
    phone = sanitize_input(params.get('guest_phone')) or ''

    if not email and not phone:
        errors.append(MESSAGES['contact_required'])
    if settings.get('require_email') and not email:
        errors.append(MESSAGES['email_required'])
    if settings.get('require_phone') and not phone:
        errors.append(MESSAGES['phone_required'])
    if email and not validate_email(email):
        errors.append(MESSAGES['email_invalid'])
    if phone and not validate_phone(phone):
        errors.append(MESSAGES['phone_invalid'])

    # Date window
    booking_date = None
    if not _blank(params.get('booking_date')):
        booking_date = parse_date(params.get('booking_date'))
        today = now.date()
        if booking_date is None:
            errors.append(MESSAGES['date_invalid'])
        elif booking_date < today:
            errors.append(MESSAGES['date_past'])
            booking_date = None
        elif booking_date > today + timedelta(days=settings['max_advance_days']):
            errors.append(MESSAGES['date_too_far'].format(days=settings['max_advance_days']))

    # Times
    start_time = None
    if not _blank(params.get('start_time')):
        start_time = normalize_time(params.get('start_time'))
        if start_time is None:
            errors.append(MESSAGES['start_time_invalid'])

    end_time_valid = True
    if has_end_time and normalize_time(params.get('end_time')) is None:
        errors.append(MESSAGES['end_time_invalid'])
        end_time_valid = False

    # Same-day notice
    if booking_date is not None and start_time and booking_date == now.date():
        start = combine(booking_date, start_time, now.tzinfo)
        minutes_ahead = minutes_until(start, now)
        if minutes_ahead <= 0:
            errors.append(MESSAGES['start_time_past'])
        elif minutes_ahead < settings['min_advance_hours'] * 60:
            errors.append(MESSAGES['notice_required'].format(hours=settings['min_advance_hours']))

    # End after start
    if start_time and end_time_valid and (has_end_time or parse_positive_int(params.get('duration_minutes'))):
        end_time = resolve_end_time(start_time, params.get('end_time'), params.get('duration_minutes'))
        if end_time is None or time_to_minutes(end_time) <= time_to_minutes(start_time):
            errors.append(MESSAGES['end_before_start'])

    return errors
