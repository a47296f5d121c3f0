"""
Centralized user-facing messages.
All guest and staff facing text for the booking engine in one place.
"""

MESSAGES = {
    # Generic
    'unknown_error': 'Something went wrong. Please try again.',
    'invalid_credentials': 'Invalid username or password.',
    'account_disabled': 'This account has been disabled.',
    'login_success': 'Welcome back, {name}.',
    'logout_success': 'You have been logged out.',
    'not_found': 'The requested resource was not found.',
    'forbidden': 'You do not have permission to access this resource.',

    # Venue / settings
    'venue_not_found': 'Venue not found.',
    'venue_forbidden': 'You do not have permission to update this venue.',
    'bookings_disabled': 'Online bookings are currently disabled for this venue.',
    'settings_updated': 'Booking settings updated.',
    'hours_updated': 'Operating hours updated.',
    'hours_invalid_day': 'Day of week must be between 0 (Sunday) and 6 (Saturday).',
    'hours_invalid_time': 'Opening and closing times must use HH:MM.',
    'hours_close_before_open': 'Closing time must be after opening time.',

    # Validation
    'venue_required': 'Venue ID is required',
    'table_required': 'Table selection is required',
    'guest_name_required': 'Guest name is required',
    'date_required': 'Booking date is required',
    'start_time_required': 'Start time is required',
    'duration_required': 'Duration or end time is required',
    'party_size_required': 'Party size is required',
    'party_size_invalid': 'Party size must be a positive whole number',
    'duration_invalid': 'Duration must be a positive whole number of minutes',
    'contact_required': 'At least one contact method (email or phone) is required',
    'email_required': 'An email address is required for bookings at this venue',
    'phone_required': 'A phone number is required for bookings at this venue',
    'email_invalid': 'Invalid email address format',
    'phone_invalid': 'Invalid phone number format',
    'date_invalid': 'Invalid date format. Use YYYY-MM-DD',
    'date_past': 'Booking date cannot be in the past',
    'date_too_far': 'Bookings can only be made up to {days} days in advance',
    'start_time_invalid': 'Invalid start time format. Use HH:MM',
    'end_time_invalid': 'Invalid end time format. Use HH:MM',
    'start_time_past': 'Start time cannot be in the past',
    'notice_required': 'Bookings require at least {hours} hour(s) notice',
    'end_before_start': 'End time must be after start time',
    'guest_name_empty': 'Guest name cannot be empty.',
    'no_updates': 'No valid updates provided.',
    'json_object_required': 'Request body must be a JSON object.',

    # Resources
    'table_not_found': 'Table not found.',
    'table_unavailable_for_booking': 'This table is not currently available for booking.',
    'table_wrong_venue': 'Table does not belong to the specified venue.',
    'table_capacity': (
        'This table can accommodate up to {capacity} guests. '
        'Please choose a larger table or reduce your party size.'
    ),
    'game_not_found': 'The selected game was not found.',
    'game_wrong_venue': 'This game is not available at the selected venue.',

    # Availability
    'table_conflict': 'This table is no longer available for the selected time. Please choose another slot.',
    'table_conflict_detail': ' Conflicting booking: {guest_name} ({start_time}-{end_time})',
    'game_exhausted': (
        'Sorry, all {total} copies of "{title}" are reserved for this time slot. '
        '{reserved} {noun} already booked.'
    ),
    'amend_conflict': 'The new time conflicts with another booking. Please choose a different time slot.',
    'amend_game_exhausted': 'All copies of "{title}" are reserved for this time slot.',
    'create_failed': 'Failed to create booking. Please try again.',
    'booking_created': 'Booking created.',

    # Lifecycle
    'booking_not_found': 'Booking not found.',
    'invalid_transition': 'Cannot {action} a booking that is {status}.',
    'already_cancelled': 'This booking has already been cancelled.',
    'already_completed': 'This booking has already been completed.',
    'already_no_show': 'This booking has already been marked as a no-show.',
    'already_seated': 'This booking has already been seated.',
    'not_amendable': (
        'Cannot update a booking that is {status}. '
        'Only pending and confirmed bookings can be modified.'
    ),
    'too_early_no_show': (
        'Cannot mark as no-show until {grace} minutes after booking time. '
        '{remaining} minute(s) remaining.'
    ),
    'invalid_actor': 'Cancellation must be requested by the guest or the venue.',

    # Occupancy
    'seat_requires_confirmation': 'This booking must be confirmed before seating. Please confirm the booking first.',
    'seat_no_table': 'This booking has no table assigned. Please assign a table before seating.',
    'seat_table_missing': 'The assigned table was not found.',
    'seat_table_inactive': 'Table "{label}" is not currently active. Please assign a different table.',
    'early_seating': 'Early seating: This booking is scheduled for {time} ({minutes} minutes from now).',
    'session_not_found': 'Session not found.',
    'session_already_ended': 'Session has already ended.',
    'turnover_high': (
        "Table {table} may not be ready for {guest}'s party at {time}. "
        'Current session started at {started} and may run over.'
    ),
    'turnover_medium': "Table {table} has a session that might extend into {guest}'s {time} booking.",
    'turnover_low': 'Keep an eye on Table {table}: booking at {time}, session has been active since {started}.',

    # Booking search
    'filter_status_invalid': 'Unknown booking status: {status}',
    'filter_sort_invalid': 'Bookings can be sorted by {fields}.',
    'filter_direction_invalid': 'Sort direction must be asc or desc.',
    'filter_table_invalid': 'Table filter must be a table ID.',
    'filter_limit_invalid': 'Page size must be between 1 and {max_limit}.',
    'filter_cursor_invalid': 'Invalid page cursor.',
    'filter_range_invalid': 'End date must not be before start date.',

    # Lookup
    'lookup_code_required': 'Please enter your confirmation code.',
    'lookup_email_required': 'Please enter your email address.',
    'lookup_rate_limited': 'Too many lookup attempts. Please try again in {minutes} minutes.',
    'lookup_not_found': 'Reservation not found. Please check your confirmation code and email address.',

    # Waitlist
    'waitlist_not_found': 'Waitlist entry not found.',
    'waitlist_invalid_status': 'Invalid waitlist status.',
    'waitlist_added': 'Added to the waitlist.',
    'waitlist_expired': '{count} waitlist entries expired.',
}
