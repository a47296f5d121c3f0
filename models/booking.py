"""
Booking engine entry points.

Re-exports the public operations from the split modules so routes and CLI
commands import from one place:
- booking_create.py: conflict-safe creation
- booking_lifecycle.py: status transitions and amendment
- occupancy.py: seating and session close
- booking_availability.py: table, game and slot availability
- booking_lookup.py: guest self-service lookup
- booking_queries.py: staff lists, search, counters and turnover risks

Every operation decorated with booking_action returns
{'success': True, 'data': ...} or {'success': False, 'error': ..., 'code': ...}.
"""

# Creation
from .booking_create import create_booking

# Lifecycle
from .booking_lifecycle import (
    confirm_booking,
    cancel_booking,
    mark_arrived,
    mark_no_show,
    complete_booking,
    update_booking,
)

# Occupancy
from .occupancy import (
    seat_party,
    end_session_and_complete_booking,
    start_walk_in_session,
    list_active_sessions,
)

# Availability
from .booking_availability import (
    check_table_availability,
    check_game_availability,
    get_available_tables,
    get_time_slots,
)

# Lookup
from .booking_lookup import (
    lookup_booking,
    cancel_guest_booking,
)

# Queries
from .booking_crud import get_booking_by_id
from .booking_queries import (
    get_bookings_for_date,
    get_bookings_for_date_range,
    get_todays_booking_stats,
    get_no_show_candidates,
    build_booking_filters,
    search_bookings,
    get_bookings_for_export,
    get_guest_booking_history,
    get_turnover_risks,
)
from .booking_modification import get_booking_modifications

__all__ = [
    'create_booking',
    'confirm_booking',
    'cancel_booking',
    'mark_arrived',
    'mark_no_show',
    'complete_booking',
    'update_booking',
    'seat_party',
    'end_session_and_complete_booking',
    'start_walk_in_session',
    'list_active_sessions',
    'check_table_availability',
    'check_game_availability',
    'get_available_tables',
    'get_time_slots',
    'lookup_booking',
    'cancel_guest_booking',
    'get_booking_by_id',
    'get_bookings_for_date',
    'get_bookings_for_date_range',
    'get_todays_booking_stats',
    'get_no_show_candidates',
    'build_booking_filters',
    'search_bookings',
    'get_bookings_for_export',
    'get_guest_booking_history',
    'get_turnover_risks',
    'get_booking_modifications',
]
