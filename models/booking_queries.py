"""
Booking queries.
Read-only lists, searches and counters for the staff dashboard.
"""

from datetime import datetime, timedelta
from typing import Optional

from database import get_db
from models.booking_settings import get_or_create_booking_settings
from models.booking_state import BOOKING_STATUSES, NON_TERMINAL_STATUSES
from models.session import get_active_sessions
from utils.datetime_helpers import combine, get_now, parse_date, timestamp
from utils.messages import MESSAGES
from utils.validators import parse_positive_int, sanitize_input


_LIST_QUERY = '''
    SELECT b.*, t.label AS table_label, t.capacity AS table_capacity,
           g.title AS game_title
    FROM bookings b
    LEFT JOIN venue_tables t ON b.table_id = t.id
    LEFT JOIN games g ON b.game_id = g.id
'''


def get_bookings_for_date(venue_id: int, booking_date: str, statuses: tuple = None) -> list:
    """
    Get a venue's bookings for one date ordered by start time.

    Args:
        venue_id: Venue ID
        booking_date: Date string (YYYY-MM-DD)
        statuses: Optional status filter

    Returns:
        List of booking dicts with table label and game title
    """
    query = _LIST_QUERY + ' WHERE b.venue_id = ? AND b.booking_date = ?'
    params = [venue_id, booking_date]

    if statuses:
        query += f' AND b.status IN ({", ".join("?" for _ in statuses)})'
        params.extend(statuses)

    query += ' ORDER BY b.start_time, t.label'

    db = get_db()
    return [dict(row) for row in db.execute(query, params).fetchall()]


def get_bookings_for_date_range(venue_id: int, start_date: str, end_date: str) -> list:
    """
    Get a venue's bookings between two dates (inclusive).

    Returns:
        List of booking dicts ordered by date and start time
    """
    db = get_db()
    rows = db.execute(_LIST_QUERY + '''
        WHERE b.venue_id = ? AND b.booking_date BETWEEN ? AND ?
        ORDER BY b.booking_date, b.start_time, t.label
    ''', (venue_id, start_date, end_date)).fetchall()
    return [dict(row) for row in rows]


def get_todays_booking_stats(venue_id: int, today: str) -> dict:
    """
    Count a day's bookings by status.

    Args:
        venue_id: Venue ID
        today: Date string (YYYY-MM-DD)

    Returns:
        Dict with total, confirmed, arrived, seated, completed, no_show,
        cancelled (both cancellation kinds) and pending
    """
    db = get_db()
    rows = db.execute('''
        SELECT status, COUNT(*) AS count
        FROM bookings
        WHERE venue_id = ? AND booking_date = ?
        GROUP BY status
    ''', (venue_id, today)).fetchall()

    stats = {
        'total': 0, 'pending': 0, 'confirmed': 0, 'arrived': 0, 'seated': 0,
        'completed': 0, 'no_show': 0, 'cancelled': 0,
    }
    for row in rows:
        key = 'cancelled' if row['status'].startswith('cancelled') else row['status']
        stats[key] = stats.get(key, 0) + row['count']
        stats['total'] += row['count']
    return stats


def get_no_show_candidates(venue_id: int, now: datetime = None) -> list:
    """
    Today's confirmed bookings whose start plus grace period has passed.

    Args:
        venue_id: Venue ID
        now: Current moment (defaults to now in the venue timezone)

    Returns:
        List of booking dicts with minutes_late added
    """
    settings = get_or_create_booking_settings(venue_id)
    if now is None:
        now = get_now(settings.get('timezone'))
    grace = timedelta(minutes=settings['no_show_grace_minutes'])

    candidates = []
    for booking in get_bookings_for_date(venue_id, now.date().isoformat(), ('confirmed',)):
        start = combine(booking['booking_date'], booking['start_time'], now.tzinfo)
        if now >= start + grace:
            booking['minutes_late'] = int((now - start).total_seconds() // 60)
            candidates.append(booking)
    return candidates


# =============================================================================
# FILTERED SEARCH
# =============================================================================

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100

# Sort field -> ORDER BY columns; None takes the requested direction
_SORT_COLUMNS = {
    'booking_date': (('b.booking_date', None), ('b.start_time', None)),
    'start_time': (('b.booking_date', None), ('b.start_time', None)),
    'guest_name': (('b.guest_name', None), ('b.booking_date', 'DESC'), ('b.start_time', 'DESC')),
    'status': (('b.status', None), ('b.booking_date', 'DESC'), ('b.start_time', 'DESC')),
    'created_at': (('b.created_at', None),),
}

_TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _parse_offset(value) -> Optional[int]:
    if value is None or value == '':
        return 0
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    return None


def build_booking_filters(args, today) -> tuple:
    """
    Validate raw list filters into a filters dict.

    Without a start date, bookings before today are left out unless
    include_historical is set.

    Args:
        args: Mapping of raw values (request.args or a dict). Keys:
            start_date, end_date, status (comma-separated), table_id,
            search, include_historical, sort, dir, limit, cursor
        today: Venue's current date

    Returns:
        tuple: (filters dict, None) or (None, error message)
    """
    filters = {
        'start_date': None,
        'end_date': None,
        'statuses': (),
        'table_id': None,
        'search': sanitize_input(args.get('search'), 100),
        'sort': args.get('sort') or 'booking_date',
        'direction': (args.get('dir') or 'desc').lower(),
        'limit': DEFAULT_PAGE_SIZE,
        'offset': _parse_offset(args.get('cursor')),
    }

    for key in ('start_date', 'end_date'):
        if args.get(key):
            day = parse_date(args.get(key))
            if day is None:
                return None, MESSAGES['date_invalid']
            filters[key] = day.isoformat()

    include_historical = str(args.get('include_historical') or '').lower() in _TRUE_VALUES
    if not filters['start_date'] and not include_historical:
        filters['start_date'] = today.isoformat()

    if filters['start_date'] and filters['end_date'] and filters['end_date'] < filters['start_date']:
        return None, MESSAGES['filter_range_invalid']

    if args.get('status'):
        statuses = tuple(s.strip() for s in str(args.get('status')).split(',') if s.strip())
        for status in statuses:
            if status not in BOOKING_STATUSES:
                return None, MESSAGES['filter_status_invalid'].format(status=status)
        filters['statuses'] = statuses

    if args.get('table_id'):
        filters['table_id'] = parse_positive_int(args.get('table_id'))
        if filters['table_id'] is None:
            return None, MESSAGES['filter_table_invalid']

    if filters['sort'] not in _SORT_COLUMNS:
        return None, MESSAGES['filter_sort_invalid'].format(fields=', '.join(_SORT_COLUMNS))
    if filters['direction'] not in ('asc', 'desc'):
        return None, MESSAGES['filter_direction_invalid']

    if args.get('limit'):
        limit = parse_positive_int(args.get('limit'))
        if limit is None or limit > MAX_PAGE_SIZE:
            return None, MESSAGES['filter_limit_invalid'].format(max_limit=MAX_PAGE_SIZE)
        filters['limit'] = limit

    if filters['offset'] is None:
        return None, MESSAGES['filter_cursor_invalid']

    return filters, None


def _filter_clause(venue_id: int, filters: dict) -> tuple:
    clauses = ['b.venue_id = ?']
    params = [venue_id]

    if filters.get('start_date'):
        clauses.append('b.booking_date >= ?')
        params.append(filters['start_date'])
    if filters.get('end_date'):
        clauses.append('b.booking_date <= ?')
        params.append(filters['end_date'])
    if filters.get('statuses'):
        clauses.append(f'b.status IN ({", ".join("?" for _ in filters["statuses"])})')
        params.extend(filters['statuses'])
    if filters.get('table_id'):
        clauses.append('b.table_id = ?')
        params.append(filters['table_id'])
    if filters.get('search'):
        clauses.append('(b.guest_name LIKE ? OR b.guest_email LIKE ? OR b.confirmation_code LIKE ?)')
        term = f'%{filters["search"]}%'
        params.extend([term, term, term])

    return ' WHERE ' + ' AND '.join(clauses), params


def _order_clause(sort: str, direction: str) -> str:
    requested = direction.upper()
    columns = [f'{column} {fixed or requested}' for column, fixed in _SORT_COLUMNS[sort]]
    columns.append(f'b.id {requested}')
    return ' ORDER BY ' + ', '.join(columns)


def search_bookings(venue_id: int, filters: dict) -> dict:
    """
    One page of a venue's bookings matching the filters.

    Args:
        venue_id: Venue ID
        filters: Dict from build_booking_filters

    Returns:
        dict with bookings, total_count and next_cursor (None on the last page)
    """
    where, params = _filter_clause(venue_id, filters)
    limit = filters.get('limit', DEFAULT_PAGE_SIZE)
    offset = filters.get('offset', 0)

    db = get_db()
    total = db.execute(
        'SELECT COUNT(*) FROM bookings b' + where, params
    ).fetchone()[0]

    query = (_LIST_QUERY + where
             + _order_clause(filters.get('sort', 'booking_date'), filters.get('direction', 'desc'))
             + ' LIMIT ? OFFSET ?')
    rows = db.execute(query, params + [limit + 1, offset]).fetchall()

    has_more = len(rows) > limit
    return {
        'bookings': [dict(row) for row in rows[:limit]],
        'total_count': total,
        'next_cursor': str(offset + limit) if has_more else None,
    }


def get_bookings_for_export(venue_id: int, filters: dict) -> list:
    """
    Every booking matching the filters, ordered by date and start time.

    Paging values in the filters are ignored.

    Returns:
        List of booking dicts with table label and game title
    """
    where, params = _filter_clause(venue_id, filters)
    query = _LIST_QUERY + where + _order_clause('booking_date', filters.get('direction', 'desc'))

    db = get_db()
    return [dict(row) for row in db.execute(query, params).fetchall()]


def get_guest_booking_history(venue_id: int, email: str) -> list:
    """
    A guest's bookings at a venue, newest first.

    Args:
        venue_id: Venue ID
        email: Guest email (matched case-insensitively)

    Returns:
        List of booking dicts, empty for a blank email
    """
    email = sanitize_input(email) or ''
    if not email:
        return []

    db = get_db()
    rows = db.execute(_LIST_QUERY + '''
        WHERE b.venue_id = ? AND LOWER(b.guest_email) = LOWER(?)
        ORDER BY b.booking_date DESC, b.start_time DESC, b.id DESC
    ''', (venue_id, email)).fetchall()
    return [dict(row) for row in rows]


# =============================================================================
# TURNOVER RISKS
# =============================================================================

# Assumed length of a session whose game has no play time
DEFAULT_SESSION_MINUTES = 120
TURNOVER_LOOKAHEAD = timedelta(hours=2)
STALE_SESSION_AGE = timedelta(hours=4)

# Buffer below which a risk gets each severity; 60 minutes or more is no risk
TURNOVER_THRESHOLDS = (('high', 15), ('medium', 30), ('low', 60))
_SEVERITY_ORDER = {severity: rank for rank, (severity, _) in enumerate(TURNOVER_THRESHOLDS)}


def _session_start(value: str, now: datetime) -> datetime:
    started = datetime.fromisoformat(value)
    if started.tzinfo and now.tzinfo:
        return started.astimezone(now.tzinfo)
    return started.replace(tzinfo=now.tzinfo)


def _risk_severity(buffer_minutes: int) -> Optional[str]:
    for severity, below in TURNOVER_THRESHOLDS:
        if buffer_minutes < below:
            return severity
    return None


def get_turnover_risks(venue_id: int, now: datetime = None) -> list:
    """
    Open sessions likely to run into the next booking on their table.

    A session is expected to last its game's max_time_minutes, or
    DEFAULT_SESSION_MINUTES without one. Each live booking starting in the
    next two hours on a table with an open session is compared with that
    estimated end; less than 60 minutes between them is a risk. Sessions
    open for more than four hours are treated as stale and skipped.

    Args:
        venue_id: Venue ID
        now: Current moment (defaults to now in the venue timezone)

    Returns:
        List of risk dicts, high severity first, then soonest booking first
    """
    settings = get_or_create_booking_settings(venue_id)
    if now is None:
        now = get_now(settings.get('timezone'))

    sessions = []
    for session in get_active_sessions(venue_id):
        started = _session_start(session['started_at'], now)
        if now - started <= STALE_SESSION_AGE:
            sessions.append((session, started))
    if not sessions:
        return []

    upcoming = {}
    for booking in get_bookings_for_date(venue_id, now.date().isoformat(), NON_TERMINAL_STATUSES):
        start = combine(booking['booking_date'], booking['start_time'], now.tzinfo)
        if now <= start <= now + TURNOVER_LOOKAHEAD:
            upcoming.setdefault(booking['table_id'], []).append((booking, start))

    risks = []
    for session, started in sessions:
        duration = session.get('game_max_time_minutes') or DEFAULT_SESSION_MINUTES
        estimated_end = started + timedelta(minutes=duration)

        for booking, start in upcoming.get(session['table_id'], []):
            if booking.get('session_id') == session['id']:
                continue

            buffer_minutes = int((start - estimated_end).total_seconds() // 60)
            severity = _risk_severity(buffer_minutes)
            if severity is None:
                continue

            risks.append({
                'id': f'risk-{session["id"]}-{booking["id"]}',
                'severity': severity,
                'table_id': session['table_id'],
                'table_label': session['table_label'],
                'session_id': session['id'],
                'session_started_at': session['started_at'],
                'session_game_title': session.get('game_title'),
                'estimated_end_time': timestamp(estimated_end),
                'booking_id': booking['id'],
                'booking_start_time': booking['start_time'],
                'guest_name': booking['guest_name'],
                'party_size': booking['party_size'],
                'minutes_until_conflict': round((start - now).total_seconds() / 60),
                'buffer_minutes': buffer_minutes,
                'message': MESSAGES[f'turnover_{severity}'].format(
                    table=session['table_label'],
                    guest=booking['guest_name'],
                    time=booking['start_time'],
                    started=started.strftime('%H:%M'),
                ),
            })

    risks.sort(key=lambda r: (_SEVERITY_ORDER[r['severity']], r['minutes_until_conflict']))
    return risks
