"""
View invalidation hook.

Mutating booking operations signal which read views went stale (the staff
booking list, the live session list, a venue's public booking page).
Listeners are registered per application; a failing listener is logged and
never fails the operation that triggered it.
"""

import logging
from flask import current_app

logger = logging.getLogger(__name__)

BOOKINGS_VIEW = 'bookings'
SESSIONS_VIEW = 'sessions'


def booking_page_view(venue_slug: str) -> str:
    """View key for a venue's public booking page."""
    return f'booking_page:{venue_slug}'


def register_view_listener(app, listener) -> None:
    """
    Register a callable receiving the tuple of stale view keys.

    Args:
        app: Flask application
        listener: Callable(keys: tuple) -> None
    """
    app.extensions.setdefault('view_invalidation', []).append(listener)


def invalidate_views(*keys: str) -> None:
    """Signal stale views to every registered listener."""
    listeners = current_app.extensions.get('view_invalidation', [])
    logger.debug('Invalidating views: %s', ', '.join(keys))

    for listener in listeners:
        try:
            listener(keys)
        except Exception:
            logger.warning('View invalidation listener failed for %s', keys, exc_info=True)
