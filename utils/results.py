"""
Tagged operation results for the booking engine.

Every public engine operation returns one of:

    {'success': True, 'data': ..., 'warning': '...'}
    {'success': False, 'error': 'message', 'code': 'CONFLICT'}

Engine internals raise BookingError; the booking_action decorator turns it
(and anything unexpected) into the tagged shape so nothing escapes.
"""

import logging
from functools import wraps
from typing import Any, Optional

from flask import g

from utils.messages import MESSAGES

logger = logging.getLogger(__name__)


class ErrorKind:
    """Error codes carried by failed results."""

    VALIDATION = 'VALIDATION'
    NOT_FOUND = 'NOT_FOUND'
    CONFLICT = 'CONFLICT'
    CAPACITY = 'CAPACITY'
    INVALID_TRANSITION = 'INVALID_TRANSITION'
    TOO_EARLY = 'TOO_EARLY'
    UNAUTHORIZED = 'UNAUTHORIZED'
    UNKNOWN = 'UNKNOWN'


# HTTP status used when a failed result is sent over the API
HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.CAPACITY: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_TRANSITION: 409,
    ErrorKind.TOO_EARLY: 409,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.UNKNOWN: 500,
}


class BookingError(Exception):
    """Expected business-rule failure with a user-facing message."""

    def __init__(self, message: str, code: str = ErrorKind.VALIDATION):
        super().__init__(message)
        self.message = message
        self.code = code


def success_result(data: Any = None, warning: Optional[str] = None) -> dict:
    """Build a successful result."""
    result = {'success': True, 'data': data}
    if warning:
        result['warning'] = warning
    return result


def error_result(message: str, code: str = ErrorKind.UNKNOWN) -> dict:
    """Build a failed result."""
    return {'success': False, 'error': message, 'code': code}


def booking_action(unknown_message: Optional[str] = None):
    """
    Decorator that makes an engine operation return a tagged result.

    The wrapped function returns its payload (or a ready result dict) and
    raises BookingError for business failures. Unexpected exceptions are
    logged with traceback, the connection is rolled back, and the caller
    gets a generic UNKNOWN result.

    Usage:
        @booking_action(unknown_message=MESSAGES['create_failed'])
        def create_booking(params):
            ...

    Args:
        unknown_message: Message for UNKNOWN failures (defaults to a generic one)

    Returns:
        Decorator function
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                outcome = func(*args, **kwargs)
            except BookingError as e:
                return error_result(e.message, e.code)
            except Exception:
                logger.error('Unexpected failure in %s', func.__name__, exc_info=True)
                db = g.get('db')
                if db is not None:
                    db.rollback()
                return error_result(unknown_message or MESSAGES['unknown_error'], ErrorKind.UNKNOWN)

            if isinstance(outcome, dict) and 'success' in outcome:
                return outcome
            return success_result(outcome)
        return wrapper
    return decorator
