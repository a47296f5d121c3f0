"""
Confirmation code generation.
Short, human-readable booking identifiers guests can read over the phone.
"""

import logging
import secrets

from database import get_db

logger = logging.getLogger(__name__)

# Excludes I, O, 0 and 1
CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'
CODE_LENGTH = 6


def generate_confirmation_code() -> str:
    """Random code of CODE_LENGTH characters from CODE_ALPHABET."""
    return ''.join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_LENGTH))


def confirmation_code_exists(code: str) -> bool:
    """True if any booking already uses this code."""
    db = get_db()
    row = db.execute(
        'SELECT 1 FROM bookings WHERE confirmation_code = ? LIMIT 1', (code,)
    ).fetchone()
    return row is not None


def generate_unique_confirmation_code(max_attempts: int = 5) -> str:
    """
    Generate a code not used by any existing booking.

    After max_attempts collisions the last candidate is returned anyway; the
    UNIQUE constraint on bookings.confirmation_code rejects it at insert time
    and the insert retry draws a new one.

    Args:
        max_attempts: Number of candidates to try

    Returns:
        Confirmation code
    """
    code = generate_confirmation_code()
    for _ in range(max_attempts - 1):
        if not confirmation_code_exists(code):
            return code
        code = generate_confirmation_code()

    if confirmation_code_exists(code):
        logger.warning('Confirmation code collision not resolved after %d attempts', max_attempts)
    return code
