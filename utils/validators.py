"""
Input validation helper functions.
Provides validation for common input types.
"""

import re

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_SEPARATORS = re.compile(r'[\s\-().+]')
PHONE_DIGITS = re.compile(r'^\d{7,15}$')


def validate_email(email: str) -> bool:
    """
    Validate email format (local@domain with a dot in the domain).

    Args:
        email: Email address to validate

    Returns:
        True if valid email format
    """
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def validate_phone(phone: str) -> bool:
    """
    Validate phone number format.
    Accepts 7 to 15 digits once spaces, dashes, dots, parentheses and a
    leading plus are removed.

    Args:
        phone: Phone number to validate

    Returns:
        True if valid phone format
    """
    if not phone:
        return False

    cleaned = PHONE_SEPARATORS.sub('', phone)
    return bool(PHONE_DIGITS.match(cleaned))


def parse_positive_int(value):
    """
    Parse a positive whole number from an int or digit string.

    Args:
        value: Raw input value

    Returns:
        int, or None if the value is not a positive whole number
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        return int(value) if value.is_integer() and value > 0 else None
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        parsed = int(value.strip())
        return parsed if parsed > 0 else None
    return None


def sanitize_input(text: str, max_length: int = None) -> str:
    """
    Sanitize free-text input by trimming whitespace and length.

    Args:
        text: Raw input
        max_length: Optional maximum length

    Returns:
        Cleaned string, or None for empty input
    """
    if text is None:
        return None
    cleaned = str(text).strip()
    if not cleaned:
        return None
    if max_length:
        cleaned = cleaned[:max_length]
    return cleaned
