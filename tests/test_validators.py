"""
Tests for input validators and date/time helpers.
"""

from datetime import date


class TestEmailValidation:
    """Tests for validate_email."""

    def test_valid_emails(self):
        from utils.validators import validate_email

        assert validate_email('guest@example.com')
        assert validate_email('first.last+tag@cafe.co.uk')
        assert validate_email('  padded@example.com  ')

    def test_invalid_emails(self):
        from utils.validators import validate_email

        assert not validate_email('')
        assert not validate_email(None)
        assert not validate_email('no-at-sign.com')
        assert not validate_email('missing@tld')
        assert not validate_email('two words@example.com')


class TestPhoneValidation:
    """Tests for validate_phone."""

    def test_accepts_common_formats(self):
        from utils.validators import validate_phone

        assert validate_phone('555-123-4567')
        assert validate_phone('(555) 123 4567')
        assert validate_phone('+1 555.123.4567')
        assert validate_phone('1234567')

    def test_rejects_bad_numbers(self):
        from utils.validators import validate_phone

        assert not validate_phone('')
        assert not validate_phone('123456')
        assert not validate_phone('1234567890123456')
        assert not validate_phone('555-CALL-NOW')


class TestPositiveInt:
    """Tests for parse_positive_int."""

    def test_parses_ints_and_digit_strings(self):
        from utils.validators import parse_positive_int

        assert parse_positive_int(4) == 4
        assert parse_positive_int('12') == 12
        assert parse_positive_int(' 3 ') == 3
        assert parse_positive_int(2.0) == 2

    def test_rejects_non_positive_and_fractional(self):
        from utils.validators import parse_positive_int

        assert parse_positive_int(0) is None
        assert parse_positive_int(-2) is None
        assert parse_positive_int('2.5') is None
        assert parse_positive_int(2.5) is None
        assert parse_positive_int(True) is None
        assert parse_positive_int(None) is None
        assert parse_positive_int('four') is None

    def test_rejects_non_ascii_digits(self):
        from utils.validators import parse_positive_int

        assert parse_positive_int('\u00b2') is None
        assert parse_positive_int('\u0663') is None


class TestTimeHelpers:
    """Tests for time parsing and arithmetic."""

    def test_normalize_time(self):
        from utils.datetime_helpers import normalize_time

        assert normalize_time('9:05') == '09:05'
        assert normalize_time('14:30:59') == '14:30'
        assert normalize_time('24:00') is None
        assert normalize_time('9:5') is None
        assert normalize_time('noon') is None

    def test_minutes_round_trip_wraps_midnight(self):
        from utils.datetime_helpers import add_minutes, time_to_minutes

        assert time_to_minutes('01:30') == 90
        assert add_minutes('23:30', 45) == '00:15'

    def test_parse_date_is_strict(self):
        from utils.datetime_helpers import parse_date

        assert parse_date('2030-06-04') == date(2030, 6, 4)
        assert parse_date('2025-02-30') is None
        assert parse_date('2030-6-4') is None
        assert parse_date('06/04/2030') is None
        assert parse_date(None) is None

    def test_day_of_week_starts_on_sunday(self):
        from utils.datetime_helpers import day_of_week

        assert day_of_week(date(2030, 6, 2)) == 0
        assert day_of_week(date(2030, 6, 3)) == 1
        assert day_of_week(date(2030, 6, 8)) == 6
