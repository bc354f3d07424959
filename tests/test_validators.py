"""
Tests for input validation utilities.
"""

import pytest
from datetime import date

from models.errors import BookingValidationError
from utils.validators import (
    validate_email,
    validate_date_format,
    validate_time_format,
    normalize_booking_window,
    sanitize_input
)


class TestValidateEmail:
    """Tests for email validation."""

    def test_valid_email(self):
        assert validate_email('user@example.com') is True
        assert validate_email('user.name+tag@example.co.uk') is True

    def test_invalid_email(self):
        assert validate_email('') is False
        assert validate_email(None) is False
        assert validate_email('invalid') is False
        assert validate_email('missing@domain') is False


class TestDateTimeFormats:

    def test_date_format(self):
        assert validate_date_format('2024-03-10') is True
        assert validate_date_format('10/03/2024') is False
        assert validate_date_format('2024-02-30') is False
        assert validate_date_format(None) is False

    @pytest.mark.parametrize('value', ['2024-3-10', '2024-03-9', '20240310', '2024-03-10 ', '2024-03-10\n'])
    def test_date_format_requires_zero_padding(self, value):
        assert validate_date_format(value) is False

    def test_time_format(self):
        assert validate_time_format('09:00') is True
        assert validate_time_format('23:59:00') is True
        assert validate_time_format('24:00') is False
        assert validate_time_format('9:00') is False
        assert validate_time_format('') is False


class TestNormalizeBookingWindow:
    """Tests for custody window validation."""

    def test_single_day_defaults_end_date(self):
        window = normalize_booking_window('2024-03-10', '', '09:00', '11:00')
        assert window == {
            'start_date': '2024-03-10',
            'end_date': '2024-03-10',
            'start_time': '09:00',
            'end_time': '11:00',
        }

    def test_seconds_are_dropped(self):
        window = normalize_booking_window('2024-03-10', None, '09:00:00', '11:30:00')
        assert window['start_time'] == '09:00'
        assert window['end_time'] == '11:30'

    def test_multi_day_allows_earlier_end_time(self):
        window = normalize_booking_window('2024-03-10', '2024-03-11', '18:00', '09:00')
        assert window['end_date'] == '2024-03-11'

    @pytest.mark.parametrize('start_date, start_time, end_time', [
        ('', '09:00', '11:00'),
        ('2024-03-10', '', '11:00'),
        ('2024-03-10', '09:00', None),
    ])
    def test_missing_fields(self, start_date, start_time, end_time):
        with pytest.raises(BookingValidationError):
            normalize_booking_window(start_date, None, start_time, end_time)

    @pytest.mark.parametrize('start_date, end_date', [
        ('2024-3-10', None),
        ('2024-03-08', '2024-03-9'),
    ])
    def test_unpadded_dates_rejected(self, start_date, end_date):
        with pytest.raises(BookingValidationError):
            normalize_booking_window(start_date, end_date, '09:00', '11:00', today=date(2024, 3, 1))

    def test_same_day_start_after_end(self):
        with pytest.raises(BookingValidationError):
            normalize_booking_window('2024-03-10', '2024-03-10', '11:00', '09:00')

    def test_zero_duration(self):
        with pytest.raises(BookingValidationError):
            normalize_booking_window('2024-03-10', None, '10:00', '10:00')

    def test_end_date_before_start_date(self):
        with pytest.raises(BookingValidationError):
            normalize_booking_window('2024-03-10', '2024-03-09', '09:00', '11:00')

    def test_bad_formats(self):
        with pytest.raises(BookingValidationError):
            normalize_booking_window('10-03-2024', None, '09:00', '11:00')
        with pytest.raises(BookingValidationError):
            normalize_booking_window('2024-03-10', None, '9am', '11:00')

    def test_past_date_rule(self):
        with pytest.raises(BookingValidationError):
            normalize_booking_window('2024-03-09', None, '09:00', '11:00', today=date(2024, 3, 10))

    def test_today_is_allowed(self):
        window = normalize_booking_window('2024-03-10', None, '09:00', '11:00', today=date(2024, 3, 10))
        assert window['start_date'] == '2024-03-10'


class TestSanitizeInput:

    def test_trims_and_limits(self):
        assert sanitize_input('  hola  ') == 'hola'
        assert sanitize_input('abcdef', max_length=3) == 'abc'
        assert sanitize_input(None) == ''
