"""
Input validation helper functions.
Provides validation for booking windows and common input types.
"""

import re
from datetime import date

from models.errors import BookingValidationError
from utils.messages import MESSAGES

DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')
TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$')


def validate_date_format(date_str: str) -> bool:
    """
    Validate date is a real calendar day in zero-padded YYYY-MM-DD format.

    Args:
        date_str: Date string to validate

    Returns:
        True if valid format
    """
    if not date_str or not isinstance(date_str, str) or not DATE_PATTERN.fullmatch(date_str):
        return False
    try:
        date.fromisoformat(date_str)
        return True
    except ValueError:
        return False


def validate_time_format(time_str: str) -> bool:
    """
    Validate time is in HH:MM (or HH:MM:SS) 24h format.

    Args:
        time_str: Time string to validate

    Returns:
        True if valid format
    """
    if not time_str or not isinstance(time_str, str):
        return False
    return bool(TIME_PATTERN.match(time_str))


def normalize_booking_window(
    start_date: str,
    end_date: str,
    start_time: str,
    end_time: str,
    today: date = None
) -> dict:
    """
    Validate a requested custody window and return it normalized.

    Rules:
    - start date, start time and end time are required; an empty end date
      means a single-day booking
    - dates are YYYY-MM-DD, times HH:MM (seconds are dropped)
    - end-of-use must be strictly after start-of-use
    - a single-day booking needs start_time < end_time
    - when ``today`` is given, the start date may not be before it

    Args:
        start_date: Pickup date
        end_date: Return date (defaults to start_date)
        start_time: Pickup time
        end_time: Return time
        today: Reference date for the past-date rule (optional)

    Returns:
        dict: {'start_date', 'end_date', 'start_time', 'end_time'}

    Raises:
        BookingValidationError: If any rule fails
    """
    if not start_date or not start_time or not end_time:
        raise BookingValidationError(MESSAGES['date_required'])

    end_date = end_date or start_date

    if not validate_date_format(start_date) or not validate_date_format(end_date):
        raise BookingValidationError(MESSAGES['invalid_date'])
    if not validate_time_format(start_time) or not validate_time_format(end_time):
        raise BookingValidationError(MESSAGES['invalid_time'])

    start_time = start_time[:5]
    end_time = end_time[:5]

    if start_date == end_date and start_time >= end_time:
        raise BookingValidationError(MESSAGES['invalid_same_day_window'])

    if (end_date, end_time) <= (start_date, start_time):
        raise BookingValidationError(MESSAGES['invalid_window'])

    if today is not None and date.fromisoformat(start_date) < today:
        raise BookingValidationError(MESSAGES['past_date'])

    return {
        'start_date': start_date,
        'end_date': end_date,
        'start_time': start_time,
        'end_time': end_time,
    }


def validate_email(email: str) -> bool:
    """
    Validate email format.

    Args:
        email: Email address to validate

    Returns:
        True if valid email format
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def sanitize_input(text: str, max_length: int = None) -> str:
    """
    Sanitize text input by trimming and limiting length.

    Args:
        text: Text to sanitize
        max_length: Maximum length (optional)

    Returns:
        Sanitized text
    """
    if not text:
        return ''

    # Strip whitespace
    sanitized = str(text).strip()

    # Limit length if specified
    if max_length and len(sanitized) > max_length:
        sanitized = sanitized[:max_length]

    return sanitized
