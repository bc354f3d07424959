"""
Miscellaneous utility helper functions.
Provides common functionality used across the application.
"""

from datetime import datetime

from flask import request


def format_date(date_str: str, format_str: str = '%d/%m/%Y') -> str:
    """
    Format date string to Spanish format.

    Args:
        date_str: Date string (YYYY-MM-DD)
        format_str: Output format (default: DD/MM/YYYY)

    Returns:
        Formatted date string or original if invalid
    """
    try:
        date_obj = datetime.strptime(date_str, '%Y-%m-%d')
        return date_obj.strftime(format_str)
    except (ValueError, TypeError):
        return date_str or ''


def parse_bool(value) -> bool:
    """Interpret JSON booleans and form values ('true', 'on', '1') as bool."""
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'on', 'yes', 'si', 'sí')
    return bool(value)


def parse_int(value, default: int = None) -> int:
    """Convert to int, returning default when empty or invalid."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_request_data() -> dict:
    """
    Request body as a dict, from JSON or form data.

    Returns:
        dict: Parsed body (empty dict when there is none)
    """
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()
