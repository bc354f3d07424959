"""
JSON envelope shared by every camera API endpoint.

    Success:  {"success": true, "data": {...}, "message": "..."}
    Error:    {"success": false, "error": "Mensaje en español"}

Admission outcomes add top-level context, e.g. a waitlisted request
answers 202 with the bookings it contends with:

    return api_success(data=booking, status=202, conflicting=[...])
    return api_error(MESSAGES['waitlist_full'], status=409, conflicting=[...])
"""

from flask import jsonify
from typing import Any


def api_success(
    data: dict | list | None = None,
    message: str | None = None,
    warning: str | None = None,
    status: int = 200,
    **extra_fields: Any
) -> tuple:
    """
    Build a success response.

    Args:
        data: Payload under 'data' (booking, unit, list wrapper...)
        message: Spanish confirmation shown to the user
        warning: Spanish warning that did not block the operation
        status: HTTP status (201 created, 202 waitlisted)
        **extra_fields: Top-level fields such as 'conflicting'

    Returns:
        Tuple of (Response, status_code)
    """
    body = {'success': True}
    if data is not None:
        body['data'] = data
    if message:
        body['message'] = message
    if warning:
        body['warning'] = warning
    body.update(extra_fields)
    return jsonify(body), status


def api_error(error: str, status: int = 400, **extra_fields: Any) -> tuple:
    """Build an error response; extra fields carry refusal context (form errors, conflicts)."""
    body = {'success': False, 'error': error}
    body.update(extra_fields)
    return jsonify(body), status
