"""
Camera notification service.
Posts booking events to the notification webhook, which fans them out to
WhatsApp and email. Delivery is best-effort: failures are logged and
never propagate to the operation that triggered them.
"""

import logging
import threading

import requests
from flask import current_app

from models.user import get_agent_contact
from utils.datetime_helpers import iso_timestamp

logger = logging.getLogger(__name__)


# =============================================================================
# EVENT CONSTANTS
# =============================================================================

CAMERA_EVENTS = {
    'BOOKING_REQUESTED': 'booking_requested',
    'URGENT_REQUEST': 'urgent_request',
    'BOOKING_APPROVED': 'booking_approved',
    'BOOKING_REJECTED': 'booking_rejected',
    'BOOKING_RESCHEDULED': 'booking_rescheduled',
    'BOOKING_CANCELLED': 'booking_cancelled',
    'PICKUP_CONFIRMED': 'pickup_confirmed',
    'RETURN_CONFIRMED': 'return_confirmed',
    'EARLY_RETURN': 'early_return',
    'WAITLIST_REQUESTED': 'waitlist_requested',
    'LATE_RETURN_ALERT': 'late_return_alert',
}


# =============================================================================
# PAYLOAD
# =============================================================================

def build_notification_payload(
    event: str,
    booking: dict,
    agent: dict,
    admin_notes: str = '',
    extra: dict = None
) -> dict:
    """
    Build the JSON body sent to the webhook.

    Args:
        event: Event name (one of CAMERA_EVENTS values)
        booking: Booking dict
        agent: {'name', 'email', 'phone'} of the requesting agent
        admin_notes: Optional admin note
        extra: Optional structured payload merged at top level

    Returns:
        dict: Payload
    """
    payload = {
        'event': event,
        'booking': {
            'id': booking.get('id'),
            'camera_unit': booking.get('camera_unit'),
            'start_date': booking.get('start_date'),
            'end_date': booking.get('end_date') or booking.get('start_date'),
            'start_time': (booking.get('start_time') or '')[:5],
            'end_time': (booking.get('end_time') or '')[:5],
            'property_address': booking.get('property_address'),
            'status': booking.get('status'),
            'notes': booking.get('notes'),
            'is_urgent': bool(booking.get('is_urgent')),
            'handoff_location': booking.get('handoff_location'),
        },
        'agent': {
            'name': agent.get('name', ''),
            'email': agent.get('email', ''),
            'phone': agent.get('phone', ''),
        },
        'admin_notes': admin_notes or '',
    }

    if extra:
        payload.update(extra)

    payload['timestamp'] = iso_timestamp()
    return payload


# =============================================================================
# DELIVERY
# =============================================================================

def _post_notification(url: str, payload: dict, timeout: float) -> bool:
    """POST the payload; returns True on a 2xx response."""
    try:
        response = requests.post(url, json=payload, timeout=timeout)
        response.raise_for_status()
        return True
    except Exception as e:
        logger.error(f"Camera notification '{payload.get('event')}' failed: {e}")
        return False


def send_camera_notification(
    event: str,
    booking: dict,
    agent: dict,
    admin_notes: str = '',
    extra: dict = None
) -> None:
    """
    Send a camera notification event (fire and forget).

    Args:
        event: Event name
        booking: Booking dict
        agent: Agent contact dict
        admin_notes: Optional admin note
        extra: Optional extra payload
    """
    try:
        url = current_app.config.get('CAMERA_NOTIFICATION_WEBHOOK_URL')
        if not url:
            logger.debug(f"Notification webhook not configured; skipping '{event}'")
            return

        payload = build_notification_payload(event, booking, agent, admin_notes, extra)
        timeout = current_app.config.get('NOTIFICATION_TIMEOUT', 10)

        if current_app.config.get('NOTIFICATIONS_ASYNC', True):
            threading.Thread(
                target=_post_notification,
                args=(url, payload, timeout),
                daemon=True
            ).start()
        else:
            _post_notification(url, payload, timeout)
    except Exception as e:
        logger.error(f"Error preparing camera notification '{event}': {e}")


def notify_booking_event(event: str, booking: dict, admin_notes: str = '', extra: dict = None) -> None:
    """Send an event addressed with the booking agent's contact info."""
    try:
        agent = get_agent_contact(booking.get('agent_id'))
    except Exception as e:
        logger.error(f"Could not load agent contact for booking {booking.get('id')}: {e}")
        agent = {}
    send_camera_notification(event, booking, agent, admin_notes, extra)
