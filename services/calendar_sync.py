"""
Custody calendar sync.
Creates, updates, deletes and completes the calendar tasks that mirror an
approved booking for the agent and for the approving administrator, and
pushes them to the external calendar sync endpoint.

Calendar entries are read-only references: camera management happens
exclusively through this application. Every call is best-effort; agent
and admin directions succeed or fail independently and failures are
logged, never raised.
"""

import logging

import requests
from flask import current_app

from database import get_db

logger = logging.getLogger(__name__)


# =============================================================================
# TASK CONTENT
# =============================================================================

def build_event_description(booking: dict, admin_notes: str = '') -> str:
    """Human-readable description stored on the calendar entry."""
    end_date = booking.get('end_date') or booking['start_date']
    start_time = booking['start_time'][:5]
    end_time = booking['end_time'][:5]

    lines = [
        f"Cámara {booking['camera_unit']} - Sesión 360°",
        f"Dirección: {booking.get('property_address') or 'Sin dirección'}",
    ]
    if end_date != booking['start_date']:
        lines.append(f"Retiro: {booking['start_date']} a las {start_time}")
        lines.append(f"Devolución: {end_date} a las {end_time}")
    else:
        lines.append(f"Horario: {booking['start_date']} {start_time} - {end_time}")
    if booking.get('notes'):
        lines.append(f"Notas: {booking['notes']}")
    if admin_notes:
        lines.append(f"Admin: {admin_notes}")
    lines.append('')
    lines.append('NO MOVER NI EDITAR DESDE EL CALENDARIO EXTERNO.')
    lines.append('La gestión de la cámara se realiza exclusivamente desde la plataforma.')
    return '\n'.join(lines)


def _task_fields(booking: dict, admin_notes: str = '') -> dict:
    end_date = booking.get('end_date') or booking['start_date']
    return {
        'title': f"Cámara 360° - {booking.get('property_address') or 'Sesión'}",
        'description': build_event_description(booking, admin_notes),
        'location': booking.get('property_address'),
        'starts_at': f"{booking['start_date']}T{booking['start_time'][:5]}",
        'ends_at': f"{end_date}T{booking['end_time'][:5]}",
    }


def get_calendar_task(task_id: int) -> dict:
    db = get_db()
    row = db.execute('SELECT * FROM custody_calendar_tasks WHERE id = ?', (task_id,)).fetchone()
    return dict(row) if row else None


# =============================================================================
# REMOTE PUSH
# =============================================================================

def _remote_call(action: str, owner_id: int, body: dict) -> dict:
    """
    Call the external calendar sync endpoint.

    Returns:
        dict: Decoded JSON response, or None when not configured / failed
    """
    url = current_app.config.get('CALENDAR_SYNC_URL')
    if not url:
        return None

    headers = {'Content-Type': 'application/json'}
    token = current_app.config.get('CALENDAR_SYNC_TOKEN')
    if token:
        headers['Authorization'] = f'Bearer {token}'

    try:
        response = requests.post(
            url,
            json={'action': action, 'owner_id': owner_id, **body},
            headers=headers,
            timeout=current_app.config.get('NOTIFICATION_TIMEOUT', 10)
        )
        response.raise_for_status()
        return response.json() if response.content else {}
    except Exception as e:
        logger.error(f"Calendar sync '{action}' failed for owner {owner_id}: {e}")
        return None


def _push_task(task_id: int) -> None:
    """Push a local task to the external calendar and remember its event id."""
    task = get_calendar_task(task_id)
    if not task:
        return

    result = _remote_call('push_to_calendar', task['owner_id'], {'task': task})
    if not isinstance(result, dict):
        return

    event_id = result.get('event_id')
    if event_id and event_id != task.get('external_event_id'):
        db = get_db()
        db.execute('''
            UPDATE custody_calendar_tasks
            SET external_event_id = ?, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
        ''', (event_id, task_id))
        db.commit()


# =============================================================================
# PUBLIC CONTRACT
# =============================================================================

def _create_task(owner_id: int, booking: dict, notes: str) -> int:
    try:
        fields = _task_fields(booking, notes)
        db = get_db()
        cursor = db.execute('''
            INSERT INTO custody_calendar_tasks
            (owner_id, booking_id, title, description, location, starts_at, ends_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        ''', (owner_id, booking['id'], fields['title'], fields['description'],
              fields['location'], fields['starts_at'], fields['ends_at']))
        db.commit()
        task_id = cursor.lastrowid
    except Exception as e:
        logger.error(f"Error creating calendar task for owner {owner_id}: {e}")
        return None

    # The local task stands even when the remote push fails
    try:
        _push_task(task_id)
    except Exception as e:
        logger.error(f"Error pushing calendar task {task_id}: {e}")
    return task_id


def create_custody_events(booking: dict, agent_id: int, admin_id: int, notes: str = '') -> dict:
    """
    Create calendar tasks for the agent and the administrator.

    Args:
        booking: Approved booking dict
        agent_id: Requesting agent
        admin_id: Approving administrator
        notes: Admin notes included in the description

    Returns:
        dict: {'agent_task_id': int|None, 'admin_task_id': int|None}
    """
    return {
        'agent_task_id': _create_task(agent_id, booking, notes),
        'admin_task_id': _create_task(admin_id, booking, notes),
    }


def update_custody_events(
    booking: dict,
    agent_id: int,
    admin_id: int,
    new_window: dict,
    notes: str = ''
) -> None:
    """
    Rewrite the referenced tasks after a reschedule.

    Args:
        booking: Booking dict as it was before the reschedule
        agent_id: Requesting agent
        admin_id: Administrator performing the change
        new_window: New start/end dates/times and optionally camera_unit
        notes: Reschedule note
    """
    merged = {**booking, **{k: v for k, v in new_window.items() if v}}
    fields = _task_fields(merged, notes)

    for task_id in (booking.get('calendar_task_id_agent'), booking.get('calendar_task_id_admin')):
        if not task_id:
            continue
        try:
            db = get_db()
            db.execute('''
                UPDATE custody_calendar_tasks
                SET title = ?, description = ?, location = ?,
                    starts_at = ?, ends_at = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
            ''', (fields['title'], fields['description'], fields['location'],
                  fields['starts_at'], fields['ends_at'], task_id))
            db.commit()
            _push_task(task_id)
        except Exception as e:
            logger.error(f"Error updating calendar task {task_id}: {e}")


def delete_custody_events(booking: dict, agent_id: int, admin_id: int) -> None:
    """
    Remove the referenced tasks and their external events.

    Args:
        booking: Booking dict carrying the task references
        agent_id: Requesting agent
        admin_id: Administrator (or cancelling actor)
    """
    for task_id in (booking.get('calendar_task_id_agent'), booking.get('calendar_task_id_admin')):
        if not task_id:
            continue
        try:
            task = get_calendar_task(task_id)
            if not task:
                continue
            if task.get('external_event_id'):
                _remote_call('delete_from_calendar', task['owner_id'],
                             {'event_id': task['external_event_id']})
            db = get_db()
            db.execute('DELETE FROM custody_calendar_tasks WHERE id = ?', (task_id,))
            db.commit()
        except Exception as e:
            logger.error(f"Error deleting calendar task {task_id}: {e}")


def complete_custody_events(booking: dict, agent_id: int, admin_id: int) -> None:
    """
    Mark the referenced tasks as completed after the camera is returned.

    Args:
        booking: Booking dict carrying the task references
        agent_id: Requesting agent
        admin_id: Administrator
    """
    for task_id in (booking.get('calendar_task_id_agent'), booking.get('calendar_task_id_admin')):
        if not task_id:
            continue
        try:
            db = get_db()
            db.execute('''
                UPDATE custody_calendar_tasks
                SET completed = 1, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
            ''', (task_id,))
            db.commit()
            _push_task(task_id)
        except Exception as e:
            logger.error(f"Error completing calendar task {task_id}: {e}")
