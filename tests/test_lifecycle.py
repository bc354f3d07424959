"""
Tests for booking lifecycle transitions.
Covers approve/reject, rescheduling, cancellation (with the late rule),
forced completion, handoff and the status history trail.
"""

import pytest
from datetime import datetime
from unittest.mock import patch

from conftest import NOW, FULL_CHECKLIST
from models.booking import get_booking, get_status_history
from models.booking_lifecycle import (
    VALID_TRANSITIONS, can_transition, format_window,
    approve_booking, reject_booking, reschedule_booking, cancel_booking, complete_booking, set_handoff
)
from models.camera_unit import get_unit
from models.errors import (
    BookingNotFoundError, BookingValidationError, InvalidStateTransitionError,
    PermissionDeniedError, SlotUnavailableError, UnitUnavailableError
)
from services.calendar_sync import get_calendar_task


IN_CUSTODY = {
    'pickup_confirmed_at': '2024-03-10T09:05:00-03:00',
    'pickup_condition': FULL_CHECKLIST,
}


class TestTransitionTable:

    def test_terminal_statuses_have_no_exit(self):
        for status in ('rejected', 'cancelled', 'completed'):
            assert VALID_TRANSITIONS[status] == ()

    @pytest.mark.parametrize('from_status,to_status,expected', [
        ('pending', 'approved', True),
        ('pending', 'cancelled', True),
        ('waitlisted', 'approved', True),
        ('waitlisted', 'cancelled', False),
        ('approved', 'completed', True),
        ('approved', 'pending', False),
        ('completed', 'cancelled', False),
        ('cancelled', 'approved', False),
    ])
    def test_can_transition(self, from_status, to_status, expected):
        assert can_transition(from_status, to_status) is expected

    def test_format_window(self):
        single = {'camera_unit': 1, 'start_date': '2024-03-10', 'end_date': '2024-03-10',
                  'start_time': '09:00', 'end_time': '11:00'}
        multi = {**single, 'end_date': '2024-03-11'}
        assert format_window(single) == 'Cámara 1 2024-03-10 09:00-11:00'
        assert format_window(multi) == 'Cámara 1 2024-03-10 09:00 - 2024-03-11 11:00'


class TestApproveReject:

    def test_approve_pending(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id)

        booking = approve_booking(booking_id, admin_id, 'Retirar en oficina')

        assert booking['status'] == 'approved'
        assert booking['approver_id'] == admin_id
        assert booking['admin_notes'] == 'Retirar en oficina'

    def test_approve_creates_calendar_tasks(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id)

        booking = approve_booking(booking_id, admin_id)

        agent_task = get_calendar_task(booking['calendar_task_id_agent'])
        admin_task = get_calendar_task(booking['calendar_task_id_admin'])
        assert agent_task['owner_id'] == agent_id
        assert admin_task['owner_id'] == admin_id
        assert agent_task['starts_at'] == '2024-03-10T09:00'
        assert 'NO MOVER NI EDITAR' in agent_task['description']

    def test_approve_notifies(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id)

        with patch('models.booking_lifecycle.notify_booking_event') as notify:
            approve_booking(booking_id, admin_id)

        assert notify.call_args[0][0] == 'booking_approved'
        assert notify.call_args[0][1]['id'] == booking_id

    def test_non_admin_cannot_approve(self, ctx, agent_id, other_agent_id, make_booking):
        booking_id = make_booking(agent_id)
        with pytest.raises(PermissionDeniedError):
            approve_booking(booking_id, other_agent_id)
        assert get_booking(booking_id)['status'] == 'pending'

    def test_approve_unknown_booking(self, ctx, admin_id):
        with pytest.raises(BookingNotFoundError):
            approve_booking(9999, admin_id)

    @pytest.mark.parametrize('status', ['approved', 'rejected', 'cancelled', 'completed'])
    def test_approve_refused_from_other_statuses(self, ctx, agent_id, admin_id, make_booking, status):
        booking_id = make_booking(agent_id, status=status)
        with pytest.raises(InvalidStateTransitionError):
            approve_booking(booking_id, admin_id)

    def test_waitlisted_refused_while_holder_approved(self, ctx, agent_id, other_agent_id, admin_id, make_booking):
        holder = make_booking(agent_id, status='approved')
        waiter = make_booking(other_agent_id, start_time='10:00', end_time='12:00',
                              status='waitlisted', waitlist_for_booking_id=holder)

        with pytest.raises(SlotUnavailableError):
            approve_booking(waiter, admin_id)
        assert get_booking(waiter)['status'] == 'waitlisted'

    def test_waitlisted_approved_after_holder_cancelled(self, ctx, agent_id, other_agent_id, admin_id, make_booking):
        holder = make_booking(agent_id, status='approved')
        waiter = make_booking(other_agent_id, start_time='10:00', end_time='12:00',
                              status='waitlisted', waitlist_for_booking_id=holder)

        cancel_booking(holder, agent_id, now=NOW)
        booking = approve_booking(waiter, admin_id)

        assert booking['status'] == 'approved'
        assert booking['waitlist_for_booking_id'] is None

    def test_approve_refused_on_unit_in_maintenance(self, ctx, agent_id, admin_id, make_booking):
        from models.camera_unit import set_maintenance

        booking_id = make_booking(agent_id, unit=2)
        set_maintenance(2)
        with pytest.raises(UnitUnavailableError):
            approve_booking(booking_id, admin_id)

    def test_reject_requires_reason(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id)
        with pytest.raises(BookingValidationError):
            reject_booking(booking_id, admin_id, '   ')
        assert get_booking(booking_id)['status'] == 'pending'

    def test_reject_waitlisted_clears_reference(self, ctx, agent_id, other_agent_id, admin_id, make_booking):
        holder = make_booking(agent_id, status='approved')
        waiter = make_booking(other_agent_id, start_time='10:00', end_time='12:00',
                              status='waitlisted', waitlist_for_booking_id=holder)

        booking = reject_booking(waiter, admin_id, 'Horario ocupado')

        assert booking['status'] == 'rejected'
        assert booking['admin_notes'] == 'Horario ocupado'
        assert booking['waitlist_for_booking_id'] is None

    def test_reject_approved_is_invalid(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id, status='approved')
        with pytest.raises(InvalidStateTransitionError):
            reject_booking(booking_id, admin_id, 'Motivo')


class TestReschedule:

    def test_reschedule_moves_window_and_unit(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id, status='approved')

        booking = reschedule_booking(
            booking_id, admin_id, '2024-03-11', '', '14:00', '16:00',
            unit_id=2, notes='Cliente pidió otro día', now=NOW
        )

        assert booking['status'] == 'approved'
        assert booking['camera_unit'] == 2
        assert (booking['start_date'], booking['end_date']) == ('2024-03-11', '2024-03-11')
        assert (booking['start_time'], booking['end_time']) == ('14:00', '16:00')
        assert booking['admin_notes'] == (
            'Reprogramado: Cámara 1 2024-03-10 09:00-11:00 → Cámara 2 2024-03-11 14:00-16:00. '
            'Cliente pidió otro día'
        )

        history = get_status_history(booking_id)
        assert history[-1]['action'] == 'reschedule'
        assert history[-1]['from_status'] == history[-1]['to_status'] == 'approved'

    def test_reschedule_ignores_own_window(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id)
        booking = reschedule_booking(booking_id, admin_id, '2024-03-10', None, '10:00', '12:00', now=NOW)
        assert booking['start_time'] == '10:00'

    def test_reschedule_conflict(self, ctx, agent_id, other_agent_id, admin_id, make_booking):
        make_booking(other_agent_id, start_date='2024-03-11', status='completed')
        booking_id = make_booking(agent_id)

        with pytest.raises(SlotUnavailableError):
            reschedule_booking(booking_id, admin_id, '2024-03-11', None, '10:00', '12:00', now=NOW)
        assert get_booking(booking_id)['start_date'] == '2024-03-10'

    def test_reschedule_over_waitlisted_is_allowed(self, ctx, agent_id, other_agent_id, admin_id, make_booking):
        holder = make_booking(other_agent_id, start_date='2024-03-11', status='approved')
        make_booking(agent_id, start_date='2024-03-11', start_time='10:00', end_time='12:00',
                     status='waitlisted', waitlist_for_booking_id=holder)
        booking_id = make_booking(agent_id, unit=1, start_date='2024-03-12')

        cancel_booking(holder, other_agent_id, now=NOW)
        booking = reschedule_booking(booking_id, admin_id, '2024-03-11', None, '10:00', '12:00', now=NOW)
        assert booking['start_date'] == '2024-03-11'

    def test_missing_fields(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id)
        with pytest.raises(BookingValidationError):
            reschedule_booking(booking_id, admin_id, '2024-03-11', None, '', '12:00', now=NOW)

    def test_past_date_refused(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id)
        with pytest.raises(BookingValidationError):
            reschedule_booking(booking_id, admin_id, '2024-02-20', None, '10:00', '12:00', now=NOW)

    @pytest.mark.parametrize('status', ['completed', 'cancelled', 'rejected'])
    def test_terminal_not_reschedulable(self, ctx, agent_id, admin_id, make_booking, status):
        booking_id = make_booking(agent_id, status=status)
        with pytest.raises(InvalidStateTransitionError):
            reschedule_booking(booking_id, admin_id, '2024-03-11', None, '10:00', '12:00', now=NOW)

    def test_unit_change_refused_during_custody(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id, status='approved', **IN_CUSTODY)

        with pytest.raises(InvalidStateTransitionError):
            reschedule_booking(booking_id, admin_id, '2024-03-10', None, '09:00', '13:00', unit_id=2, now=NOW)

        booking = reschedule_booking(booking_id, admin_id, '2024-03-10', None, '09:00', '13:00', now=NOW)
        assert booking['end_time'] == '13:00'
        assert get_unit(1)['current_booking_id'] == booking_id

    def test_reschedule_updates_calendar_tasks(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id)
        booking = approve_booking(booking_id, admin_id)

        reschedule_booking(booking_id, admin_id, '2024-03-12', None, '15:00', '17:00', now=NOW)

        task = get_calendar_task(booking['calendar_task_id_agent'])
        assert task['starts_at'] == '2024-03-12T15:00'
        assert task['ends_at'] == '2024-03-12T17:00'

    def test_non_admin_cannot_reschedule(self, ctx, agent_id, make_booking):
        booking_id = make_booking(agent_id)
        with pytest.raises(PermissionDeniedError):
            reschedule_booking(booking_id, agent_id, '2024-03-11', None, '10:00', '12:00', now=NOW)


class TestCancel:
    """Booking on 2024-03-10 09:00-11:00: committed end is 11:00."""

    def test_owner_cancels_pending(self, ctx, agent_id, make_booking):
        booking_id = make_booking(agent_id)

        booking = cancel_booking(booking_id, agent_id, now=NOW)

        assert booking['status'] == 'cancelled'
        assert booking['is_late_cancellation'] is False
        assert booking['cancelled_at'].startswith('2024-03-01T08:00:00')

    def test_admin_cancels_approved(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id, status='approved')
        assert cancel_booking(booking_id, admin_id, now=NOW)['status'] == 'cancelled'

    def test_other_agent_cannot_cancel(self, ctx, agent_id, other_agent_id, make_booking):
        booking_id = make_booking(agent_id)
        with pytest.raises(PermissionDeniedError):
            cancel_booking(booking_id, other_agent_id, now=NOW)

    def test_exactly_twelve_hours_is_not_late(self, ctx, agent_id, make_booking):
        booking_id = make_booking(agent_id, status='approved')
        booking = cancel_booking(booking_id, agent_id, now=datetime(2024, 3, 9, 23, 0))
        assert booking['is_late_cancellation'] is False

    def test_under_twelve_hours_is_late(self, ctx, agent_id, make_booking):
        booking_id = make_booking(agent_id, status='approved')

        booking = cancel_booking(booking_id, agent_id, now=datetime(2024, 3, 9, 23, 1))

        assert booking['is_late_cancellation'] is True
        assert get_status_history(booking_id)[-1]['notes'] == 'Cancelación tardía'

    def test_late_measured_from_end_of_multi_day(self, ctx, agent_id, make_booking):
        booking_id = make_booking(agent_id, start_date='2024-03-10', end_date='2024-03-12', status='approved')
        booking = cancel_booking(booking_id, agent_id, now=datetime(2024, 3, 10, 8, 0))
        assert booking['is_late_cancellation'] is False

    def test_cancel_in_custody_refused(self, ctx, agent_id, make_booking):
        booking_id = make_booking(agent_id, status='approved', **IN_CUSTODY)
        with pytest.raises(InvalidStateTransitionError):
            cancel_booking(booking_id, agent_id, now=NOW)
        assert get_unit(1)['status'] == 'in_use'

    def test_waitlisted_cannot_be_cancelled(self, ctx, agent_id, other_agent_id, make_booking):
        holder = make_booking(agent_id, status='approved')
        waiter = make_booking(other_agent_id, start_time='10:00', end_time='12:00',
                              status='waitlisted', waitlist_for_booking_id=holder)
        with pytest.raises(InvalidStateTransitionError):
            cancel_booking(waiter, other_agent_id, now=NOW)

    def test_cancel_removes_calendar_tasks(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id)
        approved = approve_booking(booking_id, admin_id)

        booking = cancel_booking(booking_id, agent_id, now=NOW)

        assert booking['calendar_task_id_agent'] is None
        assert booking['calendar_task_id_admin'] is None
        assert get_calendar_task(approved['calendar_task_id_agent']) is None

    def test_cancel_frees_slot_for_new_request(self, ctx, agent_id, other_agent_id, make_booking):
        from models.waitlist import request_booking

        booking_id = make_booking(agent_id, status='approved')
        cancel_booking(booking_id, agent_id, now=NOW)

        result = request_booking(other_agent_id, 1, '2024-03-10', None, '09:00', '11:00', now=NOW)
        assert result.outcome == 'created'


class TestCompleteAndHandoff:

    def test_force_complete_releases_unit(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id, status='approved', **IN_CUSTODY)

        booking = complete_booking(booking_id, admin_id, 'Devuelta en oficina', now=datetime(2024, 3, 10, 12, 0))

        assert booking['status'] == 'completed'
        assert booking['return_confirmed_at'].startswith('2024-03-10T12:00:00')
        assert booking['return_condition']['forced_by'] == admin_id
        assert booking['return_condition']['notes'] == 'Devuelta en oficina'
        unit = get_unit(1)
        assert unit['status'] == 'available'
        assert unit['current_booking_id'] is None
        assert get_status_history(booking_id)[-1]['action'] == 'force_complete'

    def test_complete_requires_custody(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id, status='approved')
        with pytest.raises(InvalidStateTransitionError):
            complete_booking(booking_id, admin_id, now=NOW)

    def test_complete_requires_admin(self, ctx, agent_id, make_booking):
        booking_id = make_booking(agent_id, status='approved', **IN_CUSTODY)
        with pytest.raises(PermissionDeniedError):
            complete_booking(booking_id, agent_id, now=NOW)

    def test_set_handoff(self, ctx, agent_id, other_agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id, status='approved')

        booking = set_handoff(booking_id, admin_id, other_agent_id, 'Metro Tobalaba')

        assert booking['handoff_agent_id'] == other_agent_id
        assert booking['handoff_location'] == 'Metro Tobalaba'
        assert booking['status'] == 'approved'
        assert get_status_history(booking_id)[-1]['action'] == 'handoff'

    def test_handoff_unknown_agent(self, ctx, agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id, status='approved')
        with pytest.raises(BookingValidationError):
            set_handoff(booking_id, admin_id, 9999)

    def test_handoff_only_on_approved(self, ctx, agent_id, other_agent_id, admin_id, make_booking):
        booking_id = make_booking(agent_id)
        with pytest.raises(InvalidStateTransitionError):
            set_handoff(booking_id, admin_id, other_agent_id)


class TestHistory:

    def test_full_trail(self, ctx, agent_id, admin_id, make_booking):
        from models.custody import confirm_pickup, confirm_return

        booking_id = make_booking(agent_id)
        approve_booking(booking_id, admin_id)
        confirm_pickup(booking_id, agent_id, FULL_CHECKLIST, now=datetime(2024, 3, 10, 9, 0))
        confirm_return(booking_id, agent_id, FULL_CHECKLIST, now=datetime(2024, 3, 10, 10, 55))

        actions = [h['action'] for h in get_status_history(booking_id)]
        assert actions == ['approve', 'pickup', 'return']
        assert get_booking(booking_id)['status'] == 'completed'
