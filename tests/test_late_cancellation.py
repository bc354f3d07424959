"""
Tests for the late-cancellation ledger.
"""

from datetime import datetime

from models.booking_lifecycle import cancel_booking
from models.late_cancellation import (
    is_late_cancellation, get_late_cancellation_counts, get_agent_late_cancellation_count
)

# Committed end of every booking below is 2024-03-10 11:00
LATE = datetime(2024, 3, 10, 8, 0)
EARLY = datetime(2024, 3, 1, 8, 0)


def _booking(end_date='2024-03-10', end_time='11:00'):
    return {'start_date': '2024-03-10', 'end_date': end_date, 'start_time': '09:00', 'end_time': end_time}


class TestIsLate:

    def test_boundary(self, ctx):
        assert is_late_cancellation(_booking(), now=datetime(2024, 3, 9, 23, 0)) is False
        assert is_late_cancellation(_booking(), now=datetime(2024, 3, 9, 23, 0, 1)) is True

    def test_after_end_is_late(self, ctx):
        assert is_late_cancellation(_booking(), now=datetime(2024, 3, 10, 12, 0)) is True

    def test_threshold_from_config(self, app):
        app.config['LATE_CANCELLATION_HOURS'] = 24
        with app.app_context():
            assert is_late_cancellation(_booking(), now=datetime(2024, 3, 9, 20, 0)) is True


class TestLedger:

    def test_counts_per_agent(self, ctx, agent_id, other_agent_id, make_booking):
        for _ in range(3):
            booking_id = make_booking(agent_id, status='approved')
            cancel_booking(booking_id, agent_id, now=LATE)

        on_time = make_booking(other_agent_id, unit=2)
        cancel_booking(on_time, other_agent_id, now=EARLY)
        late_other = make_booking(other_agent_id, unit=2, start_time='09:00', end_time='11:00')
        cancel_booking(late_other, other_agent_id, now=LATE)

        counts = get_late_cancellation_counts()

        assert [(c['agent_id'], c['late_count']) for c in counts] == [(agent_id, 3), (other_agent_id, 1)]
        assert counts[0]['name'] == 'María Pérez'
        assert counts[0]['flagged'] is True
        assert counts[1]['flagged'] is False
        assert counts[0]['last_cancelled_at'].startswith('2024-03-10T08:00:00')

    def test_agent_count(self, ctx, agent_id, make_booking):
        booking_id = make_booking(agent_id)
        cancel_booking(booking_id, agent_id, now=LATE)

        assert get_agent_late_cancellation_count(agent_id) == 1

    def test_empty_ledger(self, ctx, agent_id):
        assert get_late_cancellation_counts() == []
        assert get_agent_late_cancellation_count(agent_id) == 0
