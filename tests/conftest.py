"""
Pytest configuration and fixtures.
Every test gets its own SQLite file, initialized with the two camera units
and the default administrator.
"""

import os
import pytest
from datetime import date, datetime, timedelta

# Keep the configuration classes away from any developer .env database
os.environ.setdefault('FLASK_ENV', 'test')

ADMIN_USERNAME = 'admin'
ADMIN_PASSWORD = 'admin123'
AGENT_PASSWORD = 'agent-pass-123'

# Reference "current time" for model tests using 2024 dates
NOW = datetime(2024, 3, 1, 8, 0)

FULL_CHECKLIST = {'battery': True, 'physical': True, 'accessories': True, 'memory': True}


@pytest.fixture
def app(tmp_path):
    """Create test application with an isolated database file."""
    from app import create_app
    from database import init_db

    app = create_app('test')
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    app.config['DATABASE_PATH'] = str(tmp_path / 'camera_test.db')

    with app.app_context():
        init_db()

    yield app


@pytest.fixture
def ctx(app):
    """Push an application context for tests calling models directly."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def admin_id(app):
    from models.user import get_user_by_username

    with app.app_context():
        return get_user_by_username(ADMIN_USERNAME)['id']


@pytest.fixture
def make_user(app):
    """Factory creating users; returns the new user id."""
    counter = {'n': 0}

    def _make_user(username=None, role='agent', first_name='Test', last_name='Agent', phone='+56900000000'):
        from models.user import create_user

        counter['n'] += 1
        username = username or f"agent{counter['n']}"
        with app.app_context():
            return create_user(
                username=username,
                email=f'{username}@example.com',
                password=AGENT_PASSWORD,
                first_name=first_name,
                last_name=last_name,
                phone=phone,
                role=role
            )

    return _make_user


@pytest.fixture
def agent_id(make_user):
    return make_user('maria', first_name='María', last_name='Pérez')


@pytest.fixture
def other_agent_id(make_user):
    return make_user('jorge', first_name='Jorge', last_name='Soto')


@pytest.fixture
def make_booking(app):
    """
    Factory inserting a booking row directly, bypassing admission.

    Extra keyword arguments are written with update_booking (custody
    timestamps, calendar ids...). Returns the new booking id.
    """
    def _make_booking(agent_id, unit=1, start_date='2024-03-10', end_date=None,
                      start_time='09:00', end_time='11:00', status='pending', **fields):
        from database import transaction
        from models.booking import insert_booking, update_booking

        with app.app_context():
            with transaction() as cursor:
                booking_id = insert_booking(cursor, {
                    'camera_unit': unit,
                    'agent_id': agent_id,
                    'start_date': start_date,
                    'end_date': end_date or start_date,
                    'start_time': start_time,
                    'end_time': end_time,
                    'status': status,
                    'waitlist_for_booking_id': fields.pop('waitlist_for_booking_id', None),
                })
                if fields:
                    update_booking(cursor, booking_id, **fields)
                if fields.get('pickup_confirmed_at') and not fields.get('return_confirmed_at'):
                    cursor.execute('''
                        UPDATE camera_units SET status = 'in_use', current_booking_id = ?
                        WHERE id = ?
                    ''', (booking_id, unit))
            return booking_id

    return _make_booking


def login(client, username, password):
    """Log a test client in through the auth endpoint."""
    return client.post('/login', data={'username': username, 'password': password})


@pytest.fixture
def admin_client(app, client):
    """Test client logged in as the seeded administrator."""
    login(client, ADMIN_USERNAME, ADMIN_PASSWORD)
    return client


@pytest.fixture
def agent_client(app, agent_id):
    """Separate test client logged in as agent 'maria'."""
    agent_client = app.test_client()
    login(agent_client, 'maria', AGENT_PASSWORD)
    return agent_client


def future_date(days: int = 30) -> str:
    """ISO date safely in the future for route tests that use the real clock."""
    return (date.today() + timedelta(days=days)).isoformat()
