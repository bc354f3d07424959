"""
Test application factory and configuration.
"""

import pytest
from app import create_app
from config import ProductionConfig


class TestAppFactory:
    """Test Flask application factory."""

    def test_create_app_development(self):
        """Test app creation with development config."""
        app = create_app('development')
        assert app is not None
        assert app.config['DEBUG'] is True
        assert app.config['TESTING'] is False

    def test_create_app_test(self):
        """Test app creation with test config."""
        app = create_app('test')
        assert app is not None
        assert app.config['TESTING'] is True
        assert app.config['WTF_CSRF_ENABLED'] is False
        assert app.config['NOTIFICATIONS_ASYNC'] is False

    def test_app_has_blueprints(self):
        """Test that all blueprints are registered."""
        app = create_app('test')
        blueprint_names = list(app.blueprints.keys())

        assert 'auth' in blueprint_names
        assert 'camera' in blueprint_names
        assert 'api' in blueprint_names

    def test_app_has_extensions(self):
        """Test that extensions are initialized."""
        app = create_app('test')

        # Check login manager
        assert hasattr(app, 'login_manager')


class TestAppConfiguration:
    """Test application configuration."""

    def test_booking_rules(self):
        app = create_app('test')
        assert app.config['CAMERA_UNIT_IDS'] == (1, 2)
        assert app.config['LATE_CANCELLATION_HOURS'] == 12
        assert app.config['LATE_CANCELLATION_FLAG_THRESHOLD'] == 3
        assert app.config['WAITLIST_CAP_PER_SLOT'] == 1

    def test_app_name_set(self):
        app = create_app('test')
        assert app.config.get('APP_NAME') == 'Agenda Cámara 360'

    def test_production_requires_secret_key(self, monkeypatch):
        monkeypatch.delenv('SECRET_KEY', raising=False)
        with pytest.raises(ValueError):
            ProductionConfig.validate()

    def test_production_requires_webhook(self, monkeypatch):
        monkeypatch.setenv('SECRET_KEY', 'x' * 40)
        monkeypatch.setenv('DATABASE_PATH', '/tmp/camera.db')
        monkeypatch.delenv('CAMERA_NOTIFICATION_WEBHOOK_URL', raising=False)
        with pytest.raises(ValueError):
            ProductionConfig.validate()


class TestCLICommands:
    """Test CLI command registration."""

    def test_init_db_command(self, app):
        runner = app.test_cli_runner()
        result = runner.invoke(args=['init-db'])
        assert result.exit_code == 0
        assert 'Database initialized' in result.output

    def test_create_user_command(self, app):
        from models.user import get_user_by_username

        runner = app.test_cli_runner()
        result = runner.invoke(args=[
            'create-user', 'nuevo', 'nuevo@example.com', '--role', 'agent',
            '--password', 'secret123'
        ])
        assert result.exit_code == 0
        with app.app_context():
            user = get_user_by_username('nuevo')
        assert user is not None
        assert user['role'] == 'agent'

    def test_overdue_alerts_command(self, app, agent_id, make_booking):
        from unittest.mock import patch

        make_booking(
            agent_id, start_date='2024-03-10', status='approved',
            pickup_confirmed_at='2024-03-10T09:00:00-03:00'
        )
        runner = app.test_cli_runner()

        with patch('services.notifications.notify_booking_event') as notify:
            result = runner.invoke(args=['camera', 'overdue-alerts'])

        assert result.exit_code == 0
        assert '1 overdue booking(s) notified' in result.output
        assert notify.call_args[0][0] == 'late_return_alert'


class TestWsgi:

    def test_entry_point_uses_flask_env(self):
        import os
        import wsgi

        assert wsgi.config_name == os.environ['FLASK_ENV']
        assert wsgi.application.name == 'app'


class TestHealth:

    def test_health_check(self, client):
        response = client.get('/api/health')
        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'ok'
        assert data['units'] == {'1': 'available', '2': 'available'}

    def test_health_reports_maintenance(self, app, client):
        from models.camera_unit import set_maintenance

        with app.app_context():
            set_maintenance(2, 'Lente rayado')

        assert client.get('/api/health').get_json()['units']['2'] == 'maintenance'

    def test_unknown_route_returns_json_404(self, client):
        response = client.get('/nope')
        assert response.status_code == 404
        assert response.get_json()['success'] is False
