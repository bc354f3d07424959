"""
Agenda Cámara 360 - 360° camera booking system
Flask application factory and initialization
"""

import os
import click
import logging
from flask import Flask, g
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import configuration
from config import config

# Import extensions
from extensions import login_manager, csrf

# Import database functions
from database import close_db, init_db

from utils.api_response import api_error


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions."""
    # Initialize Flask-Login
    login_manager.init_app(app)
    # Initialize CSRF Protection
    csrf.init_app(app)


def register_blueprints(app):
    """Register Flask blueprints."""
    # Import blueprints
    from blueprints.auth.routes import auth_bp
    from blueprints.camera import camera_bp
    from blueprints.api.routes import api_bp

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(camera_bp, url_prefix='/camera/api')
    app.register_blueprint(api_bp, url_prefix='/api')


def register_error_handlers(app):
    """Register error handlers."""

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        return api_error('Recurso no encontrado', status=404)

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        """Handle 405 errors."""
        return api_error('Método no permitido', status=405)

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        # Rollback database on error
        db = g.get('db')
        if db:
            db.rollback()
        app.logger.error(f"Unhandled error: {error}")
        return api_error('Error interno del servidor', status=500)

    @app.errorhandler(403)
    def forbidden_error(error):
        """Handle 403 errors."""
        return api_error('No tiene permisos para esta acción', status=403)


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db()
        click.echo('Database initialized successfully!')

    @app.cli.command('create-user')
    @click.argument('username')
    @click.argument('email')
    @click.option('--role', type=click.Choice(['agent', 'admin']), default='agent')
    @click.option('--first-name', default=None)
    @click.option('--last-name', default=None)
    @click.option('--phone', default=None)
    @click.password_option()
    def create_user_command(username, email, role, first_name, last_name, phone, password):
        """Create a new agent or admin user."""
        from models.user import create_user

        with app.app_context():
            try:
                user_id = create_user(
                    username=username,
                    email=email,
                    password=password,
                    first_name=first_name,
                    last_name=last_name,
                    phone=phone,
                    role=role
                )
                click.echo(f'User created successfully! ID: {user_id}')
            except Exception as e:
                click.echo(f'Error creating user: {str(e)}', err=True)

    camera_cli = click.Group('camera', help='Camera booking maintenance tasks.')

    @camera_cli.command('overdue-alerts')
    def overdue_alerts_command():
        """Send late_return_alert for every overdue custody (run from cron)."""
        from models.overdue import get_overdue_bookings
        from services.notifications import CAMERA_EVENTS, notify_booking_event
        from utils.helpers import format_date

        # Daemon threads would die with the CLI process
        app.config['NOTIFICATIONS_ASYNC'] = False

        with app.app_context():
            overdue = get_overdue_bookings()
            for booking in overdue:
                end_date = booking.get('end_date') or booking['start_date']
                notify_booking_event(
                    CAMERA_EVENTS['LATE_RETURN_ALERT'],
                    booking,
                    f"Devolución atrasada: comprometida para {format_date(end_date)} {booking['end_time'][:5]}",
                    {'overdue_minutes': booking['overdue_minutes']}
                )
            click.echo(f'{len(overdue)} overdue booking(s) notified')

    app.cli.add_command(camera_cli)


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/camera_360.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        logging.getLogger().addHandler(file_handler)
        logging.getLogger().setLevel(logging.INFO)

        app.logger.setLevel(logging.INFO)
        app.logger.info('Agenda Cámara 360 startup')
    else:
        # Development logging
        app.logger.setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(host='0.0.0.0', debug=True)
