"""
Flask application configuration classes.
Provides configuration for development, production, and testing environments.
"""

import os
from datetime import timedelta


class Config:
    """Base configuration class with common settings."""

    # Secret key for session management and CSRF protection
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'

    # Database configuration
    DATABASE_PATH = os.environ.get('DATABASE_PATH') or 'instance/camera_360.db'
    DATABASE_BUSY_TIMEOUT = float(os.environ.get('DATABASE_BUSY_TIMEOUT', 5))
    TRANSACTION_RETRIES = int(os.environ.get('TRANSACTION_RETRIES', 3))

    # Security settings
    WTF_CSRF_ENABLED = True
    WTF_CSRF_TIME_LIMIT = 3600  # CSRF token expires after 1 hour
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    PERMANENT_SESSION_LIFETIME = timedelta(
        hours=int(os.environ.get('SESSION_TIMEOUT_HOURS', 8))
    )

    # Timezone
    TIMEZONE = os.environ.get('TIMEZONE', 'America/Santiago')

    # Camera units (two interchangeable 360° cameras)
    CAMERA_UNIT_IDS = (1, 2)

    # Booking rules
    LATE_CANCELLATION_HOURS = int(os.environ.get('LATE_CANCELLATION_HOURS', 12))
    LATE_CANCELLATION_FLAG_THRESHOLD = int(os.environ.get('LATE_CANCELLATION_FLAG_THRESHOLD', 3))
    WAITLIST_CAP_PER_SLOT = 1

    # External collaborators (best-effort)
    CAMERA_NOTIFICATION_WEBHOOK_URL = os.environ.get('CAMERA_NOTIFICATION_WEBHOOK_URL')
    CALENDAR_SYNC_URL = os.environ.get('CALENDAR_SYNC_URL')
    CALENDAR_SYNC_TOKEN = os.environ.get('CALENDAR_SYNC_TOKEN')
    NOTIFICATION_TIMEOUT = float(os.environ.get('NOTIFICATION_TIMEOUT', 10))
    NOTIFICATIONS_ASYNC = os.environ.get('NOTIFICATIONS_ASYNC', 'true').lower() == 'true'

    # Application settings
    APP_NAME = 'Agenda Cámara 360'
    APP_VERSION = '1.0.0'


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True
    TESTING = False
    SESSION_COOKIE_SECURE = False
    WTF_CSRF_SSL_STRICT = False


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    TESTING = False
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'true').lower() == 'true'
    WTF_CSRF_SSL_STRICT = SESSION_COOKIE_SECURE

    SECRET_KEY = os.environ.get('SECRET_KEY') or Config.SECRET_KEY
    DATABASE_PATH = os.environ.get('DATABASE_PATH') or Config.DATABASE_PATH

    # URL scheme preference (follows SESSION_COOKIE_SECURE setting)
    PREFERRED_URL_SCHEME = 'https' if SESSION_COOKIE_SECURE else 'http'

    @classmethod
    def validate(cls) -> None:
        """Validate that required production environment variables are set."""
        secret_key = os.environ.get('SECRET_KEY')
        if not secret_key:
            raise ValueError("SECRET_KEY environment variable must be set in production")
        if len(secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters in production")
        if not os.environ.get('DATABASE_PATH'):
            raise ValueError("DATABASE_PATH environment variable must be set in production")
        if not os.environ.get('CAMERA_NOTIFICATION_WEBHOOK_URL'):
            raise ValueError("CAMERA_NOTIFICATION_WEBHOOK_URL must be set in production")


class TestConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    DEBUG = True
    WTF_CSRF_ENABLED = False  # Disable CSRF for tests
    DATABASE_PATH = os.environ.get('DATABASE_PATH', ':memory:')
    DATABASE_BUSY_TIMEOUT = 1
    SECRET_KEY = 'test-secret-key'
    CAMERA_NOTIFICATION_WEBHOOK_URL = None
    CALENDAR_SYNC_URL = None
    NOTIFICATIONS_ASYNC = False


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'test': TestConfig,
    'default': DevelopmentConfig
}
