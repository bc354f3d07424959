"""WSGI entry point for production deployment (gunicorn wsgi:application)."""
import os

from app import create_app
from config import config

config_name = os.environ.get('FLASK_ENV', 'production')

# Refuse to boot a production server without its secrets and webhook
if config_name == 'production':
    config['production'].validate()

application = create_app(config_name)
