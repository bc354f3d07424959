"""
Database seed data.
Initial data population for fresh database installations.
"""

import os

from flask import current_app
from werkzeug.security import generate_password_hash


def seed_database(db):
    """Insert initial seed data."""

    # 1. Camera units
    for unit_id in current_app.config.get('CAMERA_UNIT_IDS', (1, 2)):
        db.execute('''
            INSERT INTO camera_units (id, name, status)
            VALUES (?, ?, 'available')
        ''', (unit_id, f'Cámara {unit_id}'))

    # 2. Default administrator
    admin_password = os.environ.get('ADMIN_INITIAL_PASSWORD', 'admin123')
    db.execute('''
        INSERT INTO users (username, email, password_hash, first_name, last_name, role)
        VALUES (?, ?, ?, ?, ?, 'admin')
    ''', ('admin', 'admin@example.com', generate_password_hash(admin_password),
          'Administrador', 'Comercial'))
