"""
User model and data access functions.
Handles agent/admin lookup, authentication, and Flask-Login integration.
"""

from werkzeug.security import generate_password_hash, check_password_hash
from database import get_db
from utils.validators import validate_email


ROLES = ('agent', 'admin')


class User:
    """
    User class for Flask-Login integration.
    Wraps database row dictionary with required Flask-Login properties.
    """

    def __init__(self, user_dict):
        """
        Initialize User from database row.

        Args:
            user_dict: Dictionary with user data from database
        """
        self.id = user_dict['id']
        self.username = user_dict['username']
        self.email = user_dict['email']
        self.first_name = user_dict.get('first_name')
        self.last_name = user_dict.get('last_name')
        self.phone = user_dict.get('phone')
        self.role = user_dict['role']
        self.active = user_dict['active']
        self.created_at = user_dict['created_at']
        self.last_login = user_dict.get('last_login')

    @property
    def full_name(self):
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    @property
    def is_admin(self):
        return self.role == 'admin'

    @property
    def is_authenticated(self):
        """Required by Flask-Login."""
        return True

    @property
    def is_active(self):
        """Required by Flask-Login."""
        return self.active == 1

    @property
    def is_anonymous(self):
        """Required by Flask-Login."""
        return False

    def get_id(self):
        """Required by Flask-Login. Returns user ID as unicode string."""
        return str(self.id)


def get_user_by_id(user_id: int) -> dict:
    """
    Get user by ID.

    Args:
        user_id: User ID

    Returns:
        User dict or None if not found
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM users WHERE id = ?', (user_id,))
    row = cursor.fetchone()
    return dict(row) if row else None


def get_user_by_username(username: str) -> dict:
    """
    Get user by username.

    Args:
        username: Username to search for

    Returns:
        User dict or None if not found
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('SELECT * FROM users WHERE username = ?', (username,))
    row = cursor.fetchone()
    return dict(row) if row else None


def get_users_by_ids(user_ids) -> dict:
    """Map of user id -> user dict for the given ids."""
    user_ids = [uid for uid in set(user_ids) if uid is not None]
    if not user_ids:
        return {}

    db = get_db()
    placeholders = ','.join('?' * len(user_ids))
    cursor = db.execute(f'SELECT * FROM users WHERE id IN ({placeholders})', user_ids)
    return {row['id']: dict(row) for row in cursor.fetchall()}


def get_agent_contact(user_id: int) -> dict:
    """
    Contact info used in notification payloads.

    Returns:
        dict: {'name', 'email', 'phone'}; empty strings for unknown users
    """
    user = get_user_by_id(user_id) if user_id else None
    if not user:
        return {'name': '', 'email': '', 'phone': ''}

    return {
        'name': f"{user.get('first_name') or ''} {user.get('last_name') or ''}".strip() or user['username'],
        'email': user['email'],
        'phone': user.get('phone') or '',
    }


def create_user(
    username: str,
    email: str,
    password: str,
    first_name: str = None,
    last_name: str = None,
    phone: str = None,
    role: str = 'agent'
) -> int:
    """
    Create new user.

    Args:
        username: Unique username
        email: Unique email
        password: Plain text password (will be hashed)
        first_name: First name
        last_name: Last name
        phone: Phone number for notifications
        role: 'agent' or 'admin'

    Returns:
        New user ID

    Raises:
        ValueError: If role or email is invalid
    """
    if role not in ROLES:
        raise ValueError(f"Rol no válido: {role}")
    if not validate_email(email):
        raise ValueError(f"Correo inválido: {email}")

    db = get_db()
    cursor = db.cursor()

    password_hash = generate_password_hash(password)

    cursor.execute('''
        INSERT INTO users (username, email, password_hash, first_name, last_name, phone, role)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    ''', (username, email, password_hash, first_name, last_name, phone, role))

    db.commit()
    return cursor.lastrowid


def is_admin(user_id: int) -> bool:
    """Check whether a user id belongs to an active administrator."""
    user = get_user_by_id(user_id) if user_id else None
    return bool(user and user['role'] == 'admin' and user['active'])


def check_password(user_dict: dict, password: str) -> bool:
    """
    Verify password against stored hash.

    Args:
        user_dict: User dictionary with password_hash
        password: Plain text password to check

    Returns:
        True if password matches
    """
    if not user_dict or 'password_hash' not in user_dict:
        return False
    return check_password_hash(user_dict['password_hash'], password)


def update_last_login(user_id: int) -> bool:
    """
    Update user's last login timestamp.

    Args:
        user_id: User ID

    Returns:
        True if updated successfully
    """
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        UPDATE users SET last_login = CURRENT_TIMESTAMP
        WHERE id = ?
    ''', (user_id,))
    db.commit()
    return cursor.rowcount > 0
