"""
Route decorators for authentication and authorization.
Provides role-based access control for camera API routes.
"""

from functools import wraps
from flask_login import login_required, current_user

from utils.api_response import api_error
from utils.messages import MESSAGES


def role_required(*roles: str):
    """
    Decorator to require one of the given roles for a route.

    Usage:
        @bp.route('/bookings/<int:booking_id>/approve', methods=['POST'])
        @login_required
        @role_required('admin')
        def approve(booking_id):
            ...

    Args:
        roles: Accepted role names ('agent', 'admin')

    Returns:
        Decorator function
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not current_user.is_authenticated or current_user.role not in roles:
                return api_error(MESSAGES['permission_denied'], status=403)

            return func(*args, **kwargs)
        return wrapper
    return decorator


def admin_required(func):
    """Shortcut for role_required('admin')."""
    return role_required('admin')(func)


# Re-export login_required for convenience
__all__ = ['login_required', 'role_required', 'admin_required']
