"""
Authentication routes: login, logout, CSRF token.
Session-based authentication for the camera booking API.
"""

from flask import Blueprint
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf

from blueprints.auth.forms import LoginForm
from models.user import User, get_user_by_username, update_last_login, check_password
from utils.api_response import api_success, api_error
from utils.messages import MESSAGES

auth_bp = Blueprint('auth', __name__)


def _user_payload(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'name': user.full_name or user.username,
        'role': user.role,
    }


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Login with username and password (form or JSON body).

    Request body:
        username: Username (required)
        password: Password (required)
        remember_me: Keep session (optional)

    Returns:
        JSON with the logged-in user
    """
    if current_user.is_authenticated:
        return api_success(data=_user_payload(current_user))

    form = LoginForm()

    if not form.validate_on_submit():
        return api_error(MESSAGES['data_required'], status=400, errors=form.errors)

    # Get user by username
    user_dict = get_user_by_username(form.username.data)

    # Check credentials
    if user_dict is None or not check_password(user_dict, form.password.data):
        return api_error(MESSAGES['invalid_credentials'], status=401)

    # Check if user is active
    if not user_dict.get('active'):
        return api_error(MESSAGES['account_disabled'], status=403)

    user = User(user_dict)
    login_user(user, remember=form.remember_me.data)

    # Update last login timestamp
    update_last_login(user.id)

    return api_success(
        data=_user_payload(user),
        message=MESSAGES['login_success'].format(name=user.full_name or user.username)
    )


@auth_bp.route('/logout', methods=['POST'])
@login_required
def logout():
    """Logout current user."""
    logout_user()
    return api_success(message=MESSAGES['logout_success'])


@auth_bp.route('/csrf-token', methods=['GET'])
def csrf_token():
    """CSRF token for clients posting forms or JSON with csrf_token."""
    return api_success(data={'csrf_token': generate_csrf()})
