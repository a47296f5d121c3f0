"""
Authentication routes: login, logout, current user.
Staff sign in here before using the booking API.
"""

import logging
from flask import Blueprint
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf

from blueprints.auth.forms import LoginForm
from models.user import User, get_user_by_username, update_last_login, check_password
from utils.api_response import api_success, api_error
from utils.messages import MESSAGES
from utils.results import ErrorKind

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


def _user_payload(user) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'full_name': user.full_name,
    }


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Process login credentials.

    Form fields:
        username, password, remember_me (optional)

    Returns:
        JSON with the logged-in user, or 400/401 on failure
    """
    if current_user.is_authenticated:
        return api_success(data=_user_payload(current_user))

    form = LoginForm()

    if not form.validate_on_submit():
        first_error = next(iter(form.errors.values()), ['Invalid form'])[0]
        return api_error(first_error, status=400, code=ErrorKind.VALIDATION)

    user_dict = get_user_by_username(form.username.data)

    if user_dict is None or not check_password(user_dict, form.password.data):
        logger.info('Failed login for %s', form.username.data)
        return api_error(MESSAGES['invalid_credentials'], status=401, code=ErrorKind.UNAUTHORIZED)

    if not user_dict.get('active'):
        return api_error(MESSAGES['account_disabled'], status=401, code=ErrorKind.UNAUTHORIZED)

    user = User(user_dict)
    login_user(user, remember=form.remember_me.data)
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


@auth_bp.route('/csrf-token')
def csrf_token():
    """CSRF token to send as X-CSRFToken on staff API writes."""
    return api_success(data={'csrf_token': generate_csrf()})


@auth_bp.route('/me')
@login_required
def me():
    """Return the logged-in user."""
    return api_success(data=_user_payload(current_user))
