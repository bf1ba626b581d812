"""
Authentication module - login, logout, permission checks.
Uses Flask-Login and Werkzeug for password hashing.
"""

from functools import wraps
from flask import Blueprint, request, jsonify, abort, current_app
from flask_login import login_user, logout_user, login_required, current_user
from werkzeug.security import check_password_hash

from db import get_store
from models import User

auth_bp = Blueprint('auth', __name__)


def current_principal():
    """Resolve the current session user (or anonymous visitor) to a Principal."""
    return current_user.to_principal()


def permission_required(permission):
    """Decorator: require a granted permission, 403 otherwise."""
    def decorator(f):
        @wraps(f)
        def decorated_view(*args, **kwargs):
            if not current_user.has_permission(permission):
                current_app.logger.info(
                    "Denied %s %s: missing '%s'",
                    request.method, request.path, permission
                )
                abort(403)
            return f(*args, **kwargs)
        return decorated_view
    return decorator


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Authenticate user.
    Checks password hash, creates session via Flask-Login.
    """
    if current_user.is_authenticated:
        return jsonify({'id': current_user.id, 'username': current_user.username})

    username = request.form.get('username', '').strip()
    password = request.form.get('password', '')

    if not username or not password:
        return jsonify({'error': 'Username and password required.'}), 400

    user_row = get_store().get_user_by_username(username)
    if not user_row or not check_password_hash(user_row['password_hash'], password):
        return jsonify({'error': 'Invalid username or password.'}), 401

    user = User(
        user_id=user_row['id'],
        username=user_row['username'],
        email=user_row['email'],
        permissions=user_row['permissions'],
    )
    login_user(user, remember=bool(request.form.get('remember')))
    return jsonify({'id': user.id, 'username': user.username})


@auth_bp.route('/logout')
@login_required
def logout():
    """Log out current user."""
    logout_user()
    return jsonify({'message': 'You have been logged out.'})
