import hmac
from datetime import datetime, timezone
from functools import wraps

from flask import jsonify, redirect, request, session, url_for
from werkzeug.security import check_password_hash

from ...core.config import get_config_value

# Session keys: a validity flag plus the admin username
SESSION_VALID = 'valid'
SESSION_USER = 'user'
SESSION_CREATED_AT = 'created_at'


def admin_username():
    return get_config_value('ADMIN_USER', 'admin')


def authenticate_user(username, password):
    """Check the single admin credential"""
    if not username or not password:
        return False
    if not hmac.compare_digest(str(username).encode(), admin_username().encode()):
        return False

    password_hash = get_config_value('ADMIN_PASS_HASH')
    if password_hash:
        return check_password_hash(password_hash, password)
    return hmac.compare_digest(str(password).encode(), str(get_config_value('ADMIN_PASS', 'admin')).encode())


def is_user_authenticated():
    """True when the session carries a valid flag for the admin user"""
    return session.get(SESSION_VALID) is True and session.get(SESSION_USER) == admin_username()


def create_session():
    session.clear()
    session[SESSION_VALID] = True
    session[SESSION_USER] = admin_username()
    session[SESSION_CREATED_AT] = datetime.now(timezone.utc).isoformat()
    session.permanent = True


def destroy_session():
    session.clear()


def safe_next_url(target):
    """Only allow redirects to local paths"""
    if target and target.startswith('/') and not target.startswith('//') and '\\' not in target:
        return target
    return None


def api_auth_required(f):
    """Decorator for API routes: 401 JSON when not signed in"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_user_authenticated():
            return jsonify({'error': 'Unauthorized'}), 401
        return f(*args, **kwargs)
    return decorated_function


def login_required(f):
    """Decorator for pages: redirect to the login form when not signed in"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not is_user_authenticated():
            return redirect(url_for('auth.login_page', next=request.path))
        return f(*args, **kwargs)
    return decorated_function
