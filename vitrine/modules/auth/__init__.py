"""
Vitrine Auth Module

Single-admin authentication:
- JSON login/logout API for the dashboard scripts
- HTML login form
- Session helpers and route decorators
- Path-based route guard for /dashboard
"""

from flask import Blueprint

auth_bp = Blueprint(
    'auth',
    __name__,
    template_folder='templates'
)

from . import routes
from .middleware import init_route_guard
from .utils import (api_auth_required, authenticate_user, create_session, destroy_session,
                    is_user_authenticated, login_required)

__all__ = ['auth_bp', 'init_route_guard', 'api_auth_required', 'authenticate_user',
           'create_session', 'destroy_session', 'is_user_authenticated', 'login_required']
