"""
Route Guard
===========

Path-based gate in front of every request: unauthenticated visitors to
protected prefixes are redirected to the login form.
"""

from flask import redirect, request, url_for

from .utils import is_user_authenticated

PROTECTED_PREFIXES = ('/dashboard',)


def _is_protected(path, prefixes):
    return any(path == prefix or path.startswith(prefix + '/') for prefix in prefixes)


def init_route_guard(app, prefixes=PROTECTED_PREFIXES):
    """Register the guard as an app-wide before_request hook"""

    @app.before_request
    def guard_protected_paths():
        if _is_protected(request.path, prefixes) and not is_user_authenticated():
            return redirect(url_for('auth.login_page', next=request.full_path.rstrip('?')))
        return None

    return guard_protected_paths
