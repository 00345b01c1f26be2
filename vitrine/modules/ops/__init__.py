"""
Ops Module
==========

Health monitoring for uptime checks and a log feed for the admin.

Usage:
    from vitrine.modules.ops import ops_health_bp, ops_admin_bp

    app.register_blueprint(ops_health_bp)  # Registers at /health
    app.register_blueprint(ops_admin_bp)   # Registers at /dashboard/ops
"""

from flask import Blueprint

# Public health endpoint (no auth, for uptime monitors)
ops_health_bp = Blueprint(
    'ops_health',
    __name__,
    url_prefix='/health'
)

# Admin log feed (session auth, covered by the /dashboard route guard)
ops_admin_bp = Blueprint(
    'ops_admin',
    __name__,
    url_prefix='/dashboard/ops'
)

from . import routes

__all__ = ['ops_health_bp', 'ops_admin_bp']
