"""
Ops Routes
==========

Public health endpoint and the admin log feed.
"""

from datetime import datetime

from flask import current_app, jsonify, request

from ...core.database import Database
from ...core.logging_service import LoggingService
from ..auth.utils import api_auth_required
from . import ops_admin_bp, ops_health_bp


def _check_database():
    try:
        Database.ping()
        return {'status': 'ok'}
    except Exception as e:
        current_app.logger.warning(f"ops: database check failed: {e}")
        return {'status': 'error', 'error': str(e)}


def _check_projects_table():
    try:
        if Database.table_exists('projects'):
            return {'status': 'ok'}
        return {'status': 'missing'}
    except Exception as e:
        return {'status': 'error', 'error': str(e)}


def _build_health_response():
    """Build the health check response dict."""
    database = _check_database()
    checks = {'database': database}

    if database['status'] == 'ok':
        checks['projects_table'] = _check_projects_table()
        status = 'ok' if checks['projects_table']['status'] == 'ok' else 'warning'
    else:
        checks['projects_table'] = {'status': 'unknown'}
        status = 'critical'

    return {
        'status': status,
        'timestamp': datetime.now().isoformat(),
        'checks': checks,
    }, status


@ops_health_bp.route('/')
@ops_health_bp.route('')
def health_check():
    """Public health endpoint for uptime monitors."""
    data, status = _build_health_response()
    code = 503 if status == 'critical' else 200
    return jsonify(data), code


@ops_admin_bp.route('/api/logs')
@api_auth_required
def api_logs():
    """Recent app_logs rows, optionally filtered by ?level="""
    limit = request.args.get('limit', 50, type=int)
    level = request.args.get('level')
    try:
        rows = LoggingService.recent(limit=max(1, min(limit, 200)), level=level)
    except Exception as e:
        current_app.logger.error(f"ops: could not query logs: {e}")
        return jsonify({'error': 'Failed to fetch logs'}), 500
    logs = [row.to_dict() for row in rows]
    return jsonify({'logs': logs, 'count': len(logs)})
