"""Persistent application log."""

import json

from vitrine.core.logging_service import AppLog, LoggingService


def test_log_persists_row_with_request_context(app):
    with app.test_request_context('/api/projects', headers={'User-Agent': 'pytest', 'X-Forwarded-For': '10.0.0.1, 10.0.0.2'}):
        LoggingService.info('projects', 'hello', {'key': 'value'}, user_id='admin')

        row = AppLog.query.order_by(AppLog.id.desc()).first()

    assert row.level == 'INFO'
    assert row.source == 'projects'
    assert row.message == 'hello'
    assert json.loads(row.details) == {'key': 'value'}
    assert row.ip_address == '10.0.0.1'
    assert row.user_agent == 'pytest'
    assert row.request_path == '/api/projects'
    assert row.user_id == 'admin'


def test_log_without_app_context_does_not_raise():
    LoggingService.warning('system', 'no app here')


def test_failed_login_is_security_event(app, client):
    client.post('/api/auth/login', json={'username': 'admin', 'password': 'wrong'})

    with app.app_context():
        rows = LoggingService.recent(level='warning')

    assert any(r.source == 'security' and r.message == 'Failed admin login' for r in rows)


def test_log_error_with_traceback(app):
    with app.app_context():
        try:
            raise ValueError('broken')
        except ValueError as e:
            LoggingService.log_error_with_traceback('projects', e)

        row = LoggingService.recent(limit=1)[0]

    assert row.level == 'ERROR'
    details = json.loads(row.details)
    assert details['error_type'] == 'ValueError'
    assert 'Traceback' in details['traceback']


def test_log_api_call_levels(app):
    with app.app_context():
        LoggingService.log_api_call('image_service', 'http://images.test/api/images/upload', 'POST', 500)
        row = LoggingService.recent(limit=1)[0]

    assert row.level == 'ERROR'
    assert 'Status: 500' in row.message


def test_cleanup_old_logs_keeps_recent_rows(app):
    with app.app_context():
        LoggingService.info('system', 'fresh')
        deleted = LoggingService.cleanup_old_logs(days_to_keep=30)
        messages = [r.message for r in LoggingService.recent()]

    assert deleted == 0
    assert 'fresh' in messages
