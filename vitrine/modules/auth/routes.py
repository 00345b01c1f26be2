from flask import flash, jsonify, redirect, render_template, request, url_for

from ...core.logging_service import LoggingService
from . import auth_bp
from .utils import (admin_username, authenticate_user, create_session, destroy_session,
                    is_user_authenticated, safe_next_url)


# ===== JSON API =====

@auth_bp.route('/api/auth/login', methods=['POST'])
def api_login():
    """Sign in with {username, password}"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    username = data.get('username')
    password = data.get('password')

    if not username or not password:
        return jsonify({'error': 'Username and password are required'}), 400

    if authenticate_user(username, password):
        create_session()
        LoggingService.log_user_action('auth', 'login', user_id=admin_username())
        return jsonify({'success': True})

    LoggingService.log_security_event('Failed admin login', {'username': str(username)[:100]})
    return jsonify({'error': 'Invalid credentials'}), 401


@auth_bp.route('/api/auth/login', methods=['DELETE'])
def api_logout():
    """Sign out"""
    destroy_session()
    return jsonify({'success': True})


# ===== Pages =====

@auth_bp.route('/auth/login', methods=['GET', 'POST'])
def login_page():
    """Dashboard login form"""
    next_url = safe_next_url(request.values.get('next'))

    if request.method == 'GET' and is_user_authenticated():
        return redirect(next_url or url_for('dashboard.projects_list'))

    if request.method == 'POST':
        username = request.form.get('username', '').strip()
        password = request.form.get('password', '')

        if not username or not password:
            flash('Username and password are required', 'error')
            return render_template('auth/login.html', next_url=next_url, username=username), 400

        if not authenticate_user(username, password):
            LoggingService.log_security_event('Failed admin login', {'username': username[:100]})
            flash('Invalid credentials', 'error')
            return render_template('auth/login.html', next_url=next_url, username=username), 401

        create_session()
        LoggingService.log_user_action('auth', 'login', user_id=admin_username())
        return redirect(next_url or url_for('dashboard.projects_list'))

    return render_template('auth/login.html', next_url=next_url, username='')


@auth_bp.route('/auth/logout', methods=['POST'])
def logout():
    """Sign out and return to the login form"""
    if is_user_authenticated():
        LoggingService.log_user_action('auth', 'logout', user_id=admin_username())
    destroy_session()
    flash('You have been logged out', 'info')
    return redirect(url_for('auth.login_page'))
