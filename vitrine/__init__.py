"""
Vitrine - A Flask Portfolio CMS
===============================

Portfolio project records with a public JSON API and an admin dashboard:
- Project CRUD API with three image encodings (inline Base64, local files, image service)
- Single-admin session authentication and /dashboard route guard
- Server-rendered dashboard for projects and screenshot galleries
- Health endpoint, persistent app logs and Flask CLI commands

Usage:
    from flask import Flask
    from vitrine import Vitrine

    app = Flask(__name__)
    Vitrine(app, {'features': {'ops': False}})
"""

import logging
import os
from datetime import timedelta

from flask import Flask

from .core.config import DEFAULT_KEYS, Config, database_uri
from .core.database import db

__version__ = '0.1.0'

logger = logging.getLogger(__name__)

DEFAULT_FEATURES = {
    'projects': True,
    'uploads': True,
    'dashboard': True,
    'ops': True,
}


class Vitrine:
    """Flask extension that wires the Vitrine modules into an app."""

    def __init__(self, app=None, config=None):
        self._config = dict(config or {})
        self._registered = []
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self._apply_config_defaults(app)
        self._setup_database_dir(app)
        self._setup_database(app)
        self._register_blueprints(app)

        from .modules.auth import init_route_guard
        init_route_guard(app)

        self._register_context_processor(app)

        from .cli import register_commands
        register_commands(app)

        app.extensions['vitrine'] = self
        logger.info("Vitrine initialised with modules: %s", ', '.join(self._registered))

    # ===== Setup steps =====

    def _apply_config_defaults(self, app):
        for key in DEFAULT_KEYS:
            if app.config.get(key) is None:
                app.config[key] = getattr(Config, key)

        if self._config.get('brand_name'):
            app.config['BRAND_NAME'] = self._config['brand_name']

        app.config.setdefault('SQLALCHEMY_DATABASE_URI',
                              database_uri(app.config['DB_DIR'], app.config.get('DATABASE_URL')))
        app.config.setdefault('SQLALCHEMY_TRACK_MODIFICATIONS', False)

        # Flask-CORS reads CORS_ORIGINS from app.config; a comma-separated value means a list
        origins = app.config['CORS_ORIGINS']
        if isinstance(origins, str) and ',' in origins:
            app.config['CORS_ORIGINS'] = [o.strip() for o in origins.split(',') if o.strip()]

        app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(hours=int(app.config['SESSION_LIFETIME_HOURS']))
        app.config['SESSION_COOKIE_HTTPONLY'] = True
        if app.config.get('SESSION_COOKIE_SAMESITE') is None:
            app.config['SESSION_COOKIE_SAMESITE'] = 'Strict'
        app.config['SESSION_COOKIE_SECURE'] = app.config['ENVIRONMENT'] == 'production'

    def _setup_database_dir(self, app):
        db_dir = app.config['DB_DIR']
        if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite') and not os.path.isdir(db_dir):
            os.makedirs(db_dir, exist_ok=True)
            logger.info("Created database directory %s", db_dir)

    def _setup_database(self, app):
        # Models must be imported so create_all sees their tables
        from .core.logging_service import AppLog  # noqa: F401
        from .modules.projects.database import init_projects_db

        db.init_app(app)
        with app.app_context():
            try:
                db.create_all()
                init_projects_db()
            except Exception as e:
                logger.error(f"Error initialising database: {e}")

    def _features(self):
        features = dict(DEFAULT_FEATURES)
        features.update(self._config.get('features', {}))
        return features

    def _register_blueprints(self, app):
        from .modules.auth import auth_bp
        app.register_blueprint(auth_bp)
        self._registered.append('auth')

        features = self._features()

        if features.get('projects'):
            from .modules.projects import projects_bp
            app.register_blueprint(projects_bp)
            self._registered.append('projects')

        if features.get('uploads'):
            from .modules.uploads import uploads_bp
            app.register_blueprint(uploads_bp)
            self._registered.append('uploads')

        if features.get('dashboard'):
            from .modules.dashboard import dashboard_bp
            app.register_blueprint(dashboard_bp)
            self._registered.append('dashboard')

        if features.get('ops'):
            from .modules.ops import ops_admin_bp, ops_health_bp
            app.register_blueprint(ops_health_bp)
            app.register_blueprint(ops_admin_bp)
            self._registered.append('ops')

    def _register_context_processor(self, app):
        features = self._features()

        @app.context_processor
        def inject_vitrine_config():
            return {
                'vitrine_config': {
                    'features': features,
                    'image_storage': app.config['IMAGE_STORAGE'],
                },
                'brand_name': app.config['BRAND_NAME'] or 'Portfolio',
            }

    def get_registered_modules(self):
        return list(self._registered)


def create_app(config=None, vitrine_config=None):
    """Application factory used by the starter app and the tests.

    Args:
        config: Values placed on app.config before Vitrine reads it.
        vitrine_config: Extension options such as {'features': {...}}.
    """
    app = Flask(__name__)
    app.config.update(config or {})
    Vitrine(app, vitrine_config)
    return app


__all__ = ['Vitrine', 'create_app', 'db', '__version__']
