"""
Shared fixtures: a Vitrine app on a temporary SQLite database per test.

NOTE: pytest is listed under extras_require["dev"] in setup.py.
Install with: pip install -e ".[dev]"
"""

import io
import os
import shutil
import tempfile

import pytest

from vitrine import create_app

ADMIN_USER = 'admin'
ADMIN_PASS = 'secret-pass'

# Smallest valid PNG header; content is never decoded
PNG_BYTES = b'\x89PNG\r\n\x1a\n' + b'\x00' * 32


def png_file(name='shot.png'):
    return (io.BytesIO(PNG_BYTES), name, 'image/png')


@pytest.fixture
def tmp_db_dir():
    """Create a temporary directory for test databases, cleaned up after."""
    d = tempfile.mkdtemp(prefix="vitrine-test-")
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def app_config(tmp_db_dir):
    return {
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'DB_DIR': tmp_db_dir,
        'UPLOAD_FOLDER': os.path.join(tmp_db_dir, 'uploads'),
        'IMAGE_STORAGE': 'base64',
        'IMAGE_SERVICE_URL': 'http://images.test',
        'ADMIN_USER': ADMIN_USER,
        'ADMIN_PASS': ADMIN_PASS,
    }


@pytest.fixture
def app(app_config):
    """Fully initialised Flask app with all Vitrine modules registered."""
    return create_app(app_config)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    """Test client with an admin session"""
    response = client.post('/api/auth/login', json={'username': ADMIN_USER, 'password': ADMIN_PASS})
    assert response.status_code == 200
    return client


@pytest.fixture
def make_project(auth_client):
    """Create a project through the API and return its JSON"""
    def _make(**overrides):
        payload = {
            'title': 'Sample Project',
            'short_description': 'A short summary',
            'image_url': 'https://example.com/main.png',
        }
        payload.update(overrides)
        response = auth_client.post('/api/projects', json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()
    return _make
