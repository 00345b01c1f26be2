"""Image upload endpoint, /uploads/ file serving and the three storage encodings."""

import io
import os
from unittest.mock import MagicMock, patch

import pytest
import requests

from .conftest import PNG_BYTES, png_file


def _upload(client, file=None):
    data = {'file': file} if file is not None else {}
    return client.post('/api/upload', data=data, content_type='multipart/form-data')


@pytest.fixture
def local_storage(app):
    app.config['IMAGE_STORAGE'] = 'local'
    return app.config['UPLOAD_FOLDER']


@pytest.fixture
def service_storage(app):
    app.config['IMAGE_STORAGE'] = 'service'
    return app.config['IMAGE_SERVICE_URL']


# ---------------------------------------------------------------------------
# POST /api/upload
# ---------------------------------------------------------------------------

def test_upload_requires_login(client):
    response = _upload(client, png_file())
    assert response.status_code == 401


def test_upload_base64(auth_client):
    response = _upload(auth_client, png_file())

    assert response.status_code == 201
    assert response.get_json()['imageUrl'].startswith('data:image/png;base64,')


def test_upload_without_file(auth_client):
    response = _upload(auth_client)
    assert response.status_code == 400
    assert response.get_json() == {'error': 'No file uploaded'}


def test_upload_rejects_non_image(auth_client):
    response = _upload(auth_client, (io.BytesIO(b'hello'), 'notes.txt', 'text/plain'))
    assert response.status_code == 400
    assert response.get_json() == {'error': 'Only image files are allowed'}


def test_upload_guesses_type_from_extension(auth_client):
    response = _upload(auth_client, (io.BytesIO(PNG_BYTES), 'photo.jpg', 'application/octet-stream'))
    assert response.status_code == 201
    assert response.get_json()['imageUrl'].startswith('data:image/jpeg;base64,')


def test_upload_rejects_empty_file(auth_client):
    response = _upload(auth_client, (io.BytesIO(b''), 'empty.png', 'image/png'))
    assert response.status_code == 400


def test_upload_rejects_oversized_file(app, auth_client):
    app.config['MAX_IMAGE_SIZE'] = 1024 * 1024

    big = io.BytesIO(b'\x00' * (1024 * 1024 + 1))
    response = _upload(auth_client, (big, 'big.png', 'image/png'))

    assert response.status_code == 400
    assert response.get_json() == {'error': 'File size exceeds maximum limit of 1MB'}


def test_upload_unknown_backend_is_server_error(app, auth_client):
    app.config['IMAGE_STORAGE'] = 'ftp'

    response = _upload(auth_client, png_file())

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to process image'}


# ---------------------------------------------------------------------------
# Local storage and /uploads/ serving
# ---------------------------------------------------------------------------

def test_local_upload_saves_and_serves_file(auth_client, local_storage):
    response = _upload(auth_client, png_file('screen.PNG'))

    assert response.status_code == 201
    image_url = response.get_json()['imageUrl']
    assert image_url.startswith('/uploads/')
    assert image_url.endswith('.png')

    filename = image_url[len('/uploads/'):]
    assert os.path.isfile(os.path.join(local_storage, filename))

    served = auth_client.get(image_url)
    assert served.status_code == 200
    assert served.data == PNG_BYTES
    assert served.mimetype == 'image/png'
    assert served.headers['Cache-Control'] == 'public, max-age=31536000, immutable'


def test_serve_missing_upload(client, local_storage):
    assert client.get('/uploads/nope.png').status_code == 404


def test_serve_rejects_path_traversal(client, local_storage, tmp_db_dir):
    with open(os.path.join(tmp_db_dir, 'portfolio-secret.txt'), 'w') as f:
        f.write('secret')

    response = client.get('/uploads/../portfolio-secret.txt')
    assert response.status_code == 404
    response = client.get('/uploads/%2e%2e/portfolio-secret.txt')
    assert response.status_code == 404


def test_deleting_project_removes_unused_local_files(auth_client, local_storage):
    response = auth_client.post('/api/projects', data={
        'title': 'Local',
        'slug': 'local',
        'short_description': 'Summary',
        'image': png_file(),
    }, content_type='multipart/form-data')
    image_url = response.get_json()['image_url']
    path = os.path.join(local_storage, image_url[len('/uploads/'):])
    assert os.path.isfile(path)

    auth_client.delete('/api/projects/local')

    assert not os.path.exists(path)


def test_shared_local_file_survives_delete(auth_client, local_storage, make_project):
    image_url = _upload(auth_client, png_file()).get_json()['imageUrl']
    make_project(slug='first', image_url=image_url)
    make_project(slug='second', screenshots=[image_url])

    auth_client.delete('/api/projects/first')

    assert os.path.isfile(os.path.join(local_storage, image_url[len('/uploads/'):]))


def test_replacing_main_image_removes_old_file(auth_client, local_storage):
    first = auth_client.post('/api/projects', data={
        'title': 'Replace',
        'slug': 'replace',
        'short_description': 'Summary',
        'image': png_file(),
    }, content_type='multipart/form-data').get_json()['image_url']

    second = auth_client.put('/api/projects/replace', data={'image': png_file()},
                             content_type='multipart/form-data').get_json()['image_url']

    assert first != second
    assert not os.path.exists(os.path.join(local_storage, first[len('/uploads/'):]))
    assert os.path.isfile(os.path.join(local_storage, second[len('/uploads/'):]))


def test_failed_create_removes_stored_files(auth_client, local_storage, make_project):
    make_project(slug='taken')

    response = auth_client.post('/api/projects', data={
        'title': 'Conflict',
        'slug': 'taken',
        'short_description': 'Summary',
        'image': png_file(),
    }, content_type='multipart/form-data')

    assert response.status_code == 409
    assert not os.path.isdir(local_storage) or os.listdir(local_storage) == []


def test_failed_create_keeps_previously_uploaded_file(auth_client, local_storage):
    image_url = _upload(auth_client, png_file()).get_json()['imageUrl']
    path = os.path.join(local_storage, image_url[len('/uploads/'):])

    with patch('vitrine.modules.projects.service.create_project_db', side_effect=RuntimeError('db down')):
        response = auth_client.post('/api/projects', json={
            'title': 'Reuse',
            'short_description': 'Summary',
            'image_url': image_url,
        })

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to create project'}
    assert os.path.isfile(path)


def test_failed_update_keeps_previously_uploaded_file(auth_client, local_storage, make_project):
    make_project(slug='reuse')
    image_url = _upload(auth_client, png_file()).get_json()['imageUrl']
    path = os.path.join(local_storage, image_url[len('/uploads/'):])

    with patch('vitrine.modules.projects.service.update_project_db', side_effect=RuntimeError('db down')):
        response = auth_client.put('/api/projects/reuse', json={'image_url': image_url})

    assert response.status_code == 500
    assert response.get_json() == {'error': 'Failed to update project'}
    assert os.path.isfile(path)


def test_rejected_screenshot_removes_files_stored_before_it(auth_client, local_storage):
    response = auth_client.post('/api/projects', data={
        'title': 'Partial',
        'slug': 'partial',
        'short_description': 'Summary',
        'image': png_file('main.png'),
        'screenshot_files': [png_file('a.png'), (io.BytesIO(b'hello'), 'b.txt', 'text/plain')],
    }, content_type='multipart/form-data')

    assert response.status_code == 400
    assert response.get_json() == {'error': 'Only image files are allowed for screenshots'}
    assert not os.path.isdir(local_storage) or os.listdir(local_storage) == []


# ---------------------------------------------------------------------------
# Image service backend
# ---------------------------------------------------------------------------

def _service_response(status_code, payload):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    response.json.return_value = payload
    return response


def test_service_upload(auth_client, service_storage):
    payload = {'id': 'abc123', 'url': f'{service_storage}/images/abc123', 'filename': 'a.png'}

    with patch('vitrine.core.image_service.requests.post',
               return_value=_service_response(201, payload)) as mock_post:
        response = _upload(auth_client, png_file('a.png'))

    assert response.status_code == 201
    assert response.get_json() == {'imageUrl': f'{service_storage}/images/abc123'}

    args, kwargs = mock_post.call_args
    assert args[0] == f'{service_storage}/api/images/upload'
    filename, content, mimetype = kwargs['files']['file']
    assert (filename, content, mimetype) == ('a.png', PNG_BYTES, 'image/png')


def test_service_error_is_bad_gateway(auth_client, service_storage):
    with patch('vitrine.core.image_service.requests.post',
               return_value=_service_response(413, {'error': 'Image too large'})):
        response = _upload(auth_client, png_file())

    assert response.status_code == 502
    assert response.get_json() == {'error': 'Image too large'}


def test_service_unreachable_is_bad_gateway(auth_client, service_storage):
    with patch('vitrine.core.image_service.requests.post',
               side_effect=requests.ConnectionError('refused')):
        response = _upload(auth_client, png_file())

    assert response.status_code == 502
    assert 'Failed to upload image' in response.get_json()['error']


def test_deleting_project_deletes_service_images(auth_client, service_storage, make_project):
    image_url = f'{service_storage}/images/img-1'
    make_project(slug='hosted', image_url=image_url, screenshots=['https://example.com/external.png'])

    with patch('vitrine.core.image_service.requests.delete',
               return_value=_service_response(200, {})) as mock_delete:
        response = auth_client.delete('/api/projects/hosted')

    assert response.status_code == 200
    mock_delete.assert_called_once()
    assert mock_delete.call_args[0][0] == f'{service_storage}/api/images/img-1'


def test_service_delete_failure_does_not_fail_request(auth_client, service_storage, make_project):
    make_project(slug='hosted', image_url=f'{service_storage}/images/img-2')

    with patch('vitrine.core.image_service.requests.delete',
               return_value=_service_response(500, {'error': 'boom'})):
        response = auth_client.delete('/api/projects/hosted')

    assert response.status_code == 200
