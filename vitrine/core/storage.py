"""
Storage Utility
===============

Image encoding for project images. IMAGE_STORAGE picks the encoding:

- base64:  inline data URL stored straight in the database
- local:   file saved under UPLOAD_FOLDER, served at /uploads/<name>
- service: delegated to the external image service
"""

import base64
import mimetypes
import os
import uuid

from werkzeug.security import safe_join

from . import image_service
from .config import get_config_value

UPLOADS_URL_PREFIX = '/uploads/'
STORAGE_BACKENDS = ('base64', 'local', 'service')


class ImageValidationError(ValueError):
    """Upload is missing, not an image, or too large"""


def _max_size():
    return int(get_config_value('MAX_IMAGE_SIZE', 5 * 1024 * 1024))


def _guess_mimetype(file):
    mimetype = (file.mimetype or '').lower()
    if mimetype and mimetype != 'application/octet-stream':
        return mimetype
    guessed, _ = mimetypes.guess_type(file.filename or '')
    return (guessed or mimetype).lower()


def read_image(file, label=None):
    """Validate an uploaded FileStorage and return (bytes, mimetype).

    Args:
        file: werkzeug FileStorage from request.files.
        label: Optional field label used in the type error ("main image").
    """
    if file is None or not file.filename:
        raise ImageValidationError('No file uploaded')

    mimetype = _guess_mimetype(file)
    if not mimetype.startswith('image/'):
        suffix = f' for {label}' if label else ''
        raise ImageValidationError(f'Only image files are allowed{suffix}')

    max_size = _max_size()
    file_bytes = file.read(max_size + 1)
    if not file_bytes:
        raise ImageValidationError('Uploaded file is empty')
    if len(file_bytes) > max_size:
        limit_mb = max_size / (1024 * 1024)
        raise ImageValidationError(f'File size exceeds maximum limit of {limit_mb:g}MB')

    return file_bytes, mimetype


def encode_data_url(file_bytes, mimetype):
    """Inline Base64 encoding: data:<mimetype>;base64,<payload>"""
    payload = base64.b64encode(file_bytes).decode('ascii')
    return f"data:{mimetype};base64,{payload}"


def _unique_filename(original, mimetype):
    ext = ''
    if original and '.' in original:
        ext = original.rsplit('.', 1)[1].lower()
    if not ext or not ext.isalnum():
        ext = (mimetypes.guess_extension(mimetype) or '.bin').lstrip('.')
    return f"{uuid.uuid4().hex}.{ext}"


def _save_locally(file_bytes, filename):
    """Save to the uploads folder and return its public path."""
    upload_dir = get_config_value('UPLOAD_FOLDER')
    os.makedirs(upload_dir, exist_ok=True)
    with open(os.path.join(upload_dir, filename), 'wb') as f:
        f.write(file_bytes)
    return f"{UPLOADS_URL_PREFIX}{filename}"


def store_image(file, label=None):
    """Validate and store an uploaded image using the configured backend.

    Returns:
        The value to persist: a data URL, an /uploads/ path or a service URL.
    """
    file_bytes, mimetype = read_image(file, label)
    backend = get_config_value('IMAGE_STORAGE', 'base64')

    if backend == 'local':
        return _save_locally(file_bytes, _unique_filename(file.filename, mimetype))
    if backend == 'service':
        return image_service.upload_image(file_bytes, file.filename, mimetype)
    if backend != 'base64':
        raise ValueError(f"Unknown IMAGE_STORAGE '{backend}', expected one of {STORAGE_BACKENDS}")
    return encode_data_url(file_bytes, mimetype)


def is_image_reference(value):
    """Whether a submitted string is a usable image reference."""
    if not value:
        return False
    if value.startswith(('http://', 'https://')):
        return True
    if value.startswith('data:image/') and ';base64,' in value:
        return True
    return value.startswith(UPLOADS_URL_PREFIX) and len(value) > len(UPLOADS_URL_PREFIX)


def is_owned_image(url):
    """Images this app stored and may delete (saved files and service images)"""
    if not url:
        return False
    return url.startswith(UPLOADS_URL_PREFIX) or image_service.is_service_url(url)


def resolve_upload_path(filename):
    """Absolute path of an uploaded file, or None if it escapes the folder"""
    return safe_join(get_config_value('UPLOAD_FOLDER'), filename)


def delete_image(url):
    """Delete an owned image by its stored value.

    Returns True if something was deleted. Inline and external images are left alone.
    """
    if not is_owned_image(url):
        return False

    if url.startswith(UPLOADS_URL_PREFIX):
        full_path = resolve_upload_path(url[len(UPLOADS_URL_PREFIX):])
        if full_path and os.path.isfile(full_path):
            os.unlink(full_path)
            return True
        return False

    image_service.delete_image(url)
    return True
