"""
Project Payload Parsing
=======================

Turns JSON bodies and multipart forms into validated column values.
Shared by the REST handlers and the dashboard forms.
"""

import json
import re
from urllib.parse import urlparse

from ...core.storage import is_image_reference, store_image
from .database import SLUG_MAX_LENGTH, TITLE_MAX_LENGTH, create_slug, slug_exists

SLUG_PATTERN = re.compile(r'[A-Za-z0-9][A-Za-z0-9_-]*')
LINK_FIELDS = (
    ('live_demo_url', 'Live demo URL'),
    ('github_repo_url', 'GitHub repository URL'),
)


class ProjectValidationError(ValueError):
    def __init__(self, message, status_code=400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def read_payload(req):
    """Return (data, files) from a JSON or form request"""
    if req.is_json:
        data = req.get_json(silent=True)
        if not isinstance(data, dict):
            raise ProjectValidationError('Request body must be a JSON object')
        return data, req.files
    return req.form.to_dict(), req.files


def _text(data, key):
    value = data.get(key)
    if value is None:
        return None
    return str(value).strip()


def is_http_url(value):
    parsed = urlparse(value)
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def _optional_url(data, key, label):
    value = _text(data, key)
    if not value:
        return None
    if not is_http_url(value):
        raise ProjectValidationError(f'{label} must be a valid URL')
    return value


def _check_slug(slug):
    if not SLUG_PATTERN.fullmatch(slug):
        raise ProjectValidationError('Slug may only contain letters, numbers, hyphens and underscores')
    if len(slug) > SLUG_MAX_LENGTH:
        raise ProjectValidationError(f'Slug must be at most {SLUG_MAX_LENGTH} characters')


def _check_title(title):
    if len(title) > TITLE_MAX_LENGTH:
        raise ProjectValidationError(f'Title must be at most {TITLE_MAX_LENGTH} characters')


def parse_screenshots(raw):
    """Screenshots arrive as a list (JSON) or a JSON-encoded list (form data)"""
    if raw is None:
        return None
    if isinstance(raw, str):
        if not raw.strip():
            return []
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ProjectValidationError('Screenshots must be a JSON array of strings')

    if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
        raise ProjectValidationError('Screenshots must be a JSON array of strings')

    screenshots = [item.strip() for item in raw if item.strip()]
    for item in screenshots:
        if not is_image_reference(item):
            raise ProjectValidationError('Screenshots must be image URLs')
    return screenshots


def _main_image(data, files, stored):
    """Uploaded `image` file wins over an `image_url` reference"""
    file = files.get('image')
    if file is not None and file.filename:
        image_url = store_image(file, label='main image')
        stored.append(image_url)
        return image_url

    image_url = _text(data, 'image_url')
    if image_url:
        if not is_image_reference(image_url):
            raise ProjectValidationError('Image URL must be an http(s) URL, an image data URL or an uploaded file path')
        return image_url
    return None


def _uploaded_screenshots(files, stored):
    uploaded = []
    for file in files.getlist('screenshot_files'):
        if file is not None and file.filename:
            image_url = store_image(file, label='screenshots')
            stored.append(image_url)
            uploaded.append(image_url)
    return uploaded


def build_new_project(data, files, stored):
    """Validate a create request and return the column values.

    Text fields are checked before any image is stored. Every image stored
    while building is appended to `stored`, also when a later step raises.
    """
    title = _text(data, 'title')
    short_description = _text(data, 'short_description')
    slug = _text(data, 'slug')

    if not title or not short_description:
        raise ProjectValidationError('Missing required fields')
    _check_title(title)

    if slug:
        _check_slug(slug)
        if slug_exists(slug):
            raise ProjectValidationError('Slug already exists', 409)
    else:
        slug = create_slug(title)

    fields = {
        'title': title,
        'slug': slug,
        'short_description': short_description,
        'description': _text(data, 'description') or None,
        'screenshots': parse_screenshots(data.get('screenshots')) or [],
    }
    for key, label in LINK_FIELDS:
        fields[key] = _optional_url(data, key, label)

    has_image_file = files.get('image') is not None and files.get('image').filename
    if not has_image_file and not _text(data, 'image_url'):
        raise ProjectValidationError('Main image is required')

    fields['image_url'] = _main_image(data, files, stored)
    fields['screenshots'] = fields['screenshots'] + _uploaded_screenshots(files, stored)
    return fields


def build_project_changes(project, data, files, stored):
    """Validate an update request and return only the columns that change.

    Blank title, slug or short description keep the current value.
    Description and links are replaced whenever they are sent, so a blank value clears them.
    """
    changes = {}

    title = _text(data, 'title')
    if title and title != project.title:
        _check_title(title)
        changes['title'] = title

    slug = _text(data, 'slug')
    if slug and slug != project.slug:
        _check_slug(slug)
        if slug_exists(slug, exclude_id=project.id):
            raise ProjectValidationError('Slug already exists', 409)
        changes['slug'] = slug

    short_description = _text(data, 'short_description')
    if short_description:
        changes['short_description'] = short_description

    if data.get('description') is not None:
        changes['description'] = _text(data, 'description') or None

    for key, label in LINK_FIELDS:
        if data.get(key) is not None:
            changes[key] = _optional_url(data, key, label)

    screenshots = parse_screenshots(data.get('screenshots'))

    image_url = _main_image(data, files, stored)
    if image_url:
        changes['image_url'] = image_url

    uploaded = _uploaded_screenshots(files, stored)
    if screenshots is not None or uploaded:
        base = screenshots if screenshots is not None else list(project.screenshots or [])
        changes['screenshots'] = base + uploaded

    return changes
