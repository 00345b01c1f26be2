"""
Image Service Client
====================

Talks to the standalone image service used when IMAGE_STORAGE = 'service'.

    POST   {IMAGE_SERVICE_URL}/api/images/upload   multipart "file"
           -> {id, url, filename, size, mime_type, created_at}
    DELETE {IMAGE_SERVICE_URL}/api/images/<id>
"""

import requests

from .config import get_config_value
from .logging_service import LoggingService


class ImageServiceError(RuntimeError):
    """The image service rejected a request or could not be reached"""


def service_url():
    return get_config_value('IMAGE_SERVICE_URL', 'http://localhost:8090').rstrip('/')


def is_service_url(url):
    """Whether an image URL was issued by the image service"""
    return bool(url) and url.startswith(service_url() + '/')


def _error_message(response, fallback):
    try:
        data = response.json()
    except ValueError:
        return fallback
    return (data.get('error') if isinstance(data, dict) else None) or fallback


def upload_image(file_bytes, filename, mimetype):
    """Upload image bytes to the image service.

    Returns:
        The public URL the service assigned to the image.
    """
    endpoint = f"{service_url()}/api/images/upload"
    timeout = get_config_value('IMAGE_SERVICE_TIMEOUT', 15)

    try:
        response = requests.post(
            endpoint,
            files={'file': (filename, file_bytes, mimetype)},
            timeout=timeout,
        )
    except requests.RequestException as e:
        LoggingService.log_api_call('image_service', endpoint, 'POST', 503, {'error': str(e)})
        raise ImageServiceError(f'Failed to upload image: {e}') from e

    LoggingService.log_api_call('image_service', endpoint, 'POST', response.status_code)
    if not response.ok:
        raise ImageServiceError(_error_message(response, 'Failed to upload image'))

    try:
        data = response.json()
    except ValueError as e:
        raise ImageServiceError('Image service returned an invalid response') from e

    url = data.get('url')
    if not url:
        raise ImageServiceError('Image service response did not include a URL')
    return url


def delete_image(image_url):
    """Delete an image from the image service by its URL"""
    image_id = (image_url or '').rstrip('/').split('/')[-1]
    if not image_id:
        raise ImageServiceError('Invalid image URL')

    endpoint = f"{service_url()}/api/images/{image_id}"
    timeout = get_config_value('IMAGE_SERVICE_TIMEOUT', 15)

    try:
        response = requests.delete(endpoint, timeout=timeout)
    except requests.RequestException as e:
        LoggingService.log_api_call('image_service', endpoint, 'DELETE', 503, {'error': str(e)})
        raise ImageServiceError(f'Failed to delete image: {e}') from e

    LoggingService.log_api_call('image_service', endpoint, 'DELETE', response.status_code)
    if not response.ok:
        raise ImageServiceError(_error_message(response, 'Failed to delete image'))
