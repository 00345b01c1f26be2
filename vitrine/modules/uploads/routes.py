import logging
import os

from flask import abort, jsonify, request, send_from_directory

from ...core.config import get_config_value
from ...core.image_service import ImageServiceError
from ...core.logging_service import LoggingService
from ...core.storage import ImageValidationError, resolve_upload_path, store_image
from ..auth.utils import api_auth_required
from . import uploads_bp

logger = logging.getLogger(__name__)

UPLOAD_CACHE_CONTROL = 'public, max-age=31536000, immutable'


@uploads_bp.route('/api/upload', methods=['POST'])
@api_auth_required
def upload_image():
    """Store one image and return its reference as imageUrl"""
    try:
        image_url = store_image(request.files.get('file'))
    except ImageValidationError as e:
        return jsonify({'error': str(e)}), 400
    except ImageServiceError as e:
        return jsonify({'error': str(e)}), 502
    except Exception as e:
        logger.error(f"Error processing upload: {e}")
        LoggingService.log_error_with_traceback('uploads', e)
        return jsonify({'error': 'Failed to process image'}), 500

    LoggingService.log_user_action('uploads', 'uploaded image')
    return jsonify({'imageUrl': image_url}), 201


@uploads_bp.route('/uploads/<path:filename>')
def serve_upload(filename):
    """Serve a locally stored image with long-lived caching"""
    full_path = resolve_upload_path(filename)
    if not full_path or not os.path.isfile(full_path):
        abort(404)

    response = send_from_directory(os.path.abspath(get_config_value('UPLOAD_FOLDER')), filename)
    response.headers['Cache-Control'] = UPLOAD_CACHE_CONTROL
    return response
