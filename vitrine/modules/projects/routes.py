"""
Projects API Routes
===================

GET    /api/projects          public, newest first
GET    /api/projects/<slug>   public
POST   /api/projects          admin, multipart form or JSON
PUT    /api/projects/<slug>   admin, partial update
DELETE /api/projects/<slug>   admin
"""

import logging

from flask import jsonify, request
from flask_cors import cross_origin

from ...core.image_service import ImageServiceError
from ...core.logging_service import LoggingService
from ...core.storage import ImageValidationError
from ..auth.utils import api_auth_required
from . import projects_bp, service
from .database import SlugConflictError, get_all_projects_db, get_project_by_slug_db
from .forms import ProjectValidationError, read_payload

logger = logging.getLogger(__name__)


def _error(message, status_code):
    return jsonify({'error': message}), status_code


def _client_error(e):
    """JSON response for a rejected write, or None if the error is unexpected"""
    if isinstance(e, ProjectValidationError):
        return _error(e.message, e.status_code)
    if isinstance(e, ImageValidationError):
        return _error(str(e), 400)
    if isinstance(e, ImageServiceError):
        return _error(str(e), 502)
    if isinstance(e, SlugConflictError):
        return _error(str(e), 409)
    return None


@projects_bp.route('/api/projects', methods=['GET'])
@cross_origin(methods=['GET'])
def list_projects():
    """All projects, newest first"""
    try:
        projects = get_all_projects_db()
        return jsonify([p.to_dict() for p in projects])
    except Exception as e:
        logger.error(f"Error fetching projects: {e}")
        LoggingService.log_error_with_traceback('projects', e)
        return _error('Failed to fetch projects', 500)


@projects_bp.route('/api/projects/<slug>', methods=['GET'])
@cross_origin(methods=['GET'])
def get_project(slug):
    """Single project by slug"""
    try:
        project = get_project_by_slug_db(slug)
    except Exception as e:
        logger.error(f"Error fetching project {slug}: {e}")
        LoggingService.log_error_with_traceback('projects', e, {'slug': slug})
        return _error('Failed to fetch project', 500)

    if not project:
        return _error('Project not found', 404)
    return jsonify(project.to_dict())


@projects_bp.route('/api/projects', methods=['POST'])
@api_auth_required
def create_project():
    """Create a project from form data or JSON"""
    try:
        data, files = read_payload(request)
        project = service.create_project(data, files)
    except Exception as e:
        response = _client_error(e)
        if response:
            return response
        logger.error(f"Error creating project: {e}")
        LoggingService.log_error_with_traceback('projects', e)
        return _error('Failed to create project', 500)

    LoggingService.log_user_action('projects', f"created project {project.slug}")
    return jsonify(project.to_dict()), 201


@projects_bp.route('/api/projects/<slug>', methods=['PUT'])
@api_auth_required
def update_project(slug):
    """Partially update a project"""
    try:
        project = get_project_by_slug_db(slug)
        if not project:
            return _error('Project not found', 404)

        data, files = read_payload(request)
        service.update_project(project, data, files)
    except Exception as e:
        response = _client_error(e)
        if response:
            return response
        logger.error(f"Error updating project {slug}: {e}")
        LoggingService.log_error_with_traceback('projects', e, {'slug': slug})
        return _error('Failed to update project', 500)

    LoggingService.log_user_action('projects', f"updated project {project.slug}")
    return jsonify(project.to_dict())


@projects_bp.route('/api/projects/<slug>', methods=['DELETE'])
@api_auth_required
def delete_project(slug):
    """Delete a project and release its stored images"""
    try:
        project = get_project_by_slug_db(slug)
        if not project:
            return _error('Project not found', 404)

        service.delete_project(project)
    except Exception as e:
        logger.error(f"Error deleting project {slug}: {e}")
        LoggingService.log_error_with_traceback('projects', e, {'slug': slug})
        return _error('Failed to delete project', 500)

    LoggingService.log_user_action('projects', f"deleted project {slug}")
    return jsonify({'message': 'Project deleted successfully'})
