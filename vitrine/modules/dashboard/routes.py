"""
Dashboard Routes
================

Project management pages. Writes go through projects.service,
so the dashboard and the REST API share validation and image handling.
"""

import logging

from flask import abort, flash, redirect, render_template, request, url_for

from ...core.image_service import ImageServiceError
from ...core.logging_service import LoggingService
from ...core.storage import ImageValidationError
from ..auth.utils import login_required
from ..projects import service
from ..projects.database import SlugConflictError, get_all_projects_db, get_project_by_slug_db
from ..projects.forms import ProjectValidationError
from . import dashboard_bp

logger = logging.getLogger(__name__)

THUMBNAIL_LIMIT = 3
FORM_ERRORS = (ProjectValidationError, ImageValidationError, ImageServiceError, SlugConflictError)


def _screenshot_lines(raw):
    return [line.strip() for line in (raw or '').splitlines() if line.strip()]


def _form_payload(project=None):
    """Map the HTML form onto the payload the project service expects.

    New screenshot URLs come one per line. On edit, existing screenshots are kept
    unless their index is ticked in remove_screenshots.
    """
    data = request.form.to_dict()
    new_urls = _screenshot_lines(data.pop('screenshot_urls', ''))
    data.pop('remove_screenshots', None)

    if project is None:
        data['screenshots'] = new_urls
    else:
        removed = set(request.form.getlist('remove_screenshots'))
        kept = [url for index, url in enumerate(project.screenshots or []) if str(index) not in removed]
        data['screenshots'] = kept + new_urls
    return data


def _error_message(e):
    return e.message if isinstance(e, ProjectValidationError) else str(e)


def _render_form(project=None, values=None, error=None, status_code=200):
    if values is None:
        values = project.to_dict() if project else {}
    return render_template(
        'dashboard/project_form.html',
        project=project,
        values=values,
        error=error,
    ), status_code


@dashboard_bp.route('')
@dashboard_bp.route('/')
@login_required
def index():
    return redirect(url_for('dashboard.projects_list'))


@dashboard_bp.route('/projects')
@login_required
def projects_list():
    """Project table"""
    try:
        projects = get_all_projects_db()
    except Exception as e:
        logger.error(f"Error loading projects: {e}")
        LoggingService.log_error_with_traceback('dashboard', e)
        flash('Failed to fetch projects', 'error')
        projects = []
    return render_template('dashboard/projects.html', projects=projects, thumbnail_limit=THUMBNAIL_LIMIT)


@dashboard_bp.route('/projects/new', methods=['GET', 'POST'])
@login_required
def new_project():
    """Create form"""
    if request.method == 'GET':
        return _render_form()

    try:
        project = service.create_project(_form_payload(), request.files)
    except FORM_ERRORS as e:
        return _render_form(values=request.form, error=_error_message(e), status_code=400)
    except Exception as e:
        logger.error(f"Error creating project: {e}")
        LoggingService.log_error_with_traceback('dashboard', e)
        return _render_form(values=request.form, error='Failed to create project', status_code=500)

    LoggingService.log_user_action('dashboard', f"created project {project.slug}")
    flash(f'Project "{project.title}" created', 'success')
    return redirect(url_for('dashboard.projects_list'))


@dashboard_bp.route('/projects/<slug>/edit', methods=['GET', 'POST'])
@login_required
def edit_project(slug):
    """Edit form"""
    project = get_project_by_slug_db(slug)
    if not project:
        abort(404)

    if request.method == 'GET':
        return _render_form(project)

    try:
        service.update_project(project, _form_payload(project), request.files)
    except FORM_ERRORS as e:
        return _render_form(project, values=request.form, error=_error_message(e), status_code=400)
    except Exception as e:
        logger.error(f"Error updating project {slug}: {e}")
        LoggingService.log_error_with_traceback('dashboard', e, {'slug': slug})
        return _render_form(project, values=request.form, error='Failed to update project', status_code=500)

    LoggingService.log_user_action('dashboard', f"updated project {project.slug}")
    flash(f'Project "{project.title}" updated', 'success')
    return redirect(url_for('dashboard.projects_list'))


@dashboard_bp.route('/projects/<slug>/delete', methods=['POST'])
@login_required
def delete_project(slug):
    project = get_project_by_slug_db(slug)
    if not project:
        abort(404)

    title = project.title
    try:
        service.delete_project(project)
    except Exception as e:
        logger.error(f"Error deleting project {slug}: {e}")
        LoggingService.log_error_with_traceback('dashboard', e, {'slug': slug})
        flash('Failed to delete project', 'error')
        return redirect(url_for('dashboard.projects_list'))

    LoggingService.log_user_action('dashboard', f"deleted project {slug}")
    flash(f'Project "{title}" deleted', 'success')
    return redirect(url_for('dashboard.projects_list'))
