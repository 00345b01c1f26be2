"""
Project write operations shared by the REST API and the dashboard.

Images stored while handling a request are released again if the write fails,
and images a project stops referencing are released once the write commits.
References the client sent in are never released on failure.
"""

from .database import (create_project_db, delete_project_db, release_unused_images,
                       update_project_db)
from .forms import build_new_project, build_project_changes


def create_project(data, files):
    stored = []
    try:
        fields = build_new_project(data, files, stored)
        return create_project_db(**fields)
    except Exception:
        release_unused_images(stored)
        raise


def update_project(project, data, files):
    previous_refs = project.image_references()
    stored = []
    try:
        changes = build_project_changes(project, data, files, stored)
        update_project_db(project, **changes)
    except Exception:
        release_unused_images(stored)
        raise

    current_refs = project.image_references()
    release_unused_images(ref for ref in previous_refs if ref not in current_refs)
    return project


def delete_project(project):
    image_refs = project.image_references()
    delete_project_db(project)
    release_unused_images(image_refs)
