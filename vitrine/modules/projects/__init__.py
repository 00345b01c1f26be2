"""
Projects Module
===============

REST API for portfolio project records.

Provides:
- Public listing and lookup by slug (CORS-enabled)
- Authenticated create, update and delete
- Main image and screenshot gallery handling through core.storage
"""

from flask import Blueprint

projects_bp = Blueprint('projects', __name__)

from . import routes

__all__ = ['projects_bp']
