"""
Dashboard Module
================

Server-rendered admin pages for managing portfolio projects.

Provides:
- Project table with screenshot thumbnails
- Create and edit forms with main image and screenshot gallery uploads
- Delete action with flash feedback
"""

from flask import Blueprint

dashboard_bp = Blueprint(
    'dashboard',
    __name__,
    url_prefix='/dashboard',
    template_folder='templates'
)

from . import routes

__all__ = ['dashboard_bp']
