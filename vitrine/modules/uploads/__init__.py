"""
Uploads Module
==============

Standalone image upload endpoint and the /uploads/ file server
used when IMAGE_STORAGE=local.
"""

from flask import Blueprint

uploads_bp = Blueprint('uploads', __name__)

from . import routes

__all__ = ['uploads_bp']
