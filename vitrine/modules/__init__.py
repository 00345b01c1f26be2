"""
Vitrine Modules
===============

Flask blueprint modules for the portfolio site and its admin.
"""

__all__ = ['auth', 'dashboard', 'ops', 'projects', 'uploads']
