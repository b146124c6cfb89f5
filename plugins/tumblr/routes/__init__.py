# plugins/tumblr/routes/__init__.py
"""
Tumblr Routes for the Tumblr Link Proxy
=======================================

This package provides FastAPI route definitions for the Tumblr integration:

- OAuth routes: Linking and unlinking a Tumblr account, and the callback
  Tumblr redirects the user to
- Post routes: Creating and editing posts whose text may contain
  ``!images:`` and ``!tumble`` directives
"""

from .oauth_routes import TumblrOAuthRoutes
from .post_routes import PostRoutes

__all__ = ['TumblrOAuthRoutes', 'PostRoutes']
