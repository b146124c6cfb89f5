# plugins/tumblr/__init__.py
"""
Tumblr Plugin Package for the Tumblr Link Proxy
===============================================

This package integrates the host application with Tumblr.

Authorization:
-------------
- OAuth1Client: Links a local user to a Tumblr account with the OAuth 1.0a
  three-legged flow and signs API requests on the user's behalf
- TokenStore: Holds pending request tokens and the users' access links

Resources:
---------
- ContentResolver: Reads public photo posts for ``!images:`` directives
- PublishDispatcher: Publishes ``!tumble`` posts in the background

Routes:
------
- TumblrOAuthRoutes: Link, callback, status and unlink endpoints
- PostRoutes: The host application's post endpoints, which run the
  directive pipeline

Authentication Flow:
------------------
1. The signed-in user opens /tumblr/oauth/link and is redirected to Tumblr
2. Tumblr redirects back to /tumblr/oauth/callback with a verifier
3. The request token is exchanged for an access token and the user's
   primary blog is stored as their link
4. Posts containing ``!tumble`` are published to that blog
"""

from .service import TumblrService, create_tumblr_service
from .routes import TumblrOAuthRoutes, PostRoutes

__all__ = ['TumblrService', 'create_tumblr_service', 'TumblrOAuthRoutes', 'PostRoutes']
