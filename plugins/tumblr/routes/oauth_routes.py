# plugins/tumblr/routes/oauth_routes.py
"""
Tumblr OAuth Routes
===================

This module implements HTTP routes for linking a Tumblr account to the
signed-in user with the OAuth 1.0a flow.

The TumblrOAuthRoutes class implements the RoutePlugin interface and provides
routes for:
- Initiating the OAuth flow
- Processing the OAuth callback
- Showing and removing the current link

Handlers that talk to Tumblr are plain functions, so FastAPI runs them in its
threadpool and the blocking HTTP calls do not stall the event loop.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from plugins import RoutePlugin
from plugins.tumblr.errors import InvalidTokenError, TumblrError
from plugins.tumblr.routes.dependencies import get_current_user_id, get_tumblr_service
from plugins.tumblr.service import TumblrService

logger = logging.getLogger(__name__)


class LinkStatus(BaseModel):
    linked: bool
    blog: Optional[str] = None
    username: Optional[str] = None


class TumblrOAuthRoutes(RoutePlugin):
    """
    Plugin for Tumblr OAuth routes.

    The routes are mounted under the "/tumblr/oauth" prefix in the application.

    Class Attributes:
        service_name (str): The unique identifier for this plugin
        prefix (str): Mount point of the router
    """

    service_name = "tumblr/oauth"
    prefix = "/tumblr/oauth"

    def __init__(self, post_link_redirect: str = "/posts"):
        self.post_link_redirect = post_link_redirect

    def get_router(self) -> APIRouter:
        """
        Get the router for Tumblr OAuth routes.

        Returns:
            APIRouter: FastAPI router with Tumblr OAuth routes
        """
        router = APIRouter(tags=["tumblr", "oauth"])

        @router.get("/link")
        def tumblr_oauth_link(
            user_id: str = Depends(get_current_user_id),
            service: TumblrService = Depends(get_tumblr_service)
        ):
            """
            Start linking a Tumblr account.

            Obtains a request token and redirects the user to Tumblr's
            authorization page.
            """
            try:
                start = service.oauth.begin_handshake()
            except TumblrError as e:
                logger.error(f"Error initiating Tumblr OAuth for user {user_id}: {e}")
                raise HTTPException(
                    status_code=502,
                    detail="Linking failed, please retry"
                )

            return RedirectResponse(start.authorization_url)

        @router.get("/callback")
        def tumblr_oauth_callback(
            oauth_token: Optional[str] = Query(None),
            oauth_verifier: Optional[str] = Query(None),
            user_id: str = Depends(get_current_user_id),
            service: TumblrService = Depends(get_tumblr_service)
        ):
            """
            Handle the redirect back from Tumblr.

            Exchanges the request token for an access token, looks up the
            user's blog and stores the link.

            Args:
                oauth_token (str): The request token the user authorized
                oauth_verifier (str): Proof that the user granted access

            Returns:
                RedirectResponse: Redirect to the user's posts
            """
            if not oauth_token or not oauth_verifier:
                if oauth_token:
                    # The user declined; the request token is of no further use
                    service.token_store.take_request_token(oauth_token)
                raise HTTPException(
                    status_code=400,
                    detail="Missing OAuth parameters"
                )

            try:
                link = service.oauth.link_account(user_id, oauth_token, oauth_verifier)
            except InvalidTokenError as e:
                logger.warning(f"Tumblr callback for user {user_id} with unusable token: {e}")
                raise HTTPException(
                    status_code=400,
                    detail="Link expired, please start again"
                )
            except TumblrError as e:
                logger.error(f"Error completing Tumblr OAuth for user {user_id}: {e}")
                raise HTTPException(
                    status_code=502,
                    detail="Linking failed, please retry"
                )

            logger.info(f"User {user_id} linked Tumblr blog {link.account_identifier}")
            return RedirectResponse(url=self.post_link_redirect, status_code=303)

        @router.get("/status", response_model=LinkStatus)
        def tumblr_link_status(
            user_id: str = Depends(get_current_user_id),
            service: TumblrService = Depends(get_tumblr_service)
        ):
            """Show which Tumblr blog, if any, the user is linked to."""
            link = service.token_store.get_access_link(user_id)
            if link is None:
                return LinkStatus(linked=False)
            return LinkStatus(
                linked=True,
                blog=link.account_identifier,
                username=link.access_token.external_account_id
            )

        @router.post("/unlink", response_model=LinkStatus)
        def tumblr_unlink(
            user_id: str = Depends(get_current_user_id),
            service: TumblrService = Depends(get_tumblr_service)
        ):
            """Remove the user's Tumblr link and its access token."""
            if not service.token_store.delete_access_link(user_id):
                raise HTTPException(
                    status_code=404,
                    detail="No linked Tumblr account"
                )
            return LinkStatus(linked=False)

        return router
