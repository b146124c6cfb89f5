# plugins/tumblr/routes/dependencies.py
"""
FastAPI dependencies shared by the Tumblr routes.
"""

from fastapi import HTTPException, Request

from plugins.tumblr.service import TumblrService


def get_tumblr_service(request: Request) -> TumblrService:
    """Return the integration built at startup."""
    service = getattr(request.app.state, "tumblr", None)
    if service is None:
        raise HTTPException(
            status_code=503,
            detail="Tumblr integration not available"
        )
    return service


def get_current_user_id(request: Request) -> str:
    """
    Return the id of the signed-in user.

    Signing in is handled by the host application, which stores the user id
    in the session.
    """
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated"
        )
    return user_id
