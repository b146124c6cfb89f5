"""
Security Headers Middleware
===========================

Adds a Content-Security-Policy header to every response.

The default policy, ``default-src 'none'; style-src 'self';``, forbids every
resource type except stylesheets served by this application. The proxy only
answers with JSON and redirects, so nothing it serves needs more.
"""

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

DEFAULT_CONTENT_SECURITY_POLICY = "default-src 'none'; style-src 'self';"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware that sets the Content-Security-Policy response header.

    A header already set by a route handler is left as it is.
    """

    def __init__(self, app: ASGIApp, content_security_policy: str = DEFAULT_CONTENT_SECURITY_POLICY):
        """
        Initialize the middleware.

        Args:
            app: The ASGI application
            content_security_policy: Value of the Content-Security-Policy header
        """
        super().__init__(app)
        self.content_security_policy = content_security_policy

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        response = await call_next(request)
        response.headers.setdefault("Content-Security-Policy", self.content_security_policy)
        return response
