"""
Middleware package for the Tumblr Link Proxy.

This package contains middleware components for cross-cutting concerns of
request processing, such as the security headers sent with every response.
"""

from .security_headers import DEFAULT_CONTENT_SECURITY_POLICY, SecurityHeadersMiddleware

__all__ = [
    "DEFAULT_CONTENT_SECURITY_POLICY",
    "SecurityHeadersMiddleware"
]
