# plugins/tumblr/errors.py
"""
Error kinds raised by the Tumblr integration.

Handshake errors propagate to the route that started the operation. Read
resolution and background publish errors are caught where they happen,
logged, and replaced by an empty or no-op result.
"""


class TumblrError(Exception):
    """Base class for all Tumblr integration errors."""


class EncodingError(TumblrError, ValueError):
    """A value cannot be represented for percent-encoding."""


class ConflictError(TumblrError):
    """A request token with the same value is already pending."""


class HandshakeError(TumblrError):
    """The OAuth token exchange failed or returned a malformed response."""


class InvalidTokenError(TumblrError):
    """The request token is unknown, expired or already exchanged."""


class ExternalServiceError(TumblrError):
    """A read against the public Tumblr API failed."""


class PublishError(TumblrError):
    """A background publish to Tumblr failed."""
