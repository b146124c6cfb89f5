# plugins/tumblr/auth/__init__.py
"""
Tumblr Authorization
====================

OAuth 1.0a signing, token storage and the handshake client used to link
local users to Tumblr accounts.
"""

from .tokens import AccessToken, ConsumerCredentials, RequestToken, UserServiceLink
from .token_store import LinkStore, MemoryLinkStore, SqlAlchemyLinkStore, TokenStore
from .oauth import HandshakeStart, OAuth1Client, SignedRequest, TumblrAccount

__all__ = [
    # Token types
    'AccessToken', 'ConsumerCredentials', 'RequestToken', 'UserServiceLink',

    # Storage
    'LinkStore', 'MemoryLinkStore', 'SqlAlchemyLinkStore', 'TokenStore',

    # Client
    'HandshakeStart', 'OAuth1Client', 'SignedRequest', 'TumblrAccount'
]
