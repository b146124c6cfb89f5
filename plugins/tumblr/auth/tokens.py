# plugins/tumblr/auth/tokens.py
"""
Key/secret pairs that identify the actors of an OAuth 1.0a handshake.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ConsumerCredentials(BaseModel):
    """
    Identifies this application to Tumblr.

    Loaded once at startup from settings and shared read-only by every
    request.
    """
    model_config = ConfigDict(frozen=True)

    key: str
    secret: str

    @property
    def configured(self) -> bool:
        return bool(self.key and self.secret)


class RequestToken(BaseModel):
    """
    Short-lived token issued at the start of a handshake.

    It is held by the TokenStore until the user returns from Tumblr's
    authorization page, and can be exchanged for an AccessToken once.
    """
    model_config = ConfigDict(frozen=True)

    token: str
    token_secret: str
    created_at: float

    def is_expired(self, now: float, ttl: float) -> bool:
        return now - self.created_at >= ttl


class AccessToken(BaseModel):
    """Long-lived token authorizing signed requests for one Tumblr account."""
    model_config = ConfigDict(frozen=True)

    token: str
    token_secret: str
    external_account_id: Optional[str] = None


class UserServiceLink(BaseModel):
    """
    Links a local user to a Tumblr account.

    Attributes:
        user_id: Local user identifier
        access_token: The stored access token for the account
        account_identifier: Blog host that publishes go to, e.g. "name.tumblr.com"
    """
    model_config = ConfigDict(frozen=True)

    user_id: str
    access_token: AccessToken
    account_identifier: str
