# plugins/tumblr/auth/oauth.py
"""
Tumblr OAuth 1.0a Client
========================

This module implements the three-legged OAuth 1.0a handshake against Tumblr
and the signing of API requests made on behalf of a linked user.

The handshake moves through these states:

    Idle -> RequestTokenObtained -> AuthorizationPending -> AccessTokenObtained

1. begin_handshake() obtains a request token, parks it in the TokenStore and
   returns the URL the user's browser is redirected to.
2. Tumblr sends the user back to the callback route with oauth_token and
   oauth_verifier.
3. complete_handshake() takes the request token out of the store (at most
   once) and exchanges it for an access token.
4. link_account() additionally asks Tumblr who the token belongs to and
   stores the resulting UserServiceLink.

signed_request() builds a validated SignedRequest descriptor for any API
call; every call gets a fresh nonce and timestamp, including retries.
"""

import logging
import time
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx
from pydantic import BaseModel, Field, field_validator

from plugins import AuthorizationPlugin
from plugins.tumblr.auth.signature import (
    OAUTH_VERSION,
    SIGNATURE_METHOD,
    authorization_header,
    generate_nonce,
    generate_timestamp,
    sign,
)
from plugins.tumblr.auth.token_store import TokenStore
from plugins.tumblr.auth.tokens import AccessToken, ConsumerCredentials, UserServiceLink
from plugins.tumblr.config import TumblrSettings
from plugins.tumblr.errors import HandshakeError, InvalidTokenError
from plugins.tumblr.json_path import json_list, json_path, json_str

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST", "PUT", "DELETE")
BODY_METHODS = ("POST", "PUT")


class SignedRequest(BaseModel):
    """
    A request that is signed and ready to send.

    Attributes:
        method: Uppercase HTTP method
        url: Absolute http(s) URL without query string
        query: Parameters sent in the query string
        form: Parameters sent as an application/x-www-form-urlencoded body
        headers: Headers, including the OAuth Authorization header
    """

    method: str
    url: str
    query: Dict[str, str] = Field(default_factory=dict)
    form: Dict[str, str] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)

    @field_validator("method")
    @classmethod
    def _check_method(cls, value: str) -> str:
        value = value.upper()
        if value not in ALLOWED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {value}")
        return value

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"URL must be absolute http(s): {value}")
        if parts.query or parts.fragment:
            raise ValueError("URL must not carry a query string or fragment")
        return value

    def send(self, client: httpx.Client) -> httpx.Response:
        """Execute the request with the given client."""
        return client.request(
            self.method,
            self.url,
            params=self.query or None,
            data=self.form or None,
            headers=self.headers
        )


class HandshakeStart(BaseModel):
    """Result of the first handshake leg."""

    authorization_url: str
    token: str


class TumblrAccount(BaseModel):
    """The Tumblr user and blog an access token belongs to."""

    username: str
    blog_identifier: str


class OAuth1Client(AuthorizationPlugin):
    """
    Drives the OAuth 1.0a handshake with Tumblr and signs API requests.

    Args:
        consumer: Consumer key and secret of this application
        token_store: Where pending request tokens and access links live
        http_client: Shared httpx client; its timeout bounds every call
        settings: Endpoint URLs and defaults
        clock: Returns seconds since the epoch, injectable for tests
        nonce_factory: Returns a fresh nonce, injectable for tests
    """

    service_name = "tumblr_oauth"

    def __init__(
        self,
        consumer: ConsumerCredentials,
        token_store: TokenStore,
        http_client: httpx.Client,
        settings: TumblrSettings,
        clock: Callable[[], float] = time.time,
        nonce_factory: Callable[[], str] = generate_nonce
    ):
        if not consumer.configured:
            logger.warning("Tumblr OAuth client initialized without consumer credentials")
        self.consumer = consumer
        self.token_store = token_store
        self._http = http_client
        self._settings = settings
        self._clock = clock
        self._nonce_factory = nonce_factory

    #
    # Signing
    #

    def _build(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, str]] = None,
        token: Optional[str] = None,
        token_secret: Optional[str] = None,
        extra_oauth: Optional[Dict[str, str]] = None
    ) -> SignedRequest:
        method = method.upper()
        parts = urlsplit(url)
        base_url = urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))

        query = dict(parse_qsl(parts.query, keep_blank_values=True))
        form: Dict[str, str] = {}
        request_params = {key: str(value) for key, value in (params or {}).items()}
        if method in BODY_METHODS:
            form.update(request_params)
        else:
            query.update(request_params)

        oauth_params = {
            "oauth_consumer_key": self.consumer.key,
            "oauth_nonce": self._nonce_factory(),
            "oauth_timestamp": generate_timestamp(self._clock),
            "oauth_signature_method": SIGNATURE_METHOD,
            "oauth_version": OAUTH_VERSION,
        }
        if token:
            oauth_params["oauth_token"] = token
        if extra_oauth:
            oauth_params.update(extra_oauth)

        signed_params: List[Tuple[str, str]] = [*query.items(), *form.items(), *oauth_params.items()]
        oauth_params["oauth_signature"] = sign(
            method, base_url, signed_params, self.consumer.secret, token_secret
        )

        return SignedRequest(
            method=method,
            url=base_url,
            query=query,
            form=form,
            headers={"Authorization": authorization_header(oauth_params)}
        )

    def signed_request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, str]],
        access_token: AccessToken
    ) -> SignedRequest:
        """
        Sign an API request on behalf of the owner of an access token.

        The oauth_* protocol parameters are added and the signature is sent
        in the Authorization header. Request parameters go to the query
        string for GET/DELETE and to the form body for POST/PUT; parameters
        already present in the URL's query string are signed as well.

        Args:
            method: HTTP method
            url: API URL, optionally with a query string
            params: Request parameters
            access_token: Token of the linked account

        Returns:
            SignedRequest: The signed request descriptor

        Raises:
            EncodingError: If a parameter cannot be percent-encoded
        """
        return self._build(
            method,
            url,
            params,
            token=access_token.token,
            token_secret=access_token.token_secret
        )

    #
    # Handshake
    #

    def authorization_url(self, token: str) -> str:
        """Return the Tumblr page where the user grants access to a request token."""
        separator = "&" if "?" in self._settings.AUTHORIZE_URL else "?"
        return f"{self._settings.AUTHORIZE_URL}{separator}{urlencode({'oauth_token': token})}"

    def _exchange(self, request: SignedRequest, step: str) -> Dict[str, str]:
        try:
            response = request.send(self._http)
        except httpx.HTTPError as e:
            raise HandshakeError(f"Tumblr {step} request failed: {e}") from e

        if not response.is_success:
            logger.error(f"Tumblr {step} request returned HTTP {response.status_code}: {response.text[:200]}")
            raise HandshakeError(f"Tumblr {step} request returned HTTP {response.status_code}")

        try:
            return dict(parse_qsl(response.text.strip(), keep_blank_values=True, strict_parsing=True))
        except ValueError as e:
            raise HandshakeError(f"Tumblr {step} response is not form-encoded") from e

    def begin_handshake(self, callback_url: Optional[str] = None) -> HandshakeStart:
        """
        Obtain a request token and the URL to send the user to.

        Args:
            callback_url: Where Tumblr sends the user back to; defaults to
                the configured callback URL

        Returns:
            HandshakeStart: Authorization URL and the request token

        Raises:
            HandshakeError: If Tumblr rejects the request or answers with a
                malformed body
            ConflictError: If the returned token is already pending
        """
        callback = callback_url or self._settings.OAUTH_CALLBACK_URL
        request = self._build(
            "POST",
            self._settings.REQUEST_TOKEN_URL,
            extra_oauth={"oauth_callback": callback}
        )
        body = self._exchange(request, "request token")

        token = body.get("oauth_token")
        secret = body.get("oauth_token_secret")
        if not token or not secret:
            raise HandshakeError("Tumblr request token response is missing oauth_token or oauth_token_secret")

        confirmed = body.get("oauth_callback_confirmed")
        if confirmed is not None and confirmed.lower() != "true":
            raise HandshakeError("Tumblr did not confirm the callback URL")

        self.token_store.put_request_token(token, secret)
        logger.info(f"Obtained Tumblr request token {token[:8]}...")
        return HandshakeStart(authorization_url=self.authorization_url(token), token=token)

    def complete_handshake(self, token: str, verifier: str) -> AccessToken:
        """
        Exchange an authorized request token for an access token.

        The request token is taken out of the store before the exchange, so
        it cannot be used again even if the exchange fails.

        Raises:
            InvalidTokenError: If the request token is unknown, expired or
                already used
            HandshakeError: If the exchange fails
        """
        if not verifier:
            raise HandshakeError("Missing oauth_verifier")

        request_token = self.token_store.take_request_token(token)
        if request_token is None:
            raise InvalidTokenError("Request token is unknown, expired or already used")

        request = self._build(
            "POST",
            self._settings.ACCESS_TOKEN_URL,
            token=request_token.token,
            token_secret=request_token.token_secret,
            extra_oauth={"oauth_verifier": verifier}
        )
        body = self._exchange(request, "access token")

        access_token = body.get("oauth_token")
        access_secret = body.get("oauth_token_secret")
        if not access_token or not access_secret:
            raise HandshakeError("Tumblr access token response is missing oauth_token or oauth_token_secret")

        logger.info(f"Exchanged request token {token[:8]}... for an access token")
        return AccessToken(token=access_token, token_secret=access_secret)

    def fetch_account(self, access_token: AccessToken) -> TumblrAccount:
        """
        Ask Tumblr which user and primary blog an access token belongs to.

        Raises:
            HandshakeError: If the call fails or the response lacks the
                user name or a blog
        """
        request = self.signed_request("GET", f"{self._settings.API_BASE_URL}/user/info", {}, access_token)
        try:
            response = request.send(self._http)
        except httpx.HTTPError as e:
            raise HandshakeError(f"Tumblr user info request failed: {e}") from e

        if not response.is_success:
            raise HandshakeError(f"Tumblr user info request returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise HandshakeError("Tumblr user info response is not valid JSON") from e

        username = json_str(data, "response", "user", "name")
        blogs = json_list(data, "response", "user", "blogs")
        primary = next((blog for blog in blogs if json_path(blog, "primary") is True), None)
        if primary is None and blogs:
            primary = blogs[0]

        blog_identifier = None
        blog_url = json_str(primary, "url")
        if blog_url:
            blog_identifier = urlsplit(blog_url).hostname
        if not blog_identifier and json_str(primary, "name"):
            blog_identifier = f"{json_str(primary, 'name')}{self._settings.BLOG_HOST_SUFFIX}"

        if not username or not blog_identifier:
            raise HandshakeError("Tumblr user info response has no user name or blog")

        return TumblrAccount(username=username, blog_identifier=blog_identifier.lower())

    def link_account(self, user_id: str, token: str, verifier: str) -> UserServiceLink:
        """
        Finish the handshake for a local user and store the resulting link.

        Raises:
            InvalidTokenError: If the request token is unknown, expired or
                already used
            HandshakeError: If any call to Tumblr fails
        """
        access_token = self.complete_handshake(token, verifier)
        account = self.fetch_account(access_token)
        return self.token_store.put_access_link(
            user_id,
            access_token.token,
            access_token.token_secret,
            account.blog_identifier,
            external_account_id=account.username
        )
