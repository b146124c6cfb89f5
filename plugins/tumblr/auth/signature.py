# plugins/tumblr/auth/signature.py
"""
OAuth 1.0a HMAC-SHA1 Request Signing
====================================

Pure functions that build the OAuth 1.0a signature base string and compute
the HMAC-SHA1 signature of a request.

Every key and value that takes part in a signature is percent-encoded with
the RFC 3986 unreserved set (letters, digits, "-", ".", "_", "~"), whatever
part of the URL the parameter belongs to. Hex digits are uppercase and
non-ASCII characters are encoded as UTF-8 first.

Given fixed nonce and timestamp parameters the output is deterministic, so
tests can check signatures against published reference vectors.
"""

import base64
import hashlib
import hmac
import secrets
import time
from typing import Callable, Iterable, List, Mapping, Optional, Tuple, Union
from urllib.parse import quote, unquote, urlsplit

from plugins.tumblr.errors import EncodingError

SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_VERSION = "1.0"

Parameters = Union[Mapping[str, str], Iterable[Tuple[str, str]]]

_DEFAULT_PORTS = {"http": 80, "https": 443}


def percent_encode(value: Union[str, bytes]) -> str:
    """
    Percent-encode a value using the RFC 3986 unreserved character set.

    Args:
        value: The value to encode. Bytes must hold UTF-8 text; other
            non-string values are converted with str().

    Returns:
        str: The encoded value

    Raises:
        EncodingError: If the value cannot be represented as UTF-8
    """
    if isinstance(value, bytes):
        try:
            value = value.decode("utf-8")
        except UnicodeDecodeError as e:
            raise EncodingError(f"Value is not valid UTF-8: {e}") from e
    elif not isinstance(value, str):
        value = str(value)

    try:
        # quote() never escapes the unreserved set, safe="" also escapes "/"
        return quote(value, safe="", encoding="utf-8", errors="strict")
    except UnicodeEncodeError as e:
        raise EncodingError(f"Value cannot be encoded as UTF-8: {e}") from e


def percent_decode(value: str) -> str:
    """
    Reverse percent_encode().

    "+" is left as a literal plus sign, it only means space in HTML forms.

    Raises:
        EncodingError: If the decoded bytes are not valid UTF-8
    """
    try:
        return unquote(value, encoding="utf-8", errors="strict")
    except UnicodeDecodeError as e:
        raise EncodingError(f"Decoded value is not valid UTF-8: {e}") from e


def _encoded_pairs(params: Parameters) -> List[Tuple[str, str]]:
    items = params.items() if isinstance(params, Mapping) else params
    return [
        (percent_encode(key), percent_encode(value))
        for key, value in items
        if key != "oauth_signature"
    ]


def normalize_parameters(params: Parameters) -> str:
    """
    Build the normalized request parameter string.

    Keys and values are encoded first, then sorted by encoded key and, for
    repeated keys, by encoded value. Input order has no effect on the result.

    Args:
        params: A mapping, or an iterable of (key, value) pairs when a key
            is repeated. Any oauth_signature parameter is ignored.

    Returns:
        str: "key=value" pairs joined with "&"
    """
    return "&".join(f"{key}={value}" for key, value in sorted(_encoded_pairs(params)))


def normalize_base_url(url: str) -> str:
    """
    Reduce a URL to the scheme, host, port and path used in the base string.

    Scheme and host are lowercased, default ports are dropped and the query
    string and fragment are removed.
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as e:
        raise EncodingError(f"Invalid URL {url!r}: {e}") from e

    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if not scheme or not host:
        raise EncodingError(f"URL must be absolute: {url!r}")

    if port is not None and _DEFAULT_PORTS.get(scheme) != port:
        host = f"{host}:{port}"

    return f"{scheme}://{host}{parts.path or '/'}"


def signature_base_string(method: str, base_url: str, params: Parameters) -> str:
    """
    Build the signature base string: METHOD&enc(base URL)&enc(parameters).
    """
    return "&".join([
        method.upper(),
        percent_encode(normalize_base_url(base_url)),
        percent_encode(normalize_parameters(params)),
    ])


def signing_key(consumer_secret: str, token_secret: Optional[str] = None) -> str:
    """Join the encoded consumer and token secrets; the token part may be empty."""
    return f"{percent_encode(consumer_secret)}&{percent_encode(token_secret or '')}"


def sign(
    method: str,
    base_url: str,
    params: Parameters,
    consumer_secret: str,
    token_secret: Optional[str] = None
) -> str:
    """
    Compute the base64 HMAC-SHA1 signature of a request.

    Args:
        method: HTTP method of the request
        base_url: Request URL; any query string is ignored here, so query
            parameters must also be present in params
        params: Every request and oauth_* parameter except oauth_signature
        consumer_secret: Secret of the integrating application
        token_secret: Secret of the request or access token, if any

    Returns:
        str: The signature, ready to be sent as oauth_signature

    Raises:
        EncodingError: If any input cannot be percent-encoded
    """
    base_string = signature_base_string(method, base_url, params)
    key = signing_key(consumer_secret, token_secret)
    digest = hmac.new(key.encode("ascii"), base_string.encode("ascii"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


def authorization_header(oauth_params: Mapping[str, str], realm: Optional[str] = None) -> str:
    """Format oauth_* parameters as an "Authorization: OAuth ..." header value."""
    fields = []
    if realm is not None:
        fields.append(f'realm="{realm}"')
    fields.extend(
        f'{percent_encode(key)}="{percent_encode(value)}"'
        for key, value in sorted(oauth_params.items())
    )
    return "OAuth " + ", ".join(fields)


def generate_nonce() -> str:
    """Return a fresh random nonce for a single request."""
    return secrets.token_hex(16)


def generate_timestamp(clock: Callable[[], float] = time.time) -> str:
    """Return the current time as whole seconds since the epoch."""
    return str(int(clock()))
