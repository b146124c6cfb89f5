# plugins/tumblr/auth/token_store.py
"""
Token Store
===========

Holds the two kinds of OAuth tokens the Tumblr integration works with:

- Request tokens of handshakes in flight. They live in process memory only,
  are keyed by the opaque token string, and are taken at most once: the
  lookup and the removal happen under the same lock, so two callbacks racing
  with the same token cannot both succeed. Entries of abandoned handshakes
  expire after a TTL.
- Access links, one per local user, kept by a LinkStore. The in-memory store
  is used in tests and single-process setups; the SQLAlchemy store persists
  links in the tumblr_links table.

Request tokens are spread over a fixed number of shards, each with its own
lock, so handshakes of unrelated users do not wait on each other. Locks are
only held for dictionary operations, never while doing I/O.
"""

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from plugins.tumblr.auth.tokens import AccessToken, RequestToken, UserServiceLink
from plugins.tumblr.errors import ConflictError
from plugins.tumblr.models import TumblrLink

logger = logging.getLogger(__name__)


class LinkStore:
    """Interface for storing UserServiceLink records."""

    def save(self, link: UserServiceLink) -> None:
        raise NotImplementedError("Subclasses must implement save")

    def get(self, user_id: str) -> Optional[UserServiceLink]:
        raise NotImplementedError("Subclasses must implement get")

    def delete(self, user_id: str) -> bool:
        raise NotImplementedError("Subclasses must implement delete")


class MemoryLinkStore(LinkStore):
    """Process-local link store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._links: Dict[str, UserServiceLink] = {}

    def save(self, link: UserServiceLink) -> None:
        with self._lock:
            self._links[link.user_id] = link

    def get(self, user_id: str) -> Optional[UserServiceLink]:
        with self._lock:
            return self._links.get(user_id)

    def delete(self, user_id: str) -> bool:
        with self._lock:
            return self._links.pop(user_id, None) is not None


class SqlAlchemyLinkStore(LinkStore):
    """
    Link store backed by the tumblr_links table.

    A new session is opened for every call, which keeps the store usable from
    request handlers and publish workers alike.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    @staticmethod
    def _to_link(row: TumblrLink) -> UserServiceLink:
        return UserServiceLink(
            user_id=row.user_id,
            access_token=AccessToken(
                token=row.oauth_token,
                token_secret=row.oauth_token_secret,
                external_account_id=row.tumblr_username
            ),
            account_identifier=row.blog_identifier
        )

    def save(self, link: UserServiceLink) -> None:
        session = self._session_factory()
        try:
            row = session.query(TumblrLink).filter(TumblrLink.user_id == link.user_id).first()
            if row is None:
                row = TumblrLink(user_id=link.user_id)
                session.add(row)
            row.oauth_token = link.access_token.token
            row.oauth_token_secret = link.access_token.token_secret
            row.tumblr_username = link.access_token.external_account_id
            row.blog_identifier = link.account_identifier
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get(self, user_id: str) -> Optional[UserServiceLink]:
        session = self._session_factory()
        try:
            row = session.query(TumblrLink).filter(TumblrLink.user_id == user_id).first()
            return self._to_link(row) if row else None
        finally:
            session.close()

    def delete(self, user_id: str) -> bool:
        session = self._session_factory()
        try:
            deleted = session.query(TumblrLink).filter(TumblrLink.user_id == user_id).delete()
            session.commit()
            return deleted > 0
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


class _Shard:
    __slots__ = ("lock", "tokens")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.tokens: Dict[str, RequestToken] = {}


class TokenStore:
    """
    Thread-safe holder of pending request tokens and per-user access links.

    Args:
        link_store: Where access links are kept (defaults to memory)
        request_token_ttl: Seconds before an unused request token expires
        clock: Returns the current time in seconds, injectable for tests
        shards: Number of independently locked request token partitions
    """

    def __init__(
        self,
        link_store: Optional[LinkStore] = None,
        request_token_ttl: float = 600,
        clock: Callable[[], float] = time.time,
        shards: int = 16
    ) -> None:
        if shards < 1:
            raise ValueError("shards must be at least 1")
        self._link_store = link_store or MemoryLinkStore()
        self._ttl = request_token_ttl
        self._clock = clock
        self._shards: List[_Shard] = [_Shard() for _ in range(shards)]

    def _shard(self, token: str) -> _Shard:
        return self._shards[hash(token) % len(self._shards)]

    #
    # Request tokens
    #

    def put_request_token(self, token: str, secret: str) -> RequestToken:
        """
        Hold a freshly issued request token until the user comes back.

        Raises:
            ConflictError: If the same token string is already pending
        """
        self.purge_expired()

        entry = RequestToken(token=token, token_secret=secret, created_at=self._clock())
        shard = self._shard(token)
        with shard.lock:
            if token in shard.tokens:
                raise ConflictError("Request token is already pending")
            shard.tokens[token] = entry
        return entry

    def take_request_token(self, token: str) -> Optional[RequestToken]:
        """
        Remove and return a pending request token.

        Returns None if the token is unknown, was already taken, or expired.
        """
        shard = self._shard(token)
        with shard.lock:
            entry = shard.tokens.pop(token, None)

        if entry is None:
            return None
        if entry.is_expired(self._clock(), self._ttl):
            logger.info(f"Request token {token[:8]}... expired before it was exchanged")
            return None
        return entry

    def purge_expired(self) -> int:
        """Drop request tokens of abandoned handshakes and return how many were dropped."""
        now = self._clock()
        purged = 0
        for shard in self._shards:
            with shard.lock:
                expired = [
                    key for key, entry in shard.tokens.items()
                    if entry.is_expired(now, self._ttl)
                ]
                for key in expired:
                    del shard.tokens[key]
            purged += len(expired)

        if purged:
            logger.debug(f"Purged {purged} expired request token(s)")
        return purged

    def pending_count(self) -> int:
        count = 0
        for shard in self._shards:
            with shard.lock:
                count += len(shard.tokens)
        return count

    #
    # Access links
    #

    def put_access_link(
        self,
        user_id: str,
        access_token: str,
        secret: str,
        account_id: str,
        external_account_id: Optional[str] = None
    ) -> UserServiceLink:
        """Create or replace the Tumblr link of a user."""
        link = UserServiceLink(
            user_id=user_id,
            access_token=AccessToken(
                token=access_token,
                token_secret=secret,
                external_account_id=external_account_id
            ),
            account_identifier=account_id
        )
        self._link_store.save(link)
        logger.info(f"Linked user {user_id} to Tumblr blog {account_id}")
        return link

    def get_access_link(self, user_id: str) -> Optional[UserServiceLink]:
        return self._link_store.get(user_id)

    def delete_access_link(self, user_id: str) -> bool:
        deleted = self._link_store.delete(user_id)
        if deleted:
            logger.info(f"Unlinked Tumblr account of user {user_id}")
        return deleted
