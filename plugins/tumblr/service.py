# plugins/tumblr/service.py
"""
Construction of the Tumblr integration.

create_tumblr_service() builds every component once, at application startup,
and passes each its collaborators explicitly. The resulting TumblrService is
kept on the FastAPI application state; nothing looks components up globally.
"""

import logging
import time
from typing import Callable, List, Optional

import httpx
from sqlalchemy.orm import Session

from plugins import PluginBase
from plugins.tumblr.auth.oauth import OAuth1Client
from plugins.tumblr.auth.signature import generate_nonce
from plugins.tumblr.auth.token_store import LinkStore, MemoryLinkStore, SqlAlchemyLinkStore, TokenStore
from plugins.tumblr.auth.tokens import ConsumerCredentials
from plugins.tumblr.config import TumblrSettings, get_tumblr_settings
from plugins.tumblr.directives import DirectiveScanner
from plugins.tumblr.pipeline import PostPipeline
from plugins.tumblr.resource.photos import ContentResolver
from plugins.tumblr.resource.publisher import PublishDispatcher

logger = logging.getLogger(__name__)


class TumblrService:
    """The wired components of the Tumblr integration."""

    def __init__(
        self,
        settings: TumblrSettings,
        http_client: httpx.Client,
        token_store: TokenStore,
        oauth: OAuth1Client,
        scanner: DirectiveScanner,
        resolver: ContentResolver,
        dispatcher: PublishDispatcher,
        owns_http_client: bool = True
    ):
        self.settings = settings
        self.http_client = http_client
        self.token_store = token_store
        self.oauth = oauth
        self.scanner = scanner
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.pipeline = PostPipeline(scanner, resolver, dispatcher)
        self._owns_http_client = owns_http_client

    @property
    def plugins(self) -> List[PluginBase]:
        return [self.oauth, self.resolver, self.dispatcher]

    def start(self) -> None:
        self.dispatcher.start()
        for plugin in self.plugins:
            logger.info(f"Loaded plugin: {plugin.get_metadata()}")

    def close(self) -> None:
        self.dispatcher.shutdown(wait=True, timeout=self.settings.HTTP_TIMEOUT_SECONDS)
        if self._owns_http_client:
            self.http_client.close()


def create_tumblr_service(
    settings: Optional[TumblrSettings] = None,
    session_factory: Optional[Callable[[], Session]] = None,
    http_client: Optional[httpx.Client] = None,
    clock: Callable[[], float] = time.time,
    nonce_factory: Callable[[], str] = generate_nonce
) -> TumblrService:
    """
    Build the Tumblr integration.

    Args:
        settings: Tumblr settings; loaded from the environment if omitted
        session_factory: Database session factory used to persist account
            links when PERSIST_LINKS is enabled
        http_client: Client for every call to Tumblr; one with the
            configured timeout is created if omitted
        clock: Time source for token expiry and OAuth timestamps
        nonce_factory: Nonce source for OAuth signatures

    Returns:
        TumblrService: The wired, not yet started, integration
    """
    settings = settings or get_tumblr_settings()
    consumer = ConsumerCredentials(key=settings.CONSUMER_KEY, secret=settings.CONSUMER_SECRET)

    owns_http_client = http_client is None
    if http_client is None:
        http_client = httpx.Client(timeout=settings.HTTP_TIMEOUT_SECONDS)

    link_store: LinkStore
    if settings.PERSIST_LINKS and session_factory is not None:
        link_store = SqlAlchemyLinkStore(session_factory)
    else:
        link_store = MemoryLinkStore()

    token_store = TokenStore(
        link_store=link_store,
        request_token_ttl=settings.REQUEST_TOKEN_TTL_SECONDS,
        clock=clock
    )
    oauth = OAuth1Client(
        consumer,
        token_store,
        http_client,
        settings,
        clock=clock,
        nonce_factory=nonce_factory
    )
    dispatcher = PublishDispatcher(
        token_store,
        oauth,
        http_client,
        settings,
        workers=settings.PUBLISH_WORKERS,
        queue_size=settings.PUBLISH_QUEUE_SIZE
    )

    return TumblrService(
        settings=settings,
        http_client=http_client,
        token_store=token_store,
        oauth=oauth,
        scanner=DirectiveScanner(settings.BLOG_HOST_SUFFIX),
        resolver=ContentResolver(http_client, consumer, settings),
        dispatcher=dispatcher,
        owns_http_client=owns_http_client
    )
