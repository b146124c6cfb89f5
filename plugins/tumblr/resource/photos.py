# plugins/tumblr/resource/photos.py
"""
Tumblr Photo Resource Plugin
============================

Resolves ``!images:`` directives against Tumblr's public read API.

The API is called with the application's consumer key only (no user
credentials) and returns the post as JSON. For photo posts the URL of the
original size of every photo is extracted, in the order Tumblr lists them;
any other post type resolves to an empty list.

Resolution happens on the caller's thread while the post is being saved.
One broken permalink must not fail the whole post, so resolve_all() turns
ExternalServiceError into an empty result for that directive.
"""

import logging
from typing import Iterable, List

import httpx
from pydantic import BaseModel

from plugins import ResourcePlugin
from plugins.tumblr.auth.tokens import ConsumerCredentials
from plugins.tumblr.config import TumblrSettings
from plugins.tumblr.directives import ReadDirective
from plugins.tumblr.errors import ExternalServiceError
from plugins.tumblr.json_path import json_list, json_path, json_str

logger = logging.getLogger(__name__)

PHOTO_POST_TYPE = "photo"


class ResolvedContent(BaseModel):
    directive: ReadDirective
    media_urls: List[str]


class ContentResolver(ResourcePlugin):
    """
    Reads posts from the public Tumblr API.

    Args:
        http_client: Shared httpx client; its timeout bounds every call
        consumer: Consumer credentials, the key is sent as api_key
        settings: Tumblr settings
    """

    service_name = "tumblr_photos"

    def __init__(self, http_client: httpx.Client, consumer: ConsumerCredentials, settings: TumblrSettings):
        self._http = http_client
        self._consumer = consumer
        self._settings = settings

    def posts_url(self, account_identifier: str) -> str:
        return f"{self._settings.API_BASE_URL}/blog/{account_identifier}/posts"

    def fetch_post(self, directive: ReadDirective) -> dict:
        """
        Fetch the JSON document describing the post a directive points to.

        Raises:
            ExternalServiceError: On transport errors, timeouts, non-2xx
                responses or bodies that are not JSON
        """
        try:
            response = self._http.get(
                self.posts_url(directive.account_identifier),
                params={"api_key": self._consumer.key, "id": directive.post_id}
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Tumblr read of {directive.url} failed: {e}") from e

        if not response.is_success:
            raise ExternalServiceError(
                f"Tumblr read of {directive.url} returned HTTP {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(f"Tumblr read of {directive.url} returned invalid JSON") from e

    def resolve(self, directive: ReadDirective) -> List[str]:
        """
        Return the photo URLs of the post a directive points to.

        Returns:
            List[str]: Original-size photo URLs in source order, or an empty
                list if the post is missing or is not a photo post

        Raises:
            ExternalServiceError: If the post cannot be fetched
        """
        data = self.fetch_post(directive)
        post = json_path(data, "response", "posts", 0)
        post_type = json_str(post, "type")
        if post_type != PHOTO_POST_TYPE:
            logger.debug(f"Tumblr post {directive.post_id} is of type {post_type!r}, no photos to attach")
            return []

        urls = []
        for photo in json_list(post, "photos"):
            url = json_str(photo, "original_size", "url")
            if url:
                urls.append(url)
        return urls

    def resolve_all(self, directives: Iterable[ReadDirective]) -> List[ResolvedContent]:
        """Resolve every directive, logging failures and treating them as empty."""
        resolved = []
        for directive in directives:
            try:
                media_urls = self.resolve(directive)
            except ExternalServiceError as e:
                logger.warning(f"Could not resolve {directive.url}: {e}")
                media_urls = []
            resolved.append(ResolvedContent(directive=directive, media_urls=media_urls))
        return resolved
