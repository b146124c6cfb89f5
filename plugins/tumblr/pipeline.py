# plugins/tumblr/pipeline.py
"""
Directive pipeline run when a post is created or edited.

enrich() runs before the post is stored: it strips directives and resolves
read directives inline. publish() runs after the post is stored and hands
publish directives to the background dispatcher.
"""

import logging
from typing import List, Sequence

from pydantic import BaseModel

from plugins.tumblr.directives import DirectiveScanner, PublishDirective
from plugins.tumblr.resource.photos import ContentResolver, ResolvedContent
from plugins.tumblr.resource.publisher import PublishDispatcher

logger = logging.getLogger(__name__)


class EnrichedText(BaseModel):
    text: str
    resolved: List[ResolvedContent]
    publish: List[PublishDirective]

    @property
    def media_urls(self) -> List[str]:
        """Media of every read directive, flattened in directive order."""
        return [url for content in self.resolved for url in content.media_urls]


class PostPipeline:
    def __init__(self, scanner: DirectiveScanner, resolver: ContentResolver, dispatcher: PublishDispatcher):
        self.scanner = scanner
        self.resolver = resolver
        self.dispatcher = dispatcher

    def enrich(self, text: str) -> EnrichedText:
        result = self.scanner.scan(text)
        resolved = self.resolver.resolve_all(result.read_directives)
        return EnrichedText(text=result.text, resolved=resolved, publish=result.publish_directives)

    def publish(self, user_id: str, directives: Sequence[PublishDirective]) -> int:
        """
        Dispatch publish directives for a saved post.

        Every ``!tumble`` of one text carries the same body, so the post is
        published once however many times the keyword appears.

        Returns:
            int: Number of publishes queued
        """
        queued = 0
        seen = set()
        for directive in directives:
            if directive.body in seen:
                continue
            seen.add(directive.body)
            if self.dispatcher.dispatch(user_id, directive):
                queued += 1
        return queued
