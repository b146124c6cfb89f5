# plugins/tumblr/directives.py
"""
Directive Scanner
=================

Finds directives that users embed in the text of their posts:

- ``!images:<permalink>`` asks for the photos of a Tumblr post to be
  attached to the local post (a read directive).
- ``!tumble`` asks for the post to be published to the user's Tumblr blog
  (a publish directive).

Directives must start a whitespace-delimited token. The characters of a
recognized directive are removed from the text while everything around it,
including the line break that ended its line, is kept verbatim. An
``!images:`` directive whose permalink cannot be parsed is not treated as a
directive at all and stays in the text untouched.
"""

import logging
import re
from enum import Enum
from typing import List, Literal, Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DIRECTIVE_PATTERN = re.compile(r"(?<!\S)(?:!images:(?P<url>\S+)|!tumble(?!\S))")


class DirectiveKind(str, Enum):
    READ = "read"
    PUBLISH = "publish"


class ReadDirective(BaseModel):
    """
    Attach the media of a Tumblr post.

    Attributes:
        url: The permalink as written by the user
        account_identifier: Host of the blog, e.g. "a.tumblr.com"
        post_id: Numeric identifier of the post
        blog_name: The host without the service suffix, e.g. "a"
    """

    kind: Literal[DirectiveKind.READ] = DirectiveKind.READ
    url: str
    account_identifier: str
    post_id: str
    blog_name: str


class PublishDirective(BaseModel):
    """Publish the post's text to the user's blog."""

    kind: Literal[DirectiveKind.PUBLISH] = DirectiveKind.PUBLISH
    body: str


Directive = Union[ReadDirective, PublishDirective]


class ScanResult(BaseModel):
    text: str
    directives: List[Directive]

    @property
    def read_directives(self) -> List[ReadDirective]:
        return [d for d in self.directives if d.kind == DirectiveKind.READ]

    @property
    def publish_directives(self) -> List[PublishDirective]:
        return [d for d in self.directives if d.kind == DirectiveKind.PUBLISH]


class DirectiveScanner:
    """
    Extracts directives from free text.

    Args:
        service_suffix: Host suffix a permalink must end with
    """

    def __init__(self, service_suffix: str = ".tumblr.com"):
        self.service_suffix = service_suffix.lower()

    def parse_permalink(self, url: str) -> Optional[ReadDirective]:
        """
        Parse a Tumblr permalink such as http://name.tumblr.com/post/123/slug.

        Returns:
            ReadDirective, or None if the URL does not have that shape
        """
        try:
            parts = urlsplit(url)
            host = parts.hostname
        except ValueError:
            return None

        if parts.scheme.lower() not in ("http", "https") or not host:
            return None
        host = host.lower()
        if not host.endswith(self.service_suffix):
            return None

        numeric = [segment for segment in parts.path.split("/") if segment.isdigit()]
        if not numeric:
            return None

        return ReadDirective(
            url=url,
            account_identifier=host,
            post_id=numeric[-1],
            blog_name=host[:-len(self.service_suffix)]
        )

    def scan(self, text: str) -> ScanResult:
        """
        Strip directives from text.

        Args:
            text: The text as written by the user

        Returns:
            ScanResult: The text without directives and the directives in
                the order they appear. Publish directives carry the stripped
                text, trimmed of surrounding whitespace, as their body.
        """
        pieces: List[str] = []
        directives: List[Directive] = []
        publish_count = 0
        position = 0

        for match in DIRECTIVE_PATTERN.finditer(text):
            url = match.group("url")
            if url is not None:
                directive = self.parse_permalink(url)
                if directive is None:
                    logger.debug(f"Leaving malformed !images permalink in text: {url!r}")
                    continue
                directives.append(directive)
            else:
                # placeholder, the body is only known once scanning is done
                directives.append(None)
                publish_count += 1

            pieces.append(text[position:match.start()])
            position = match.end()

        pieces.append(text[position:])
        stripped = "".join(pieces)

        if publish_count:
            body = stripped.strip()
            directives = [
                PublishDirective(body=body) if directive is None else directive
                for directive in directives
            ]

        return ScanResult(text=stripped, directives=directives)
