# plugins/tumblr/resource/__init__.py
"""
Tumblr Resources
================

Read access to public posts and background publishing to linked blogs.
"""

from .photos import ContentResolver, ResolvedContent
from .publisher import PublishDispatcher, PublishTask

__all__ = ['ContentResolver', 'ResolvedContent', 'PublishDispatcher', 'PublishTask']
