# plugins/tumblr/models.py
"""
Database models for Tumblr plugin
"""

from sqlalchemy import Column, String, ForeignKey, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid

from database import Base


class TumblrLink(Base):
    """
    Represents the link between a local user and a Tumblr account.

    A user has at most one link. The row holds the OAuth access token used to
    sign publish requests and the blog that publishes are sent to. It is
    replaced when the user links again and deleted when they unlink.
    """
    __tablename__ = "tumblr_links"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id"), unique=True, nullable=False)
    oauth_token = Column(String, nullable=False)
    oauth_token_secret = Column(String, nullable=False)
    tumblr_username = Column(String, nullable=True)
    blog_identifier = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationship
    user = relationship("User")
