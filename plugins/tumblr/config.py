# plugins/tumblr/config.py
"""
Configuration for Tumblr plugin
"""

from pydantic_settings import BaseSettings
from functools import lru_cache

class TumblrSettings(BaseSettings):
    """
    Tumblr-specific settings

    These settings can be configured via environment variables
    prefixed with TUMBLR_, e.g., TUMBLR_CONSUMER_KEY
    """
    # OAuth consumer credentials
    CONSUMER_KEY: str = ""
    CONSUMER_SECRET: str = ""
    OAUTH_CALLBACK_URL: str = "http://localhost:8000/tumblr/oauth/callback"

    # OAuth 1.0a endpoints
    REQUEST_TOKEN_URL: str = "https://www.tumblr.com/oauth/request_token"
    AUTHORIZE_URL: str = "https://www.tumblr.com/oauth/authorize"
    ACCESS_TOKEN_URL: str = "https://www.tumblr.com/oauth/access_token"

    # API v2
    API_BASE_URL: str = "https://api.tumblr.com/v2"
    BLOG_HOST_SUFFIX: str = ".tumblr.com"

    # Network
    HTTP_TIMEOUT_SECONDS: float = 10.0

    # Abandoned handshakes expire after this many seconds
    REQUEST_TOKEN_TTL_SECONDS: int = 600

    # Background publishing
    PUBLISH_WORKERS: int = 4
    PUBLISH_QUEUE_SIZE: int = 100

    # Store account links in the database instead of process memory
    PERSIST_LINKS: bool = True

    class Config:
        env_prefix = "TUMBLR_"
        env_file = ".env"
        extra = "ignore"

@lru_cache()
def get_tumblr_settings():
    """
    Get the Tumblr settings, cached to avoid reloading
    """
    return TumblrSettings()
