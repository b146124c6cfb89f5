# Standard library imports
import logging
from contextlib import asynccontextmanager
from typing import Optional

# Third-party imports
from dotenv import load_dotenv
from fastapi import Depends, FastAPI
from starlette.middleware.sessions import SessionMiddleware

# Make sure environment variables are loaded before settings are read
load_dotenv()

# Local imports
from config import Settings, get_settings
from database import Base, SessionLocal, engine
from middleware import SecurityHeadersMiddleware
import models  # noqa: F401  (registers host tables)
from plugins.tumblr import PostRoutes, TumblrOAuthRoutes, TumblrService, create_tumblr_service
from plugins.tumblr.routes.dependencies import get_tumblr_service

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def create_app(
    settings: Optional[Settings] = None,
    tumblr_service: Optional[TumblrService] = None
) -> FastAPI:
    """
    Build the application.

    The Tumblr integration is kept on app.state while the app is running and
    its publish workers run for the lifetime of the app. When no service is
    passed in, one is constructed at startup and closed again at shutdown, so
    importing this module opens no HTTP connections.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        Base.metadata.create_all(bind=engine)
        service = tumblr_service or create_tumblr_service(session_factory=SessionLocal)
        app.state.tumblr = service
        service.start()
        try:
            yield
        finally:
            service.close()
            if tumblr_service is None:
                del app.state.tumblr

    app = FastAPI(title="Tumblr Link Proxy", lifespan=lifespan)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY,
        session_cookie=settings.SESSION_COOKIE_NAME,
        max_age=settings.SESSION_EXPIRY_HOURS * 3600,
        same_site=settings.SESSION_SAME_SITE,
        https_only=settings.SESSION_HTTPS_ONLY
    )
    app.add_middleware(
        SecurityHeadersMiddleware,
        content_security_policy=settings.CONTENT_SECURITY_POLICY
    )

    for route_plugin in (TumblrOAuthRoutes(), PostRoutes()):
        app.include_router(route_plugin.get_router(), prefix=route_plugin.prefix)
        logger.info(f"Mounted routes for service: {route_plugin.service_name}")

    @app.get("/")
    async def root(tumblr: TumblrService = Depends(get_tumblr_service)):
        """Report whether the Tumblr integration is configured."""
        return {
            "service": "Tumblr Link Proxy",
            "tumblr_configured": tumblr.oauth.consumer.configured,
            "publish_workers_running": tumblr.dispatcher.running
        }

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
