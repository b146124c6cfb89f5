"""
Shared pytest fixtures and configuration
"""

import os
import sys
import threading
from pathlib import Path
from typing import Callable, Dict, List, Tuple

import pytest

# Add the project root to Python path to make imports work
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any settings are loaded
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TUMBLR_CONSUMER_KEY"] = "test_consumer_key"
os.environ["TUMBLR_CONSUMER_SECRET"] = "test_consumer_secret"
os.environ["TUMBLR_OAUTH_CALLBACK_URL"] = "http://testserver/tumblr/oauth/callback"

import httpx
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from models import User
from plugins.tumblr.auth.oauth import OAuth1Client
from plugins.tumblr.auth.signature import percent_decode, sign
from plugins.tumblr.auth.token_store import TokenStore
from plugins.tumblr.auth.tokens import ConsumerCredentials
from plugins.tumblr.config import TumblrSettings
from plugins.tumblr.models import TumblrLink  # noqa: F401  (registers the table)

# Create in-memory SQLite database for testing
engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_USER_ID = "test-user-id"
TEST_NONCE = "test-nonce"
TEST_TIMESTAMP = 1700000000


class FakeClock:
    """Controllable time source."""

    def __init__(self, now: float = TEST_TIMESTAMP):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTumblr:
    """
    Request handler for httpx.MockTransport standing in for Tumblr.

    Responses are registered per (method, path). A registered response can be
    a callable taking the httpx.Request, which may block or raise to simulate
    slow or failing endpoints. Every request is recorded.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self._routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self._lock = threading.Lock()

    def add(self, method: str, path: str, status_code: int = 200, text: str = None, json=None, handler=None):
        if handler is None:
            def handler(request, status_code=status_code, text=text, json=json):
                if json is not None:
                    return httpx.Response(status_code, json=json)
                return httpx.Response(status_code, text=text or "")
        self._routes[(method.upper(), path)] = handler

    def requests_to(self, path: str) -> List[httpx.Request]:
        with self._lock:
            return [request for request in self.requests if request.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
        handler = self._routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"meta": {"status": 404, "msg": "Not Found"}})
        return handler(request)


def parse_authorization_header(value: str) -> Dict[str, str]:
    """Split an "OAuth k="v", ..." header into decoded parameters."""
    assert value.startswith("OAuth ")
    params = {}
    for field in value[len("OAuth "):].split(", "):
        key, _, quoted = field.partition("=")
        params[percent_decode(key)] = percent_decode(quoted.strip('"'))
    return params


def form_params(request: httpx.Request) -> Dict[str, str]:
    from urllib.parse import parse_qsl
    return dict(parse_qsl(request.content.decode("utf-8"), keep_blank_values=True))


def assert_valid_signature(request: httpx.Request, consumer_secret: str, token_secret: str = None) -> Dict[str, str]:
    """Recompute the signature of a recorded request and compare it."""
    oauth = parse_authorization_header(request.headers["Authorization"])
    signature = oauth.pop("oauth_signature")

    params = list(request.url.params.multi_items())
    if request.headers.get("content-type", "").startswith("application/x-www-form-urlencoded"):
        params.extend(form_params(request).items())
    params.extend(oauth.items())

    base_url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
    assert sign(request.method, base_url, params, consumer_secret, token_secret) == signature
    return oauth


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tumblr_settings():
    return TumblrSettings(
        CONSUMER_KEY="test_consumer_key",
        CONSUMER_SECRET="test_consumer_secret",
        OAUTH_CALLBACK_URL="http://testserver/tumblr/oauth/callback",
        HTTP_TIMEOUT_SECONDS=5,
        REQUEST_TOKEN_TTL_SECONDS=600,
        PUBLISH_WORKERS=2,
        PUBLISH_QUEUE_SIZE=10,
        PERSIST_LINKS=True
    )


@pytest.fixture
def consumer(tumblr_settings):
    return ConsumerCredentials(key=tumblr_settings.CONSUMER_KEY, secret=tumblr_settings.CONSUMER_SECRET)


@pytest.fixture
def fake_tumblr():
    return FakeTumblr()


@pytest.fixture
def http_client(fake_tumblr, tumblr_settings):
    client = httpx.Client(
        transport=httpx.MockTransport(fake_tumblr),
        timeout=tumblr_settings.HTTP_TIMEOUT_SECONDS
    )
    yield client
    client.close()


@pytest.fixture
def token_store(clock, tumblr_settings):
    return TokenStore(request_token_ttl=tumblr_settings.REQUEST_TOKEN_TTL_SECONDS, clock=clock)


@pytest.fixture
def oauth_client(consumer, token_store, http_client, tumblr_settings, clock):
    return OAuth1Client(
        consumer,
        token_store,
        http_client,
        tumblr_settings,
        clock=clock,
        nonce_factory=lambda: TEST_NONCE
    )


@pytest.fixture(scope="function")
def test_db():
    """
    Create all tables in the test database and provide a new session for testing.
    Tear down the tables after the test is complete.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def session_factory(test_db):
    """Session factory bound to the test database."""
    return TestingSessionLocal


@pytest.fixture(scope="function")
def test_user(test_db) -> User:
    """
    Create a test user in the database.
    """
    user = User(
        id=TEST_USER_ID,
        username="test_user",
        display_name="Test User"
    )
    test_db.add(user)
    test_db.commit()
    test_db.refresh(user)
    return user


@pytest.fixture
def tumblr_service(tumblr_settings, http_client, clock, session_factory):
    from plugins.tumblr.service import create_tumblr_service

    return create_tumblr_service(
        settings=tumblr_settings,
        session_factory=session_factory,
        http_client=http_client,
        clock=clock,
        nonce_factory=lambda: TEST_NONCE
    )


@pytest.fixture(scope="function")
def app(tumblr_service, test_db):
    """
    Create a FastAPI app for testing with DB dependency override.
    """
    from main import create_app

    test_app = create_app(tumblr_service=tumblr_service)

    def override_get_db():
        try:
            yield test_db
        finally:
            pass

    test_app.dependency_overrides[get_db] = override_get_db
    return test_app


@pytest.fixture(scope="function")
def anonymous_client(app):
    """Test client without a signed-in user."""
    from fastapi.testclient import TestClient

    with TestClient(app) as client:
        yield client


@pytest.fixture(scope="function")
def client(app, test_user):
    """Test client with the test user signed in."""
    from fastapi.testclient import TestClient
    from plugins.tumblr.routes.dependencies import get_current_user_id

    user_id = test_user.id
    app.dependency_overrides[get_current_user_id] = lambda: user_id
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def linked_user(tumblr_service, test_user):
    """Link the test user to the blog "testblog.tumblr.com"."""
    return tumblr_service.token_store.put_access_link(
        test_user.id,
        "access-token",
        "access-secret",
        "testblog.tumblr.com",
        external_account_id="testblog"
    )
