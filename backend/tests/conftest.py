"""
Test fixtures for Brandwire backend tests.
"""
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from brandwire.database import Base, get_db
from brandwire.main import app
from brandwire.models.brand import Brand
from brandwire.services.feeds.base import FeedFetchError


# Create test database engine (SQLite in-memory, one shared connection)
TEST_DATABASE_URL = "sqlite:///:memory:"

test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign key constraints for SQLite
@event.listens_for(test_engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


class FakeFeedClient:
    """Stands in for FeedClient: serves canned entries or errors per URL."""

    def __init__(self, feeds=None):
        self.feeds = dict(feeds or {})
        self.requested = []

    async def fetch_and_parse(self, url):
        self.requested.append(url)
        feed = self.feeds.get(url)
        if isinstance(feed, Exception):
            raise feed
        if feed is None:
            raise FeedFetchError(f"Could not reach {url}")
        return list(feed)


def make_entry(n, brand_slug="brand", **overrides):
    entry = {
        "id": f"https://{brand_slug}.example.com/posts/{n}",
        "title": f"Post number {n}",
        "link": f"https://{brand_slug}.example.com/posts/{n}",
        "summary": f"<p>Body of post {n}</p>",
        "published": f"{n % 28 + 1:02d} Jan 2025 10:00:00 GMT",
    }
    entry.update(overrides)
    return entry


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def make_brand(db_session):
    """Factory for brands; RSS is enabled whenever a feed URL is given."""
    def _make_brand(name, rss_feed_url=None, rss_fetch_enabled=None):
        brand = Brand(
            name=name,
            logo_path=f"/logos/{name.lower()}.png",
            rss_feed_url=rss_feed_url,
            rss_fetch_enabled=bool(rss_feed_url) if rss_fetch_enabled is None else rss_fetch_enabled,
        )
        db_session.add(brand)
        db_session.commit()
        db_session.refresh(brand)
        return brand

    return _make_brand


@pytest.fixture(scope="function")
def override_get_db(db_session):
    """
    Override the get_db dependency to use the test database session.
    """
    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    return _override_get_db


@pytest.fixture(scope="function")
async def client(override_get_db):
    """
    Create an async test client with the database dependency overridden.
    """
    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clear overrides after test
    app.dependency_overrides.clear()
