"""Pytest configuration and fixtures for Format Poker tests."""

import os

# Must be set before format_poker.db.session builds its engine
os.environ.setdefault("DATABASE_URL", "sqlite://")

from collections.abc import Generator  # noqa: E402
from datetime import timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from format_poker.api.deps import get_db, get_live_broadcaster  # noqa: E402
from format_poker.core.config import get_settings  # noqa: E402
from format_poker.core.time import utcnow  # noqa: E402
from format_poker.db.session import create_db_engine  # noqa: E402
from format_poker.main import app  # noqa: E402
from format_poker.models import Base, Format, FormatStatus, Vote  # noqa: E402
from format_poker.services.broadcaster import Broadcaster  # noqa: E402

# Use SQLite in-memory for tests (fast, isolated)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_db_engine(SQLALCHEMY_DATABASE_URL, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def broadcaster() -> Broadcaster:
    """A private broadcaster so tests never see each other's events."""
    return Broadcaster(queue_size=8)


@pytest.fixture(scope="function")
def client(db: Session, broadcaster: Broadcaster) -> Generator[TestClient, None, None]:
    """Create a test client with database and broadcaster overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass  # Don't close the session here, let the db fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_live_broadcaster] = lambda: broadcaster
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Key": get_settings().admin_key}


def make_format(
    db: Session,
    name: str,
    kind: str = "image",
    status: FormatStatus = FormatStatus.REQUESTED,
    votes: int = 0,
    age_minutes: int = 0,
) -> Format:
    fmt = Format(
        name=name,
        kind=kind,
        status=status.value,
        votes=votes,
        created_at=utcnow() - timedelta(minutes=age_minutes),
    )
    db.add(fmt)
    db.commit()
    db.refresh(fmt)
    return fmt


def add_votes(db: Session, fmt: Format, device_ids: list[str]) -> None:
    """Insert vote rows and set the counter to match."""
    for device_id in device_ids:
        db.add(Vote(device_id=device_id, format_id=fmt.id))
    fmt.votes = len(device_ids)
    db.commit()
    db.refresh(fmt)


@pytest.fixture
def requested_format(db: Session) -> Format:
    """A Requested format with three existing votes (devices d1..d3)."""
    fmt = make_format(db, "JPEG XL (JXL)")
    add_votes(db, fmt, ["d1", "d2", "d3"])
    return fmt


@pytest.fixture
def catalog(db: Session) -> list[Format]:
    """A small mixed catalog with distinct vote counts and ages."""
    rows = [
        ("AVIF", "image", FormatStatus.SUPPORTED, 2, 50),
        ("FLAC", "audio", FormatStatus.REQUESTED, 7, 40),
        ("AV1", "video", FormatStatus.REQUESTED, 5, 30),
        ("WAV", "audio", FormatStatus.PLANNED, 0, 20),
        ("Opus", "audio", FormatStatus.REQUESTED, 5, 10),
    ]
    return [
        make_format(db, name, kind, status, votes, age)
        for name, kind, status, votes, age in rows
    ]


@pytest.fixture
def format_factory(db: Session):
    """Create formats inline: ``format_factory("WebP", votes=2)``."""

    def _make(name: str, **kwargs) -> Format:
        return make_format(db, name, **kwargs)

    return _make
