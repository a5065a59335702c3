from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from clipcore.database import Base
from clipcore.models.history import ClipEntry, WindowSource

BASE_TS = datetime(2024, 5, 31, 16, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session")
def engine():
    """Create a test database engine (in-memory SQLite shared across connections)."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine) -> Session:  # pyright: ignore[reportInvalidTypeForm]
    """Create a new database session for each test."""
    import clipcore.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_entry():
    """
    Factory for history entries. ``age`` is in seconds before BASE_TS so a
    larger age means an older entry.
    """

    def _make(
        entry_id: int,
        text: str = None,
        *,
        age: int = 0,
        pinned: bool = False,
        tags=(),
        image: bool = False,
        ocr_text: str = None,
        source: WindowSource = None,
        width: int = 1280,
        height: int = 720,
    ) -> ClipEntry:
        ts = BASE_TS - timedelta(seconds=age)
        if image:
            return ClipEntry(
                id=entry_id,
                type="image",
                file_path=f"/tmp/clipdeck/{entry_id}.png",
                width=width,
                height=height,
                ocr_text=ocr_text,
                source=source,
                tags=list(tags),
                pinned=pinned,
                ts=ts,
            )
        return ClipEntry(
            id=entry_id,
            type="text",
            text=text if text is not None else f"entry {entry_id}",
            source=source,
            tags=list(tags),
            pinned=pinned,
            ts=ts,
        )

    return _make
