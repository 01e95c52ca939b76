"""Pytest fixtures for Pet Rescue tests."""

import os
from collections.abc import Generator
from datetime import UTC, datetime

import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from petrescue.db import create_db_engine, create_session_factory
from petrescue.ingest.listings import PetRecord, RawListing
from petrescue.ingest.normalize import normalize_listing
from petrescue.models import Base
from petrescue.sources.base import SourceResult
from petrescue.storage.repository import PetRepository

# Test database URL - in-memory SQLite unless overridden
TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+pysqlite:///:memory:")

FIXED_NOW = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh schema per test."""
    engine = create_db_engine(TEST_DATABASE_URL)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def repository(session_factory) -> PetRepository:
    return PetRepository(session_factory)


def make_raw(**overrides) -> RawListing:
    fields = {
        "source_name": "TestSource",
        "name": "Buddy",
        "species": "Dog",
        "breed": "Labrador",
        "age": "2 years",
        "location": "Dallas, TX",
        "description": "Friendly and energetic dog.",
        "source_url": "https://example.org/pets/buddy",
        "days_in_shelter": 10,
        "days_until_deadline": 5,
    }
    fields.update(overrides)
    return RawListing(**fields)


def make_record(now: datetime = FIXED_NOW, **overrides) -> PetRecord:
    record = normalize_listing(make_raw(**overrides), "Dallas, TX", "all", now=now)
    assert record is not None
    return record


class FakeAdapter:
    """Adapter double returning canned listings."""

    def __init__(self, name: str, listings: list[RawListing] | None = None, *, ok: bool = True):
        self.name = name
        self._listings = listings or []
        self._ok = ok
        self.calls: list[tuple[str, str]] = []

    def fetch(self, location: str, species: str) -> SourceResult:
        self.calls.append((location, species))
        if not self._ok:
            return SourceResult(source_name=self.name, ok=False, error="unreachable")
        return SourceResult(source_name=self.name, ok=True, listings=list(self._listings))

    def fetch_listings(self, location: str, species: str = "all") -> list[RawListing]:
        return self.fetch(location, species).listings


class ExplodingAdapter:
    name = "Exploding"

    def fetch(self, location: str, species: str) -> SourceResult:
        raise RuntimeError("adapter blew up")

    def fetch_listings(self, location: str, species: str = "all") -> list[RawListing]:
        raise RuntimeError("adapter blew up")


class RecordingNotifier:
    def __init__(self):
        self.sent: list[tuple[list[str], PetRecord]] = []

    def notify(self, emails: list[str], record: PetRecord) -> None:
        self.sent.append((list(emails), record))
