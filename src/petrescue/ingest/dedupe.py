"""Conflict-free persistence of normalized records."""

from __future__ import annotations

from enum import Enum
from typing import Protocol

import structlog
from sqlalchemy.exc import SQLAlchemyError

from petrescue.errors import PersistenceError
from petrescue.ingest.listings import PetRecord

logger = structlog.get_logger()


class PersistOutcome(Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    FAILED = "failed"


class RecordSink(Protocol):
    def insert_if_absent(self, record: PetRecord) -> int | None: ...


def store_record(sink: RecordSink, record: PetRecord) -> tuple[int | None, PersistOutcome]:
    """Insert a record once and report what happened.

    Store errors are logged and reported as FAILED so the rest of the batch
    can continue.
    """
    try:
        pet_id = sink.insert_if_absent(record)
    except (SQLAlchemyError, PersistenceError) as exc:
        logger.error(
            "Persist failed",
            name=record.name,
            source=record.source_name,
            content_hash=record.content_hash[:16],
            error=str(exc),
        )
        return None, PersistOutcome.FAILED

    if pet_id is None:
        logger.debug("Duplicate listing skipped", name=record.name, source=record.source_name)
        return None, PersistOutcome.DUPLICATE

    record.id = pet_id
    return pet_id, PersistOutcome.CREATED


def persist_record(sink: RecordSink, record: PetRecord) -> int | None:
    """Return the new id, or ``None`` for an exact duplicate or a failed write."""
    pet_id, _outcome = store_record(sink, record)
    return pet_id
