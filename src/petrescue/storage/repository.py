"""Persistence collaborator for pets, subscriptions and runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, sessionmaker

from petrescue.db import get_db
from petrescue.errors import PersistenceError
from petrescue.ingest.listings import PetRecord
from petrescue.models import AlertSubscription, IngestRun, Pet

logger = structlog.get_logger()

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


@dataclass(frozen=True)
class Subscription:
    email: str
    regions: frozenset[str] = frozenset()
    species: frozenset[str] = frozenset()


@dataclass(frozen=True)
class PetStats:
    total: int
    by_tier: dict[str, int] = field(default_factory=dict)
    by_species: dict[str, int] = field(default_factory=dict)
    distinct_regions: int = 0
    mean_days_in_shelter: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "by_tier": dict(self.by_tier),
            "by_species": dict(self.by_species),
            "distinct_regions": self.distinct_regions,
            "mean_days_in_shelter": self.mean_days_in_shelter,
        }


class PetRepository:
    """SQLAlchemy-backed store. Sessions come from the factory it is given."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def session(self):
        return get_db(self._session_factory)

    # Pets

    def insert_if_absent(self, record: PetRecord) -> int | None:
        """Insert unless a row with the same content hash exists.

        Returns the new id, or ``None`` when the row already existed. The
        conflict check and the insert are a single statement.
        """
        with self.session() as session:
            dialect = session.get_bind().dialect.name
            insert_fn = _DIALECT_INSERTS.get(dialect)
            if insert_fn is None:
                raise PersistenceError(f"Conflict-free insert not supported for dialect {dialect}")
            stmt = (
                insert_fn(Pet)
                .values(**record.to_row())
                .on_conflict_do_nothing(index_elements=[Pet.content_hash])
                .returning(Pet.id)
            )
            return session.execute(stmt).scalar_one_or_none()

    def get(self, pet_id: int) -> PetRecord | None:
        with self.session() as session:
            pet = session.get(Pet, pet_id)
            return PetRecord.from_model(pet) if pet else None

    def query_active(self, where: list[Any], order_by: list[Any], limit: int, offset: int) -> list[PetRecord]:
        stmt = select(Pet).where(Pet.is_active.is_(True), *where).order_by(*order_by).limit(limit).offset(offset)
        with self.session() as session:
            return [PetRecord.from_model(pet) for pet in session.scalars(stmt)]

    def count_active(self) -> int:
        with self.session() as session:
            return session.scalar(select(func.count(Pet.id)).where(Pet.is_active.is_(True))) or 0

    def stats(self) -> PetStats:
        active = Pet.is_active.is_(True)
        with self.session() as session:
            total = session.scalar(select(func.count(Pet.id)).where(active)) or 0
            by_tier = dict(
                session.execute(select(Pet.urgency_tier, func.count(Pet.id)).where(active).group_by(Pet.urgency_tier)).all()
            )
            by_species = dict(
                session.execute(select(Pet.species, func.count(Pet.id)).where(active).group_by(Pet.species)).all()
            )
            regions = session.scalar(select(func.count(func.distinct(Pet.region))).where(active)) or 0
            mean_days = session.scalar(select(func.avg(Pet.days_in_shelter)).where(active))

        return PetStats(
            total=total,
            by_tier=by_tier,
            by_species=by_species,
            distinct_regions=regions,
            mean_days_in_shelter=round(float(mean_days), 2) if mean_days is not None else None,
        )

    # Subscriptions

    def get_subscriptions(self) -> list[Subscription]:
        with self.session() as session:
            rows = session.scalars(select(AlertSubscription).order_by(AlertSubscription.email)).all()
            return [
                Subscription(
                    email=row.email,
                    regions=frozenset(row.regions or []),
                    species=frozenset(row.species or []),
                )
                for row in rows
            ]

    def upsert_subscription(self, email: str, regions: list[str], species: list[str]) -> bool:
        """Create or fully replace a subscription. Returns True when created."""
        with self.session() as session:
            existing = session.scalars(select(AlertSubscription).filter_by(email=email)).first()
            if existing:
                existing.regions = list(regions)
                existing.species = list(species)
                existing.updated_at = datetime.now(UTC)
                return False
            session.add(AlertSubscription(email=email, regions=list(regions), species=list(species)))
            return True

    # Runs

    def start_run(self, run_type: str) -> int:
        with self.session() as session:
            run = IngestRun(run_type=run_type, started_at=datetime.now(UTC), status="running")
            session.add(run)
            session.flush()
            return run.id

    def finish_run(self, run_id: int, status: str, stats: dict[str, Any], error: dict[str, Any] | None = None) -> None:
        with self.session() as session:
            run = session.get(IngestRun, run_id)
            if run is None:
                logger.warning("Run not found", run_id=run_id)
                return
            run.status = status
            run.finished_at = datetime.now(UTC)
            run.stats_json = stats
            run.error_json = error or {}
