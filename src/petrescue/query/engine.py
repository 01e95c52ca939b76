"""Filtered, urgency-ordered reads over active pets."""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import case
from sqlalchemy.exc import SQLAlchemyError

from petrescue.errors import QueryError
from petrescue.ingest.listings import PetRecord
from petrescue.ingest.urgency import TIER_RANK
from petrescue.models import Pet
from petrescue.query.filters import PetFilters
from petrescue.storage.repository import PetRepository, PetStats

logger = structlog.get_logger()

TIER_RANK_EXPR = case(TIER_RANK, value=Pet.urgency_tier, else_=len(TIER_RANK) + 1)

# Most urgent first, then soonest deadline, then newest ingest.
ORDERING = (
    TIER_RANK_EXPR.asc(),
    Pet.days_until_deadline.asc().nulls_last(),
    Pet.ingested_at.desc(),
    Pet.id.desc(),
)


def build_predicates(filters: PetFilters) -> list[Any]:
    predicates: list[Any] = []
    if filters.region is not None:
        predicates.append(Pet.region == filters.region)
    if filters.species is not None:
        predicates.append(Pet.species == filters.species)
    if filters.urgency_tier is not None:
        predicates.append(Pet.urgency_tier == filters.urgency_tier.value)
    if filters.days_in_shelter_min is not None:
        predicates.append(Pet.days_in_shelter >= filters.days_in_shelter_min)
    if filters.days_in_shelter_max is not None:
        predicates.append(Pet.days_in_shelter <= filters.days_in_shelter_max)
    if filters.days_until_deadline_max is not None:
        predicates.append(Pet.days_until_deadline <= filters.days_until_deadline_max)
    return predicates


class QueryEngine:
    """Read side. Store failures surface as QueryError; no partial results."""

    def __init__(self, repository: PetRepository):
        self._repository = repository

    def search(self, filters: PetFilters | None = None) -> list[PetRecord]:
        filters = filters or PetFilters()
        try:
            return self._repository.query_active(
                build_predicates(filters),
                list(ORDERING),
                limit=filters.limit,
                offset=filters.offset,
            )
        except SQLAlchemyError as exc:
            logger.error("Pet query failed", filters=filters.model_dump(mode="json"), error=str(exc))
            raise QueryError("Unable to query pets") from exc

    def get(self, pet_id: int) -> PetRecord | None:
        try:
            return self._repository.get(pet_id)
        except SQLAlchemyError as exc:
            logger.error("Pet lookup failed", pet_id=pet_id, error=str(exc))
            raise QueryError(f"Unable to load pet {pet_id}") from exc

    def stats(self) -> PetStats:
        try:
            return self._repository.stats()
        except SQLAlchemyError as exc:
            logger.error("Stats query failed", error=str(exc))
            raise QueryError("Unable to compute stats") from exc
