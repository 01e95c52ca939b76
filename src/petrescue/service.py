"""Operations exposed to an HTTP layer or the CLI."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog
from pydantic import ValidationError

from petrescue.alerts.matcher import AlertMatcher
from petrescue.alerts.notify import Notifier
from petrescue.alerts.subscriptions import SubscriptionRequest
from petrescue.errors import SubscriptionError
from petrescue.ingest.listings import PetRecord
from petrescue.ingest.pipeline import IngestionPipeline, RunStats
from petrescue.query.engine import QueryEngine
from petrescue.query.filters import PetFilters
from petrescue.sources.base import SourceAdapter
from petrescue.storage.repository import PetRepository, PetStats

logger = structlog.get_logger()


class PetRescueService:
    def __init__(
        self,
        repository: PetRepository,
        adapters: Sequence[SourceAdapter],
        notifier: Notifier | None = None,
        *,
        max_workers: int | None = None,
    ):
        self.repository = repository
        self.query = QueryEngine(repository)
        self.pipeline = IngestionPipeline(
            adapters,
            repository,
            AlertMatcher(repository),
            notifier,
            max_workers=max_workers,
        )

    def list_pets(self, filters: PetFilters | dict[str, Any] | None = None) -> list[PetRecord]:
        if isinstance(filters, dict):
            filters = PetFilters.model_validate(filters)
        return self.query.search(filters)

    def get_pet(self, pet_id: int) -> PetRecord | None:
        return self.query.get(pet_id)

    def get_stats(self) -> PetStats:
        return self.query.stats()

    def trigger_ingest(self, location: str, species: str = "all") -> RunStats:
        logger.info("Manual ingest triggered", location=location, species=species)
        return self.pipeline.run([location], [species])

    def subscribe(self, email: str, regions: Sequence[str] | None = None, species: Sequence[str] | None = None) -> SubscriptionRequest:
        try:
            request = SubscriptionRequest(email=email, regions=list(regions or []), species=list(species or []))
        except ValidationError as exc:
            raise SubscriptionError(str(exc)) from exc
        created = self.repository.upsert_subscription(request.email, request.regions, request.species)
        logger.info(
            "Subscription saved",
            email=request.email,
            created=created,
            regions=request.regions,
            species=request.species,
        )
        return request
