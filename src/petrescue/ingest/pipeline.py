"""Ingestion pipeline: fetch -> normalize -> classify -> persist -> alert."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import structlog

from petrescue.alerts.matcher import AlertMatcher
from petrescue.alerts.notify import Notifier
from petrescue.errors import SourcesUnavailableError
from petrescue.ingest.dedupe import PersistOutcome, RecordSink, store_record
from petrescue.ingest.listings import PetRecord, RawListing
from petrescue.ingest.normalize import normalize_listing
from petrescue.ingest.urgency import UrgencyTier
from petrescue.sources.base import SourceAdapter, SourceResult

logger = structlog.get_logger()


class BatchState(Enum):
    PENDING = "pending"
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    CLASSIFYING = "classifying"
    PERSISTING = "persisting"
    DISPATCHING_ALERTS = "dispatching_alerts"
    DONE = "done"


@dataclass
class BatchStats:
    location: str
    species: str
    fetched: int = 0
    persisted: int = 0
    duplicates: int = 0
    discarded: int = 0
    failed: int = 0
    critical: int = 0
    alerts: int = 0
    sources_ok: int = 0
    sources_failed: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class RunStats:
    batches: list[BatchStats] = field(default_factory=list)

    def _total(self, attr: str) -> int:
        return sum(getattr(batch, attr) for batch in self.batches)

    @property
    def fetched(self) -> int:
        return self._total("fetched")

    @property
    def persisted(self) -> int:
        return self._total("persisted")

    @property
    def duplicates(self) -> int:
        return self._total("duplicates")

    @property
    def discarded(self) -> int:
        return self._total("discarded")

    @property
    def failed(self) -> int:
        return self._total("failed")

    @property
    def critical(self) -> int:
        return self._total("critical")

    @property
    def alerts(self) -> int:
        return self._total("alerts")

    @property
    def sources_ok(self) -> int:
        return self._total("sources_ok")

    @property
    def sources_failed(self) -> int:
        return self._total("sources_failed")

    def to_dict(self) -> dict[str, Any]:
        return {
            "fetched": self.fetched,
            "persisted": self.persisted,
            "duplicates": self.duplicates,
            "discarded": self.discarded,
            "failed": self.failed,
            "critical": self.critical,
            "alerts": self.alerts,
            "sources_ok": self.sources_ok,
            "sources_failed": self.sources_failed,
            "batches": [batch.to_dict() for batch in self.batches],
        }


class IngestionPipeline:
    """Runs batches of (location, species) work items against every adapter.

    Partial source outages only show up in the counts. A run raises
    SourcesUnavailableError only when no adapter call succeeded at all.
    """

    def __init__(
        self,
        adapters: Sequence[SourceAdapter],
        sink: RecordSink,
        matcher: AlertMatcher | None = None,
        notifier: Notifier | None = None,
        *,
        max_workers: int | None = None,
        now_fn: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self._adapters = list(adapters)
        self._sink = sink
        self._matcher = matcher
        self._notifier = notifier
        self._max_workers = max_workers or max(len(self._adapters), 1)
        self._now_fn = now_fn

    def run(self, locations: Sequence[str], species_list: Sequence[str]) -> RunStats:
        stats = RunStats()
        for location in locations:
            for species in species_list:
                stats.batches.append(self.run_batch(location, species))

        logger.info("Ingestion run complete", **{k: v for k, v in stats.to_dict().items() if k != "batches"})
        if stats.batches and stats.sources_ok == 0 and stats.sources_failed > 0:
            raise SourcesUnavailableError(f"No source reachable across {len(stats.batches)} batch(es)")
        return stats

    def run_batch(self, location: str, species: str) -> BatchStats:
        stats = BatchStats(location=location, species=species)
        log = logger.bind(location=location, species=species)
        log.debug("Batch state", state=BatchState.PENDING.value)

        log.debug("Batch state", state=BatchState.FETCHING.value, adapters=len(self._adapters))
        results = self._fetch_all(location, species)
        listings: list[RawListing] = []
        for result in results:
            if result.ok:
                stats.sources_ok += 1
                listings.extend(result.listings)
            else:
                stats.sources_failed += 1
        stats.fetched = len(listings)

        log.debug("Batch state", state=BatchState.NORMALIZING.value, listings=len(listings))
        now = self._now_fn()
        records: list[PetRecord] = []
        for raw in listings:
            try:
                record = normalize_listing(raw, location, species, now=now)
            except Exception:
                log.exception("Normalization failed", source=raw.source_name, url=raw.source_url)
                record = None
            if record is None:
                stats.discarded += 1
                continue
            records.append(record)

        # normalize_listing stamps the tier; nothing else may set it.
        log.debug("Batch state", state=BatchState.CLASSIFYING.value, records=len(records))

        log.debug("Batch state", state=BatchState.PERSISTING.value)
        new_critical: list[PetRecord] = []
        for record in records:
            pet_id, outcome = store_record(self._sink, record)
            if outcome is PersistOutcome.CREATED:
                stats.persisted += 1
                if record.urgency_tier == UrgencyTier.CRITICAL.value and pet_id is not None:
                    stats.critical += 1
                    new_critical.append(record)
            elif outcome is PersistOutcome.DUPLICATE:
                stats.duplicates += 1
            else:
                stats.failed += 1

        if new_critical:
            log.debug("Batch state", state=BatchState.DISPATCHING_ALERTS.value, critical=len(new_critical))
            for record in new_critical:
                stats.alerts += self._dispatch_alert(record)

        log.info("Batch complete", state=BatchState.DONE.value, **stats.to_dict())
        return stats

    def _fetch_all(self, location: str, species: str) -> list[SourceResult]:
        if not self._adapters:
            return []
        with ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="source") as pool:
            futures = [pool.submit(self._fetch_one, adapter, location, species) for adapter in self._adapters]
            return [future.result() for future in futures]

    @staticmethod
    def _fetch_one(adapter: SourceAdapter, location: str, species: str) -> SourceResult:
        name = getattr(adapter, "name", type(adapter).__name__)
        try:
            return adapter.fetch(location, species)
        except Exception as exc:
            logger.exception("Adapter raised", source=name, location=location, species=species)
            return SourceResult(source_name=name, ok=False, error=str(exc))

    def _dispatch_alert(self, record: PetRecord) -> int:
        if self._matcher is None:
            return 0
        emails = self._matcher.match(record)
        if not emails:
            return 0
        if self._notifier is not None:
            try:
                self._notifier.notify(emails, record)
            except Exception:
                logger.exception("Alert notification failed", pet_id=record.id)
        return 1
