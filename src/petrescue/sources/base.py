"""Adapter base types for listing sources."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

import structlog

from petrescue.errors import SourceUnavailableError
from petrescue.ingest.listings import RawListing
from petrescue.ingest.normalize import SPECIES_UNKNOWN
from petrescue.sources.fetch import FetchResult, fetch_url

logger = structlog.get_logger()


@dataclass(frozen=True)
class SourceResult:
    source_name: str
    ok: bool
    listings: list[RawListing] = field(default_factory=list)
    error: str | None = None
    duration_ms: int | None = None


class SourceAdapter(Protocol):
    @property
    def name(self) -> str: ...

    def fetch(self, location: str, species: str) -> SourceResult: ...

    def fetch_listings(self, location: str, species: str = "all") -> list[RawListing]: ...


Fetcher = Callable[..., FetchResult]


def source_extra(**values: Any) -> dict[str, Any]:
    """Source-specific fields kept on the raw listing, blanks dropped."""
    return {key: value for key, value in values.items() if value not in (None, "")}


class ListingSource:
    """Shared fetch behaviour; subclasses supply ``_scrape`` and a species vocabulary."""

    name = "source"
    species_map: dict[str, str] = {}

    def __init__(self, base_url: str, *, timeout_seconds: float = 20.0, fetcher: Fetcher | None = None):
        self.base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._fetcher = fetcher or fetch_url

    def fetch(self, location: str, species: str = "all") -> SourceResult:
        """Scrape one (location, species) pair. Never raises."""
        start = time.monotonic()
        try:
            listings = self._scrape(location, species)
        except Exception as exc:
            logger.warning("Source fetch failed", source=self.name, location=location, species=species, error=str(exc))
            return SourceResult(
                source_name=self.name,
                ok=False,
                error=str(exc),
                duration_ms=int((time.monotonic() - start) * 1000),
            )

        logger.info("Source fetched", source=self.name, location=location, species=species, listings=len(listings))
        return SourceResult(
            source_name=self.name,
            ok=True,
            listings=listings,
            duration_ms=int((time.monotonic() - start) * 1000),
        )

    def fetch_listings(self, location: str, species: str = "all") -> list[RawListing]:
        return self.fetch(location, species).listings

    def map_species(self, label: Any) -> str | None:
        """``None`` when the source gave no label, so the requested species can stand in."""
        if label is None:
            return None
        cleaned = str(label).strip().lower()
        if not cleaned:
            return None
        return self.species_map.get(cleaned, SPECIES_UNKNOWN)

    def _get(self, url: str, *, params: dict[str, Any] | None = None, accept: str = "text/html") -> str:
        result = self._fetcher(url, params=params, accept=accept, timeout_seconds=self._timeout_seconds)
        if result.error or not result.text:
            raise SourceUnavailableError(f"{self.name}: {result.error or 'empty response'} ({url})")
        return result.text

    def _scrape(self, location: str, species: str) -> list[RawListing]:
        raise NotImplementedError
