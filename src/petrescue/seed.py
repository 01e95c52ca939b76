"""Sample pet seeding from sample_pets.yaml."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml  # type: ignore[import-untyped]

from petrescue.ingest.dedupe import PersistOutcome, store_record
from petrescue.ingest.listings import RawListing
from petrescue.ingest.normalize import normalize_listing
from petrescue.storage.repository import PetRepository

logger = structlog.get_logger()

SAMPLE_SOURCE = "Sample"


def load_sample_listings(path: str | Path) -> list[RawListing]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Sample pets file not found: {path}")
    data = yaml.safe_load(p.read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError("sample_pets.yaml must contain a top-level mapping")
    pets: list[dict[str, Any]] = data.get("pets", [])
    if not isinstance(pets, list):
        raise ValueError("sample_pets.yaml must contain a list under 'pets'")

    listings = []
    for item in pets:
        fields = {key: item.get(key) for key in RawListing.__dataclass_fields__ if key not in {"source_name", "extra"}}
        listings.append(RawListing(source_name=item.get("source_name") or SAMPLE_SOURCE, **fields))
    return listings


def seed_sample_pets(repository: PetRepository, path: str | Path = "sample_pets.yaml", *, force: bool = False) -> dict[str, int]:
    """Load sample pets through the normal normalize/persist path.

    Skipped when active pets already exist unless ``force`` is set.

    Returns:
        dict with counts: {loaded, created, duplicates, discarded, failed}
    """
    stats = {"loaded": 0, "created": 0, "duplicates": 0, "discarded": 0, "failed": 0}
    if not force and repository.count_active() > 0:
        logger.info("Pets already present, skipping seed")
        return stats

    listings = load_sample_listings(path)
    stats["loaded"] = len(listings)
    for raw in listings:
        try:
            record = normalize_listing(raw, raw.location or "")
        except Exception:
            logger.exception("Sample pet normalization failed", name=raw.name)
            record = None
        if record is None:
            stats["discarded"] += 1
            continue
        _pet_id, outcome = store_record(repository, record)
        if outcome is PersistOutcome.CREATED:
            stats["created"] += 1
        elif outcome is PersistOutcome.DUPLICATE:
            stats["duplicates"] += 1
        else:
            stats["failed"] += 1

    logger.info("Sample pets seeded", **stats)
    return stats
