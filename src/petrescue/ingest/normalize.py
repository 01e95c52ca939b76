"""Listing normalization: RawListing -> PetRecord."""

from __future__ import annotations

import hashlib
import json
import math
import re
from datetime import UTC, date, datetime
from typing import Any

import structlog
from dateutil import parser as date_parser

from petrescue.ingest.listings import PetRecord, RawListing
from petrescue.ingest.urgency import classify

logger = structlog.get_logger()

SPECIES_DOG = "Dog"
SPECIES_CAT = "Cat"
SPECIES_UNKNOWN = "Unknown"
CANONICAL_SPECIES = (SPECIES_DOG, SPECIES_CAT, SPECIES_UNKNOWN)

_SPECIES_ALIASES = {
    "dog": SPECIES_DOG,
    "dogs": SPECIES_DOG,
    "puppy": SPECIES_DOG,
    "puppies": SPECIES_DOG,
    "canine": SPECIES_DOG,
    "cat": SPECIES_CAT,
    "cats": SPECIES_CAT,
    "kitten": SPECIES_CAT,
    "kittens": SPECIES_CAT,
    "feline": SPECIES_CAT,
    "unknown": SPECIES_UNKNOWN,
}

ALL_SPECIES = "all"
DEFAULT_BREED = "Unknown"

_REGION_RE = re.compile(r",\s*([A-Z]{2})")
_INT_RE = re.compile(r"-?\d+")

# Fields that identify a scrape. Derived and ingestion-time values stay out.
_FINGERPRINT_FIELDS = (
    "source_name",
    "source_url",
    "name",
    "species",
    "breed",
    "age",
    "description",
    "location",
    "region",
    "days_in_shelter",
    "days_until_deadline",
    "contact_phone",
    "contact_email",
    "image_url",
)


def canonical_species(value: str | None) -> str | None:
    """Map a species label to Dog/Cat/Unknown; ``None`` for blank input."""
    if value is None:
        return None
    cleaned = value.strip().lower()
    if not cleaned:
        return None
    return _SPECIES_ALIASES.get(cleaned, SPECIES_UNKNOWN)


def parse_species(value: str | None) -> str | None:
    """Like ``canonical_species`` but rejects labels outside the vocabulary.

    Used for caller input (filters, subscriptions) where a typo must not
    silently widen to ``Unknown``.
    """
    if value is None or not value.strip():
        return None
    species = _SPECIES_ALIASES.get(value.strip().lower())
    if species is None:
        raise ValueError(f"unknown species {value!r}; expected one of {', '.join(CANONICAL_SPECIES)}")
    return species


def extract_region(location: str | None) -> str | None:
    """Return the two-letter code after the first comma, e.g. "Miami, FL" -> "FL"."""
    if not location:
        return None
    match = _REGION_RE.search(location)
    return match.group(1) if match else None


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = re.sub(r"\s+", " ", str(value)).strip()
    return text or None


def _coerce_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value)
    match = _INT_RE.search(str(value))
    if not match:
        return None
    try:
        return int(match.group(0))
    except ValueError:
        # exceeds the interpreter's int digit limit
        return None


def _coerce_date(value: Any) -> date | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError):
        return None


def compute_content_hash(fields: dict[str, Any], posted_date: date | None) -> str:
    """Fingerprint of scraped content; byte-identical scrapes collide."""
    payload = {key: fields.get(key) for key in _FINGERPRINT_FIELDS}
    payload["posted_date"] = posted_date.isoformat() if posted_date else None
    encoded = json.dumps(payload, sort_keys=True, ensure_ascii=True)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def normalize_listing(
    raw: RawListing,
    location: str,
    species: str = ALL_SPECIES,
    *,
    now: datetime | None = None,
) -> PetRecord | None:
    """Build a canonical record from a raw listing.

    Returns ``None`` when the listing has no usable name; such listings can
    be neither displayed nor deduplicated.
    """
    name = _clean_text(raw.name)
    if not name:
        logger.debug("Discarding listing without name", source=raw.source_name, url=raw.source_url)
        return None

    ingested_at = now or datetime.now(UTC)

    resolved_species = canonical_species(raw.species)
    if resolved_species is None and species and species.lower() != ALL_SPECIES:
        resolved_species = canonical_species(species)

    days_in_shelter = _coerce_int(raw.days_in_shelter)
    if days_in_shelter is not None and days_in_shelter < 0:
        days_in_shelter = None
    days_until_deadline = _coerce_int(raw.days_until_deadline)

    listing_location = _clean_text(raw.location) or _clean_text(location)

    fields: dict[str, Any] = {
        "source_name": raw.source_name,
        "source_url": _clean_text(raw.source_url),
        "name": name,
        "species": resolved_species or SPECIES_UNKNOWN,
        "breed": _clean_text(raw.breed) or DEFAULT_BREED,
        "age": _clean_text(raw.age),
        "description": _clean_text(raw.description),
        "location": listing_location,
        "region": extract_region(listing_location),
        "days_in_shelter": days_in_shelter,
        "days_until_deadline": days_until_deadline,
        "contact_phone": _clean_text(raw.contact_phone),
        "contact_email": _clean_text(raw.contact_email),
        "image_url": _clean_text(raw.image_url),
    }

    source_posted = _coerce_date(raw.posted_date)
    content_hash = compute_content_hash(fields, source_posted)

    return PetRecord(
        **fields,
        urgency_tier=classify(days_until_deadline, days_in_shelter).value,
        posted_date=source_posted or ingested_at.date(),
        ingested_at=ingested_at,
        content_hash=content_hash,
    )
