"""Listing contracts passed between pipeline stages."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Any

from petrescue.models import Pet


@dataclass(frozen=True)
class RawListing:
    """Unnormalized scrape output from one source. Every field is optional."""

    source_name: str
    name: str | None = None
    species: str | None = None
    breed: str | None = None
    age: str | None = None
    location: str | None = None
    description: str | None = None
    image_url: str | None = None
    source_url: str | None = None
    days_in_shelter: Any = None
    days_until_deadline: Any = None
    contact_phone: str | None = None
    contact_email: str | None = None
    posted_date: Any = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class PetRecord:
    """Canonical animal listing, detached from any session."""

    name: str
    species: str
    source_name: str
    urgency_tier: str
    posted_date: date
    ingested_at: datetime
    content_hash: str
    breed: str | None = None
    age: str | None = None
    description: str | None = None
    location: str | None = None
    region: str | None = None
    days_in_shelter: int | None = None
    days_until_deadline: int | None = None
    contact_phone: str | None = None
    contact_email: str | None = None
    source_url: str | None = None
    image_url: str | None = None
    is_active: bool = True
    id: int | None = None

    def to_row(self) -> dict[str, Any]:
        """Column values for an insert; ``id`` is left to the database."""
        row = asdict(self)
        row.pop("id")
        return row

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["posted_date"] = self.posted_date.isoformat()
        data["ingested_at"] = self.ingested_at.isoformat()
        return data

    @classmethod
    def from_model(cls, pet: Pet) -> PetRecord:
        return cls(
            id=pet.id,
            name=pet.name,
            species=pet.species,
            source_name=pet.source_name,
            urgency_tier=pet.urgency_tier,
            posted_date=pet.posted_date,
            ingested_at=pet.ingested_at,
            content_hash=pet.content_hash,
            breed=pet.breed,
            age=pet.age,
            description=pet.description,
            location=pet.location,
            region=pet.region,
            days_in_shelter=pet.days_in_shelter,
            days_until_deadline=pet.days_until_deadline,
            contact_phone=pet.contact_phone,
            contact_email=pet.contact_email,
            source_url=pet.source_url,
            image_url=pet.image_url,
            is_active=pet.is_active,
        )
