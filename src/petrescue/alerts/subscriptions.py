"""Subscription input validation."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from petrescue.ingest.normalize import parse_species


class SubscriptionRequest(BaseModel):
    email: str
    regions: list[str] = Field(default_factory=list)
    species: list[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        cleaned = value.strip().lower()
        local, _, domain = cleaned.partition("@")
        if not local or "." not in domain:
            raise ValueError("invalid email address")
        return cleaned

    @field_validator("regions", mode="before")
    @classmethod
    def _normalize_regions(cls, value: list[str] | None) -> list[str]:
        regions: set[str] = set()
        for item in value or []:
            cleaned = str(item).strip().upper()
            if not cleaned:
                continue
            if len(cleaned) != 2 or not cleaned.isalpha():
                raise ValueError(f"invalid region code: {item!r}")
            regions.add(cleaned)
        return sorted(regions)

    @field_validator("species", mode="before")
    @classmethod
    def _normalize_species(cls, value: list[str] | None) -> list[str]:
        species = {parse_species(str(item)) for item in value or []}
        return sorted(s for s in species if s)
