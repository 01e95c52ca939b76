"""Structured filter criteria for pet queries."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from petrescue.ingest.normalize import parse_species
from petrescue.ingest.urgency import UrgencyTier

DEFAULT_LIMIT = 50


class PetFilters(BaseModel):
    """Optional criteria combined with AND; ``None`` means unconstrained."""

    region: str | None = None
    species: str | None = None
    urgency_tier: UrgencyTier | None = None
    days_in_shelter_min: int | None = Field(default=None, ge=0)
    days_in_shelter_max: int | None = Field(default=None, ge=0)
    days_until_deadline_max: int | None = None
    limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    offset: int = Field(default=0, ge=0)

    @field_validator("region")
    @classmethod
    def _normalize_region(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip().upper()
        if not cleaned:
            return None
        if len(cleaned) != 2 or not cleaned.isalpha():
            raise ValueError("region must be a two-letter code")
        return cleaned

    @field_validator("species")
    @classmethod
    def _normalize_species(cls, value: str | None) -> str | None:
        return parse_species(value)

    @field_validator("urgency_tier", mode="before")
    @classmethod
    def _lowercase_tier(cls, value):
        if isinstance(value, str):
            cleaned = value.strip().lower()
            return cleaned or None
        return value

    @model_validator(mode="after")
    def _check_shelter_range(self) -> PetFilters:
        if (
            self.days_in_shelter_min is not None
            and self.days_in_shelter_max is not None
            and self.days_in_shelter_min > self.days_in_shelter_max
        ):
            raise ValueError("days_in_shelter_min must not exceed days_in_shelter_max")
        return self
