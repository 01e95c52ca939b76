"""Adopt-a-Pet search API adapter (JSON)."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import date
from typing import Any

from dateutil import parser as date_parser

from petrescue.errors import SourceUnavailableError
from petrescue.ingest.listings import RawListing
from petrescue.sources.base import Fetcher, ListingSource, source_extra

# Adopt-a-Pet groups animals into numbered families.
_FAMILY_IDS = {"dog": 1, "cat": 2}


class AdoptAPetAdapter(ListingSource):
    name = "Adopt-a-Pet"
    species_map = {
        "dog": "Dog",
        "dogs": "Dog",
        "puppy": "Dog",
        "cat": "Cat",
        "cats": "Cat",
        "kitten": "Cat",
    }

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 20.0,
        fetcher: Fetcher | None = None,
        today_fn: Callable[[], date] = date.today,
    ):
        super().__init__(base_url, timeout_seconds=timeout_seconds, fetcher=fetcher)
        self._today_fn = today_fn

    def search_params(self, location: str, species: str) -> dict[str, Any]:
        params: dict[str, Any] = {"geo_location": location, "radius": 50}
        family_id = _FAMILY_IDS.get(species.strip().lower())
        if family_id is not None:
            params["family_id"] = family_id
        return params

    def _scrape(self, location: str, species: str) -> list[RawListing]:
        body = self._get(
            f"{self.base_url}/api/search",
            params=self.search_params(location, species),
            accept="application/json",
        )
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            raise SourceUnavailableError(f"Invalid JSON from {self.name}: {exc}") from exc
        return self.parse_payload(payload)

    def parse_payload(self, payload: Any) -> list[RawListing]:
        if not isinstance(payload, dict) or not isinstance(payload.get("pets"), list):
            raise SourceUnavailableError(f"Unexpected {self.name} payload shape")

        listings = []
        for item in payload["pets"]:
            if not isinstance(item, dict):
                continue
            listings.append(
                RawListing(
                    source_name=self.name,
                    name=item.get("pet_name"),
                    species=self.map_species(item.get("family")),
                    breed=item.get("primary_breed"),
                    age=item.get("age"),
                    location=self._location(item),
                    description=item.get("description"),
                    image_url=item.get("large_results_photo_url") or item.get("results_photo_url"),
                    source_url=item.get("details_url"),
                    days_in_shelter=item.get("days_at_shelter"),
                    days_until_deadline=self._days_until(item.get("euthanasia_date")),
                    contact_phone=item.get("shelter_phone"),
                    contact_email=item.get("shelter_email"),
                    posted_date=item.get("date_posted"),
                    extra=source_extra(
                        pet_id=item.get("pet_id"),
                        family=item.get("family"),
                        euthanasia_date=item.get("euthanasia_date"),
                    ),
                )
            )
        return listings

    @staticmethod
    def _location(item: dict[str, Any]) -> str | None:
        city = (item.get("addr_city") or "").strip()
        state = (item.get("addr_state_code") or "").strip()
        if city and state:
            return f"{city}, {state}"
        return city or state or None

    def _days_until(self, value: Any) -> int | None:
        if not value:
            return None
        try:
            deadline = date_parser.parse(str(value)).date()
        except (ValueError, OverflowError):
            return None
        return (deadline - self._today_fn()).days
