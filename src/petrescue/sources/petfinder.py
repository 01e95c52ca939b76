"""Petfinder search-results adapter (HTML)."""

from __future__ import annotations

import re
from urllib.parse import urljoin

import structlog
from bs4 import BeautifulSoup, Tag

from petrescue.errors import SourceUnavailableError
from petrescue.ingest.listings import RawListing
from petrescue.sources.base import ListingSource, source_extra

logger = structlog.get_logger()

_SEARCH_SEGMENTS = {"dog": "dogs", "cat": "cats", "all": "pets"}


def _slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.strip().lower()).strip("-")


def _text(card: Tag, selector: str) -> str | None:
    node = card.select_one(selector)
    if node is None:
        return None
    text = node.get_text(" ", strip=True)
    return text or None


class PetfinderAdapter(ListingSource):
    name = "Petfinder"
    species_map = {
        "dog": "Dog",
        "puppy": "Dog",
        "cat": "Cat",
        "kitten": "Cat",
    }

    def search_url(self, location: str, species: str) -> str:
        segment = _SEARCH_SEGMENTS.get(species.strip().lower(), "pets")
        city, _, state = location.partition(",")
        path = f"/search/{segment}-for-adoption/us/"
        if state.strip():
            path += f"{_slugify(state)}/"
        if city.strip():
            path += f"{_slugify(city)}/"
        return f"{self.base_url}{path}"

    def _scrape(self, location: str, species: str) -> list[RawListing]:
        url = self.search_url(location, species)
        return self.parse_results(self._get(url), url)

    def parse_results(self, html: str, page_url: str) -> list[RawListing]:
        soup = BeautifulSoup(html, "html.parser")
        if soup.select_one("[data-search-results]") is None:
            raise SourceUnavailableError(f"Unexpected Petfinder markup at {page_url}")

        listings: list[RawListing] = []
        for card in soup.select("article.pet-card"):
            link = card.select_one("a.pet-card__link")
            href = link.get("href") if link else None
            image = card.select_one("img")
            src = image.get("src") if image else None
            posted = card.select_one("time")
            listings.append(
                RawListing(
                    source_name=self.name,
                    name=_text(card, ".pet-card__name"),
                    species=self.map_species(card.get("data-animal-type")),
                    breed=_text(card, ".pet-card__breed"),
                    age=_text(card, ".pet-card__age"),
                    location=_text(card, ".pet-card__location"),
                    description=_text(card, ".pet-card__description"),
                    image_url=src if isinstance(src, str) else None,
                    source_url=urljoin(page_url, href) if isinstance(href, str) else None,
                    days_in_shelter=card.get("data-days-in-shelter"),
                    days_until_deadline=card.get("data-days-until-euthanasia"),
                    contact_phone=_text(card, ".pet-card__phone"),
                    contact_email=_text(card, ".pet-card__email"),
                    posted_date=posted.get("datetime") if posted else None,
                    extra=source_extra(pet_id=card.get("data-pet-id"), animal_type=card.get("data-animal-type")),
                )
            )
        logger.debug("Parsed Petfinder results", url=page_url, cards=len(listings))
        return listings
