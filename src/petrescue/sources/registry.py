"""Adapter construction from settings."""

from __future__ import annotations

from petrescue.config import Settings
from petrescue.sources.adoptapet import AdoptAPetAdapter
from petrescue.sources.base import SourceAdapter
from petrescue.sources.petfinder import PetfinderAdapter


def build_adapters(config: Settings) -> list[SourceAdapter]:
    """One adapter per configured source; add a source by adding it here."""
    return [
        PetfinderAdapter(config.petfinder_base_url, timeout_seconds=config.http_timeout_seconds),
        AdoptAPetAdapter(config.adoptapet_base_url, timeout_seconds=config.http_timeout_seconds),
    ]
