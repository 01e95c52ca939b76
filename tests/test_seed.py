"""Tests for sample pet seeding."""

from unittest.mock import patch

import pytest

from petrescue.ingest.normalize import normalize_listing
from petrescue.seed import load_sample_listings, seed_sample_pets

SAMPLE_YAML = """
pets:
  - name: Buddy
    species: Dog
    location: Dallas, TX
    days_in_shelter: 10
    days_until_deadline: 5
  - name: Whiskers
    species: Cat
    location: Miami, FL
    days_until_deadline: 2
  - species: Cat
    location: Miami, FL
"""


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "sample_pets.yaml"
    path.write_text(SAMPLE_YAML)
    return path


def test_load_sample_listings(sample_file):
    listings = load_sample_listings(sample_file)

    assert [listing.name for listing in listings] == ["Buddy", "Whiskers", None]
    assert listings[0].source_name == "Sample"


def test_seed_runs_through_pipeline_stages(repository, sample_file):
    stats = seed_sample_pets(repository, sample_file)

    assert stats == {"loaded": 3, "created": 2, "duplicates": 0, "discarded": 1, "failed": 0}
    tiers = {record.name: record.urgency_tier for record in repository.query_active([], [], limit=10, offset=0)}
    assert tiers == {"Buddy": "moderate", "Whiskers": "critical"}


def test_seed_skips_when_pets_exist(repository, sample_file):
    seed_sample_pets(repository, sample_file)

    stats = seed_sample_pets(repository, sample_file)

    assert stats["loaded"] == 0


def test_forced_reseed_is_deduplicated(repository, sample_file):
    seed_sample_pets(repository, sample_file)

    stats = seed_sample_pets(repository, sample_file, force=True)

    assert stats["created"] == 0
    assert stats["duplicates"] == 2


def test_missing_file(repository, tmp_path):
    with pytest.raises(FileNotFoundError):
        seed_sample_pets(repository, tmp_path / "missing.yaml")


def test_seed_continues_past_normalization_error(repository, sample_file):
    def normalize(raw, *args, **kwargs):
        if raw.name == "Buddy":
            raise RuntimeError("bad sample row")
        return normalize_listing(raw, *args, **kwargs)

    with patch("petrescue.seed.normalize_listing", side_effect=normalize):
        stats = seed_sample_pets(repository, sample_file)

    assert stats == {"loaded": 3, "created": 1, "duplicates": 0, "discarded": 2, "failed": 0}
