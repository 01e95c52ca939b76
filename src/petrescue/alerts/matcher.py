"""Subscriber matching for critical listings."""

from __future__ import annotations

from typing import Protocol

import structlog
from sqlalchemy.exc import SQLAlchemyError

from petrescue.ingest.listings import PetRecord
from petrescue.storage.repository import Subscription

logger = structlog.get_logger()


class SubscriptionSource(Protocol):
    def get_subscriptions(self) -> list[Subscription]: ...


def subscription_matches(subscription: Subscription, record: PetRecord) -> bool:
    """Empty region or species sets admit everything."""
    region_ok = not subscription.regions or record.region in subscription.regions
    species_ok = not subscription.species or record.species in subscription.species
    return region_ok and species_ok


class AlertMatcher:
    def __init__(self, subscriptions: SubscriptionSource):
        self._subscriptions = subscriptions

    def match(self, record: PetRecord) -> list[str]:
        try:
            subscriptions = self._subscriptions.get_subscriptions()
        except SQLAlchemyError as exc:
            logger.error("Subscription lookup failed", pet_id=record.id, error=str(exc))
            return []

        emails = sorted(sub.email for sub in subscriptions if subscription_matches(sub, record))
        logger.info(
            "Alert recipients matched",
            pet_id=record.id,
            name=record.name,
            region=record.region,
            species=record.species,
            recipients=len(emails),
        )
        return emails
