"""Scheduled ingestion job with run tracking."""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from petrescue.errors import SourcesUnavailableError
from petrescue.ingest.pipeline import IngestionPipeline
from petrescue.storage.repository import PetRepository

logger = structlog.get_logger()


def run_ingest_job(
    pipeline: IngestionPipeline,
    repository: PetRepository,
    locations: Sequence[str],
    species_list: Sequence[str],
    *,
    run_type: str = "scheduled",
) -> dict:
    """Run the pipeline once and record the outcome.

    Returns:
        dict with run stats plus ``run_id``, ``success`` and optional ``error``
    """
    run_id = repository.start_run(run_type)
    logger.info("Ingest job started", run_id=run_id, run_type=run_type, locations=len(locations))

    try:
        stats = pipeline.run(locations, species_list).to_dict()
    except SourcesUnavailableError as e:
        logger.error("Ingest job failed: no source reachable", run_id=run_id)
        repository.finish_run(run_id, "failed", {}, {"error": str(e)})
        raise
    except Exception as e:
        logger.exception("Ingest job failed", run_id=run_id)
        repository.finish_run(run_id, "failed", {}, {"error": str(e)})
        raise

    repository.finish_run(run_id, "success", stats)
    logger.info("Ingest job finished", run_id=run_id, persisted=stats["persisted"], fetched=stats["fetched"])
    return {**stats, "run_id": run_id, "success": True}
