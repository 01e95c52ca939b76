"""CLI entry point using Typer."""

from __future__ import annotations

import json

import structlog
import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="petrescue",
    help="Pet Rescue - At-risk shelter listing aggregation, triage and alerts.",
)
console = Console()

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
)

TIER_STYLES = {"critical": "bold red", "moderate": "yellow", "low": "green"}


def _repository():
    from petrescue.config import settings
    from petrescue.db import create_db_engine, create_session_factory
    from petrescue.storage.repository import PetRepository

    engine = create_db_engine(settings.database_url)
    return PetRepository(create_session_factory(engine))


def _service(repository=None):
    from petrescue.alerts.notify import build_notifier
    from petrescue.config import settings
    from petrescue.service import PetRescueService
    from petrescue.sources.registry import build_adapters

    return PetRescueService(
        repository or _repository(),
        build_adapters(settings),
        build_notifier(settings),
        max_workers=settings.ingest_max_workers,
    )


def _split(values: list[str] | None) -> list[str]:
    items: list[str] = []
    for value in values or []:
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items


def _counts_table(title: str, stats: dict) -> Table:
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green")
    for key in ("fetched", "persisted", "duplicates", "discarded", "failed", "critical", "alerts", "sources_ok", "sources_failed"):
        table.add_row(key.replace("_", " ").capitalize(), str(stats.get(key, 0)))
    return table


@app.command("init-db")
def init_db() -> None:
    """Create database tables."""
    from petrescue.config import settings
    from petrescue.db import create_db_engine
    from petrescue.models import Base

    Base.metadata.create_all(create_db_engine(settings.database_url))
    console.print("[bold green]Tables created.[/bold green]")


@app.command()
def seed(
    pets_path: str = typer.Option("sample_pets.yaml", help="Path to sample pets YAML file"),
    force: bool = typer.Option(False, "--force", help="Seed even when pets already exist"),
) -> None:
    """Seed sample pets when the table is empty."""
    from petrescue.seed import seed_sample_pets

    console.print("[bold blue]Seeding sample pets...[/bold blue]")
    try:
        stats = seed_sample_pets(_repository(), pets_path, force=force)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title="Seed Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green")
    for key, value in stats.items():
        table.add_row(key.capitalize(), str(value))
    console.print(table)


@app.command()
def ingest(
    location: list[str] = typer.Option(None, "--location", "-l", help="Location(s); defaults to configured list"),
    species: list[str] = typer.Option(None, "--species", "-s", help="Species; defaults to configured list"),
    manual: bool = typer.Option(False, "--manual", help="Record the run as manual instead of scheduled"),
) -> None:
    """Run one ingestion pass over (location, species) work items."""
    from petrescue.config import settings
    from petrescue.errors import SourcesUnavailableError
    from petrescue.jobs.ingest import run_ingest_job

    locations = location or settings.scrape_locations
    species_list = species or settings.scrape_species

    repository = _repository()
    service = _service(repository)
    try:
        stats = run_ingest_job(
            service.pipeline,
            repository,
            locations,
            species_list,
            run_type="manual" if manual else "scheduled",
        )
    except SourcesUnavailableError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(2)

    console.print(_counts_table("Ingest Results", stats))


@app.command()
def pets(
    region: str | None = typer.Option(None, help="Two-letter region code"),
    species: str | None = typer.Option(None, help="Dog, Cat or Unknown"),
    tier: str | None = typer.Option(None, "--tier", help="critical, moderate or low"),
    shelter_min: int | None = typer.Option(None, "--shelter-min", help="Minimum days in shelter"),
    shelter_max: int | None = typer.Option(None, "--shelter-max", help="Maximum days in shelter"),
    deadline_max: int | None = typer.Option(None, "--deadline-max", help="Maximum days until deadline"),
    limit: int | None = typer.Option(None, help="Page size"),
    offset: int = typer.Option(0, help="Rows to skip"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """List active pets, most urgent first."""
    from pydantic import ValidationError

    from petrescue.config import settings
    from petrescue.errors import QueryError
    from petrescue.query.filters import PetFilters

    try:
        filters = PetFilters(
            region=region,
            species=species,
            urgency_tier=tier,
            days_in_shelter_min=shelter_min,
            days_in_shelter_max=shelter_max,
            days_until_deadline_max=deadline_max,
            limit=limit or settings.default_page_size,
            offset=offset,
        )
    except ValidationError as e:
        console.print(f"[bold red]Invalid filters:[/bold red] {e}")
        raise typer.Exit(1)

    try:
        records = _service().list_pets(filters)
    except QueryError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if as_json:
        console.print_json(json.dumps([record.to_dict() for record in records]))
        return

    table = Table(title=f"Pets ({len(records)})")
    table.add_column("ID", style="cyan")
    table.add_column("Tier")
    table.add_column("Name", style="white")
    table.add_column("Species", style="magenta")
    table.add_column("Region")
    table.add_column("Deadline", justify="right")
    table.add_column("Shelter days", justify="right")
    table.add_column("Source", style="dim")
    for record in records:
        style = TIER_STYLES.get(record.urgency_tier, "white")
        table.add_row(
            str(record.id),
            f"[{style}]{record.urgency_tier}[/{style}]",
            record.name,
            record.species,
            record.region or "",
            "" if record.days_until_deadline is None else str(record.days_until_deadline),
            "" if record.days_in_shelter is None else str(record.days_in_shelter),
            record.source_name,
        )
    console.print(table)


@app.command()
def pet(pet_id: int = typer.Argument(..., help="Pet id")) -> None:
    """Show one pet."""
    record = _service().get_pet(pet_id)
    if record is None:
        console.print(f"[red]Pet not found:[/red] {pet_id}")
        raise typer.Exit(1)

    table = Table(title=f"Pet {pet_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")
    for key, value in record.to_dict().items():
        table.add_row(key, "" if value is None else str(value))
    console.print(table)


@app.command()
def stats() -> None:
    """Aggregate stats over active pets."""
    summary = _service().get_stats()

    table = Table(title="Active Pets")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Total", str(summary.total))
    for tier in ("critical", "moderate", "low"):
        table.add_row(f"Tier: {tier}", str(summary.by_tier.get(tier, 0)))
    for species_name, count in sorted(summary.by_species.items()):
        table.add_row(f"Species: {species_name}", str(count))
    table.add_row("Distinct regions", str(summary.distinct_regions))
    mean = summary.mean_days_in_shelter
    table.add_row("Mean shelter days", "" if mean is None else f"{mean:.1f}")
    console.print(table)


@app.command()
def subscribe(
    email: str = typer.Argument(..., help="Subscriber email"),
    region: list[str] = typer.Option(None, "--region", "-r", help="Region code(s); omit for all"),
    species: list[str] = typer.Option(None, "--species", "-s", help="Species; omit for all"),
) -> None:
    """Create or replace a critical-alert subscription."""
    from petrescue.errors import SubscriptionError

    try:
        saved = _service().subscribe(email, _split(region), _split(species))
    except SubscriptionError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    regions = ", ".join(saved.regions) or "all"
    species_text = ", ".join(saved.species) or "all"
    console.print(f"[green]Subscribed[/green] {saved.email} (regions: {regions}; species: {species_text})")


@app.command()
def subscriptions() -> None:
    """List alert subscriptions."""
    table = Table(title="Alert Subscriptions")
    table.add_column("Email", style="cyan")
    table.add_column("Regions", style="white")
    table.add_column("Species", style="magenta")
    for sub in _repository().get_subscriptions():
        table.add_row(sub.email, ", ".join(sorted(sub.regions)) or "all", ", ".join(sorted(sub.species)) or "all")
    console.print(table)


if __name__ == "__main__":
    app()
