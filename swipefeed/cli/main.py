"""CLI commands for inspecting rankings and the event log."""

import json
import sys
import uuid
from pathlib import Path

import click
import structlog
from pydantic import TypeAdapter, ValidationError

from swipefeed import __version__
from swipefeed.config import ConfigValidationError, RankingConfig, load_ranking_config
from swipefeed.data_model import now_ms
from swipefeed.events import EventType, GuardedEventStore, SqliteEventStore
from swipefeed.feed.models import CandidateStory
from swipefeed.observability import (
    bind_session_context,
    clear_session_context,
    configure_logging,
)
from swipefeed.ranker import CandidateRanker, RankerMetrics
from swipefeed.settings import get_settings


logger = structlog.get_logger()

_CANDIDATES_ADAPTER = TypeAdapter(list[CandidateStory])


def _setup_logging(verbose: bool) -> None:
    settings = get_settings()
    level = 10 if verbose else settings.log_level_value()
    configure_logging(level=level, json_format=settings.log_json)
    bind_session_context(f"cli-{uuid.uuid4().hex[:8]}")
    click.get_current_context().call_on_close(clear_session_context)


def _load_config_or_exit(config_path: Path | None) -> RankingConfig:
    """Load ranking configuration, exit on failure.

    Args:
        config_path: Optional ranking.yaml path.

    Returns:
        Validated configuration.
    """
    try:
        return load_ranking_config(config_path)
    except ConfigValidationError as e:
        click.echo(f"Configuration validation failed: {e.file_path}", err=True)
        for error in e.errors:
            click.echo(f"  - {error['loc'] or '<root>'}: {error['msg']}", err=True)
        sys.exit(1)


def _resolve_db(db_path: Path | None) -> Path:
    return db_path or get_settings().db_path


def _resolve_config(config_path: Path | None) -> Path | None:
    return config_path or get_settings().config_path


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Swipefeed personalization engine tools."""


@cli.command("validate-config")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to ranking.yaml configuration file.",
)
def validate_config(config_path: Path) -> None:
    """Validate a ranking configuration file."""
    _setup_logging(verbose=False)
    config = _load_config_or_exit(config_path)

    click.echo("Configuration is valid!")
    click.echo(f"  Version: {config.version}")
    click.echo(f"  Topics: {len(config.topics)}")
    click.echo(f"  Half-life: {config.decay.half_life_ms} ms")
    click.echo(f"  Diversity interval: {config.diversity.interval}")


@cli.command()
@click.argument(
    "candidates_path",
    metavar="CANDIDATES_JSON",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to the SQLite event log (default: SWIPEFEED_DB_PATH).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to ranking.yaml (default: built-in settings).",
)
@click.option(
    "--now",
    "now",
    type=int,
    default=None,
    help="Ranking time in milliseconds since epoch (default: now).",
)
@click.option("--explain", is_flag=True, help="Show the score breakdown.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
def rank(  # noqa: PLR0913
    candidates_path: Path,
    db_path: Path | None,
    config_path: Path | None,
    now: int | None,
    explain: bool,
    verbose: bool,
) -> None:
    """Rank a JSON list of candidates against the event log."""
    _setup_logging(verbose)
    config = _load_config_or_exit(_resolve_config(config_path))

    try:
        candidates = _CANDIDATES_ADAPTER.validate_json(candidates_path.read_bytes())
    except ValidationError as e:
        click.echo(f"Invalid candidates file: {candidates_path}", err=True)
        for err in e.errors():
            loc = ".".join(str(part) for part in err["loc"])
            click.echo(f"  - {loc}: {err['msg']}", err=True)
        sys.exit(1)

    ranking_time = now if now is not None else now_ms()
    ranker = CandidateRanker(config)

    with SqliteEventStore(_resolve_db(db_path)) as inner:
        store = GuardedEventStore(inner, config.store)
        try:
            events = store.all()
        finally:
            store.close()

    logger.info(
        "cli_rank_started",
        candidates=len(candidates),
        events=len(events),
    )

    if explain:
        scored = ranker.explain(candidates, events, now_ms=ranking_time)
        click.echo(
            json.dumps(
                [
                    {
                        "id": s.candidate.id,
                        "title": s.candidate.title,
                        "components": s.components.to_dict(),
                    }
                    for s in scored
                ],
                indent=2,
            )
        )
        return

    for position, candidate in enumerate(
        ranker.rank(candidates, events, now_ms=ranking_time), start=1
    ):
        click.echo(f"{position}\t{candidate.id}\t{candidate.title}")

    if verbose:
        click.echo(json.dumps(RankerMetrics.get_instance().to_dict()), err=True)


@cli.group()
def events() -> None:
    """Inspect and maintain the event log."""


@events.command("list")
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to the SQLite event log (default: SWIPEFEED_DB_PATH).",
)
@click.option(
    "--type",
    "event_type",
    type=click.Choice([t.value for t in EventType]),
    default=None,
    help="Only show events of this type, newest first.",
)
@click.option("--json", "json_output", is_flag=True, help="Output as JSON.")
def list_events(db_path: Path | None, event_type: str | None, json_output: bool) -> None:
    """List stored events."""
    _setup_logging(verbose=False)

    with SqliteEventStore(_resolve_db(db_path)) as store:
        if event_type is None:
            rows = store.all()
        else:
            rows = store.of_type(EventType(event_type))

    if json_output:
        payload = [e.model_dump(mode="json", exclude_none=True) for e in rows]
        click.echo(json.dumps(payload, indent=2))
        return

    for event in rows:
        extra = f"\tdwell={event.dwell_ms}" if event.dwell_ms is not None else ""
        click.echo(
            f"{event.id}\t{event.timestamp}\t{event.type.value}\t{event.post_id}"
            f"\t{event.title or ''}{extra}"
        )
    click.echo(f"{len(rows)} events", err=True)


@events.command("prune")
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to the SQLite event log (default: SWIPEFEED_DB_PATH).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to ranking.yaml (default: built-in settings).",
)
def prune_events(db_path: Path | None, config_path: Path | None) -> None:
    """Apply the retention window and event ceiling."""
    _setup_logging(verbose=False)
    config = _load_config_or_exit(_resolve_config(config_path))

    with SqliteEventStore(_resolve_db(db_path)) as store:
        removed = store.prune(
            now_ms(),
            max_events=config.store.max_events,
            retention_days=config.store.retention_days,
        )

    click.echo(f"Pruned {removed} events")
