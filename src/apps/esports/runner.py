import logging
import resource
import time
from collections import Counter
from dataclasses import asdict, dataclass, fields
from typing import Any, Callable, Iterable

from django.conf import settings
from django.db import DatabaseError, transaction

from .context import BatchContext
from .enrichment import GameEnrichmentResolver
from .linking import RelationshipLinker
from .models import Player, SyncState, Team, Tournament
from .reconcile import RECORD_ERRORS, EntityReconciler
from .stats import apply_player_stats, apply_team_stats
from .vendor.pandascore_client import PandaScoreError
from .vendor.scheduler import RequestScheduler

logger = logging.getLogger(__name__)


class SyncAborted(RuntimeError):
    pass


@dataclass
class RunReport:
    processed: int = 0
    batches: int = 0
    skipped_records: int = 0
    skipped_pages: int = 0
    failed: int = 0
    not_found_players: int = 0
    games_fetched: int = 0
    games_reused: int = 0
    game_fetch_failures: int = 0

    def absorb(self, counters: Counter) -> None:
        for f in fields(self):
            if f.name in counters:
                setattr(self, f.name, getattr(self, f.name) + counters[f.name])

    def as_dict(self) -> dict:
        return asdict(self)

    def summary(self) -> str:
        return " ".join(f"{key}={value}" for key, value in self.as_dict().items())


def _peak_memory_mb() -> float:
    # ru_maxrss is reported in kilobytes on Linux.
    return resource.getrusage(resource.RUSAGE_SELF).ru_maxrss / 1024


class BatchRunner:
    """
    Runs one handler per batch inside a single transaction, with a fresh
    `BatchContext` each time, then reports progress and pauses.

    A database error while a batch is written aborts the whole run; anything
    a handler tolerates (bad records, failed fetches) only shows up in the
    counters.
    """

    def __init__(
        self,
        *,
        label: str = "sync",
        pause_seconds: float = 0.0,
        progress: Callable[[str], Any] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.label = label
        self.pause_seconds = pause_seconds
        self.progress = progress
        self.sleep = sleep
        self.report = RunReport()

    @classmethod
    def from_settings(cls, **kwargs) -> "BatchRunner":
        kwargs.setdefault("pause_seconds", settings.SYNC_BATCH_PAUSE_MS / 1000)
        return cls(**kwargs)

    def process(self, items: list, handler: Callable[[list, BatchContext], int]) -> int:
        ctx = BatchContext(index=self.report.batches + 1)
        try:
            with transaction.atomic():
                processed = handler(items, ctx)
        except DatabaseError as exc:
            logger.error("%s batch %s failed to flush: %s", self.label, ctx.index, exc)
            raise SyncAborted(f"{self.label} batch {ctx.index} failed to flush: {exc}") from exc

        self.report.batches += 1
        self.report.processed += processed
        self.report.absorb(ctx.counters)
        ctx.clear()

        line = (
            f"[{self.label}] batch {ctx.index}: processed={processed} "
            f"total={self.report.processed} skipped={self.report.skipped_records} "
            f"peak_mem={_peak_memory_mb():.1f}MB"
        )
        logger.debug(line)
        if self.progress is not None:
            self.progress(line)

        if self.pause_seconds:
            self.sleep(self.pause_seconds)
        return processed


def sync_feed(
    scheduler: RequestScheduler,
    endpoint: str,
    reconciler: EntityReconciler,
    runner: BatchRunner,
    *,
    per_page: int,
    start_page: int = 1,
    max_pages: int | None = None,
) -> RunReport:
    """Page through a list endpoint and upsert every page as one batch."""

    def handle(records: list, ctx: BatchContext) -> int:
        result = reconciler.reconcile(records, ctx)
        return result.created + result.updated

    def on_page(records: list) -> None:
        runner.process(records, handle)

    summary = scheduler.fetch_all_pages(
        endpoint, on_page, per_page=per_page, start_page=start_page, max_pages=max_pages
    )
    runner.report.skipped_pages += summary.skipped
    return runner.report


def _owner_batches(queryset, *, batch_size: int, offset: int = 0, max_items: int | None = None):
    """Keyset-paginate `queryset` by id, starting after the first `offset` rows."""
    queryset = queryset.order_by("id")
    cursor = 0
    if offset:
        start = list(queryset.values_list("id", flat=True)[offset - 1 : offset])
        if not start:
            return
        cursor = start[0]

    remaining = max_items
    while remaining is None or remaining > 0:
        size = batch_size if remaining is None else min(batch_size, remaining)
        owners = list(queryset.filter(id__gt=cursor)[:size])
        if not owners:
            return
        cursor = owners[-1].id
        if remaining is not None:
            remaining -= len(owners)
        yield owners


STATS_JOBS = {
    "team": (Team, "/teams/{}/stats", apply_team_stats),
    "player": (Player, "/players/{}/stats", apply_player_stats),
}


def sync_stats(
    kind: str,
    scheduler: RequestScheduler,
    resolver: GameEnrichmentResolver,
    runner: BatchRunner,
    *,
    batch_size: int,
    offset: int = 0,
    max_items: int | None = None,
    external_id: str | None = None,
) -> RunReport:
    """
    Refresh stats and last games for stored teams or players.

    Each batch of owners is fetched concurrently first; the fetched payloads
    are then applied inside the batch transaction, one savepoint per owner.
    """
    model, path, apply = STATS_JOBS[kind]
    queryset = model.objects.all()
    if model is Player:
        queryset = queryset.select_related("current_team")
    if external_id:
        queryset = queryset.filter(external_id=external_id)

    def handle(fetched: list, ctx: BatchContext) -> int:
        processed = 0
        for owner, payload in fetched:
            try:
                with transaction.atomic():
                    apply(owner, payload, resolver, ctx)
            except (*RECORD_ERRORS, PandaScoreError) as exc:
                logger.warning("Failed to apply stats for %s %s: %s", kind, owner.external_id, exc)
                ctx.counters["failed"] += 1
                continue
            processed += 1
        return processed

    for owners in _owner_batches(queryset, batch_size=batch_size, offset=offset, max_items=max_items):
        fetched: list[tuple[Any, Any]] = []
        summary = scheduler.fetch_each(
            owners,
            lambda owner: path.format(owner.external_id),
            lambda owner, payload: fetched.append((owner, payload)),
        )
        runner.report.failed += summary.skipped
        runner.process(fetched, handle)

    return runner.report


def link_tournaments(
    runner: BatchRunner,
    linker: RelationshipLinker | None = None,
    *,
    batch_size: int,
    max_items: int | None = None,
) -> RunReport:
    """Attach teams and players to stored tournaments from their expected roster."""
    linker = linker or RelationshipLinker()
    queryset = Tournament.objects.filter(expected_roster__isnull=False)

    def handle(tournaments: Iterable[Tournament], ctx: BatchContext) -> int:
        processed = 0
        for tournament in tournaments:
            try:
                with transaction.atomic():
                    result = linker.link_tournament_roster(tournament, tournament.expected_roster, ctx)
            except RECORD_ERRORS as exc:
                logger.warning("Failed to link roster for tournament %s: %s", tournament.external_id, exc)
                ctx.counters["failed"] += 1
                continue
            logger.debug(
                "Tournament %s: teams=%s players=%s not_found=%s",
                tournament.external_id,
                result.teams_linked,
                result.players_linked,
                result.not_found_players,
            )
            processed += 1
        return processed

    for tournaments in _owner_batches(queryset, batch_size=batch_size, max_items=max_items):
        runner.process(tournaments, handle)

    return runner.report


def run_tracked(job: str, run: Callable[[], RunReport]) -> RunReport:
    """Run a sync job and record its outcome on the job's `SyncState` row."""
    state = SyncState.start(job)
    try:
        report = run()
    except SyncAborted as exc:
        state.record_failure(str(exc))
        raise

    if report.failed or report.skipped_pages:
        state.record_failure(
            f"failed={report.failed} skipped_pages={report.skipped_pages}", meta=report.as_dict()
        )
    else:
        state.record_success(report.as_dict())
    logger.info("%s finished: %s", job, report.summary())
    return report
