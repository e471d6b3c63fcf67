import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from django.utils import timezone

from .context import BatchContext
from .linking import RelationshipLinker
from .models import Player, Team, Tournament
from .payloads import (
    MalformedRecord,
    clip,
    external_id,
    normalize_prizepool,
    parse_birthday,
    parse_timestamp,
    ref_id,
    to_int,
    unique_slug,
)

logger = logging.getLogger(__name__)

# Errors a single bad record may raise while being mapped onto a model.
RECORD_ERRORS = (MalformedRecord, TypeError, ValueError, AttributeError, KeyError)


@dataclass
class ReconcileResult:
    created: int = 0
    updated: int = 0
    skipped: int = 0
    instances: list = field(default_factory=list)


class EntityReconciler:
    """
    Upserts one page of feed records keyed by PandaScore id.

    The page costs one lookup query, one bulk insert, one bulk update and one
    re-read, however many records it holds. Subclasses map payload fields in
    `apply()`; `update_fields` lists what an existing row gets rewritten with.
    """

    model: Any = None
    int_ids = False
    update_fields: tuple[str, ...] = ()

    def __init__(self, linker: RelationshipLinker | None = None):
        self.linker = linker or RelationshipLinker()

    @property
    def label(self) -> str:
        return self.model._meta.model_name

    def reconcile(self, records: Iterable[Any], ctx: BatchContext) -> ReconcileResult:
        result = ReconcileResult()

        keyed: dict[Any, dict] = {}
        for record in records:
            try:
                key = external_id(record, as_int=self.int_ids)
            except MalformedRecord as exc:
                self._skip(record, exc, result, ctx)
                continue
            # Last occurrence of a duplicated id wins.
            keyed.pop(key, None)
            keyed[key] = record

        if not keyed:
            return result

        existing = self.model.objects.in_bulk(list(keyed), field_name="external_id")
        self.prepare(keyed.values(), ctx)

        to_create, to_update, stored_keys = [], [], []
        for key, record in keyed.items():
            instance = existing.get(key)
            is_new = instance is None
            if is_new:
                instance = self.model(external_id=key)
            try:
                self.apply(instance, record, ctx, is_new=is_new)
            except RECORD_ERRORS as exc:
                self._skip(record, exc, result, ctx)
                continue
            (to_create if is_new else to_update).append(instance)
            stored_keys.append(key)

        if to_create:
            self.model.objects.bulk_create(to_create)
        if to_update:
            now = timezone.now()
            for instance in to_update:
                instance.updated_at = now
            self.model.objects.bulk_update(to_update, [*self.update_fields, "updated_at"])

        stored = self.model.objects.in_bulk(stored_keys, field_name="external_id")
        result.created = len(to_create)
        result.updated = len(to_update)
        result.instances = [stored[key] for key in stored_keys if key in stored]
        for instance in result.instances:
            ctx.remember(instance)

        ctx.counters[f"{self.label}_created"] += result.created
        ctx.counters[f"{self.label}_updated"] += result.updated
        if result.created:
            logger.info("Created %s new %s rows", result.created, self.label)

        self.after_flush(result.instances, keyed, ctx)
        return result

    def prepare(self, records: Iterable[dict], ctx: BatchContext) -> None:
        pass

    def apply(self, instance, record: dict, ctx: BatchContext, *, is_new: bool) -> None:
        raise NotImplementedError

    def after_flush(self, instances: list, records: dict, ctx: BatchContext) -> None:
        pass

    def _skip(self, record: Any, exc: Exception, result: ReconcileResult, ctx: BatchContext) -> None:
        ref = record.get("id") if isinstance(record, dict) else None
        logger.warning("Skipping malformed %s record (id=%r): %s", self.label, ref, exc)
        result.skipped += 1
        ctx.counters["skipped_records"] += 1


class TeamReconciler(EntityReconciler):
    model = Team
    update_fields = ("name", "acronym", "location", "image_url")

    def apply(self, team: Team, record: dict, ctx: BatchContext, *, is_new: bool) -> None:
        team.name = clip(record.get("name") or "Unknown", 255)
        team.acronym = clip(record.get("acronym"), 255)
        team.location = clip(record.get("location"), 5)
        team.image_url = clip(record.get("image_url"), 500)
        if is_new:
            team.slug = unique_slug(
                Team,
                record.get("slug") or team.name,
                ctx.slugs_for(Team),
                fallback=f"team-{team.external_id}",
            )


class PlayerReconciler(EntityReconciler):
    model = Player
    update_fields = (
        "name",
        "first_name",
        "last_name",
        "nationality",
        "birthday",
        "image_url",
        "current_team",
    )

    def prepare(self, records: Iterable[dict], ctx: BatchContext) -> None:
        self.linker.resolve_teams((ref_id(r.get("current_team")) for r in records), ctx)

    def apply(self, player: Player, record: dict, ctx: BatchContext, *, is_new: bool) -> None:
        player.name = clip(record.get("name") or "Unknown", 255)
        player.first_name = clip(record.get("first_name"), 255)
        player.last_name = clip(record.get("last_name"), 255)
        player.nationality = clip(record.get("nationality"), 5)
        player.birthday = parse_birthday(record.get("birthday"), ref=player.external_id)
        player.image_url = clip(record.get("image_url"), 500)

        team_id = ref_id(record.get("current_team"))
        if team_id:
            self.linker.link_current_team(player, team_id, ctx)

        if is_new:
            player.slug = unique_slug(
                Player,
                record.get("slug") or player.name,
                ctx.slugs_for(Player),
                fallback=f"player-{player.external_id}",
            )

    def after_flush(self, players: list, records: dict, ctx: BatchContext) -> None:
        # The current team also counts as roster membership.
        teams_by_pk = {team.pk: team for team in ctx.teams.values()}
        for player in players:
            team = teams_by_pk.get(player.current_team_id)
            if team is not None:
                self.linker.link_roster(player, team)


class TournamentReconciler(EntityReconciler):
    model = Tournament
    int_ids = True
    update_fields = (
        "name",
        "slug",
        "begin_at",
        "end_at",
        "country",
        "detailed_stats",
        "has_bracket",
        "league_id",
        "league",
        "live_supported",
        "matches",
        "expected_roster",
        "parsed_teams",
        "prizepool",
        "prizepool_currency",
        "region",
        "serie_id",
        "serie",
        "tier",
        "type",
        "winner_id",
        "winner_type",
    )

    def apply(self, tournament: Tournament, record: dict, ctx: BatchContext, *, is_new: bool) -> None:
        ref = tournament.external_id
        tournament.name = clip(record.get("name") or "Unknown", 255)
        tournament.slug = clip(record.get("slug"), 255)
        tournament.begin_at = parse_timestamp(record.get("begin_at"), field="begin_at", ref=ref)
        tournament.end_at = parse_timestamp(record.get("end_at"), field="end_at", ref=ref)
        tournament.country = clip(record.get("country"), 2)
        tournament.detailed_stats = bool(record.get("detailed_stats") or False)
        tournament.has_bracket = bool(record.get("has_bracket") or False)
        tournament.league_id = to_int(record.get("league_id"))
        tournament.league = record.get("league")
        tournament.live_supported = bool(record.get("live_supported") or False)
        tournament.matches = record.get("matches")
        tournament.expected_roster = record.get("expected_roster")
        tournament.parsed_teams = record.get("teams")
        tournament.prizepool, tournament.prizepool_currency = normalize_prizepool(record.get("prizepool"))
        tournament.region = clip(record.get("region"), 255)
        tournament.serie_id = to_int(record.get("serie_id"))
        tournament.serie = record.get("serie")
        tournament.tier = clip(record.get("tier"), 255)
        tournament.type = clip(record.get("type"), 255)
        tournament.winner_id = to_int(record.get("winner_id"))
        tournament.winner_type = clip(record.get("winner_type"), 255)
