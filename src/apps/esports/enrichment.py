import logging
from typing import Any

from .context import BatchContext
from .linking import RelationshipLinker
from .models import Game, Player, Team
from .payloads import clip, parse_timestamp, ref_id
from .vendor.pandascore_client import PandaScoreClient, PandaScoreError

logger = logging.getLogger(__name__)

GAME_BLOB_FIELDS = ("match", "map", "winner", "rounds", "rounds_score", "results")


class GameEnrichmentResolver:
    """
    Replaces the thin game references embedded in stats payloads with full
    game data, creating Game rows on first sight and linking them to the
    owning team or player.

    Only the first `limit` distinct games are looked at per owner. Games we
    already store are reused without an API call; the rest are fetched one by
    one through the blocking client and its own limiter.
    """

    def __init__(self, client: PandaScoreClient, linker: RelationshipLinker | None = None, limit: int = 5):
        self.client = client
        self.linker = linker or RelationshipLinker()
        self.limit = limit

    def enrich_last_games(self, owner: Team | Player, last_games: Any, ctx: BatchContext) -> list:
        """
        Return `last_games` with every processed reference replaced by its
        enriched form. References past the limit are returned untouched.
        """
        if not isinstance(last_games, list):
            return []

        wanted: list[str] = []
        for ref in last_games:
            if len(wanted) >= self.limit:
                break
            game_id = ref_id(ref) if isinstance(ref, dict) else None
            if game_id and game_id not in wanted:
                wanted.append(game_id)

        missing = set(wanted) - ctx.games.keys()
        if missing:
            ctx.games.update(Game.objects.in_bulk(list(missing), field_name="external_id"))

        refs = {}
        for ref in last_games:
            game_id = ref_id(ref) if isinstance(ref, dict) else None
            if game_id in wanted and game_id not in refs:
                refs[game_id] = ref

        enriched: dict[str, dict] = {}
        for game_id in wanted:
            enriched[game_id] = self._enrich_one(owner, game_id, refs[game_id], ctx)

        result = []
        for ref in last_games:
            game_id = ref_id(ref) if isinstance(ref, dict) else None
            result.append(enriched.get(game_id, ref) if game_id else ref)
        return result

    def _enrich_one(self, owner: Team | Player, game_id: str, ref: dict, ctx: BatchContext) -> dict:
        game = ctx.games.get(game_id)
        if game is not None:
            ctx.counters["games_reused"] += 1
            merged = {**ref, **(game.data or {})}
        else:
            try:
                detail = self.client.get_game(game_id)
            except PandaScoreError as exc:
                logger.warning("Failed to fetch game %s for %s %s: %s", game_id, owner._meta.model_name, owner.external_id, exc)
                ctx.counters["game_fetch_failures"] += 1
                return dict(ref)
            if not isinstance(detail, dict):
                logger.warning("Game %s detail is not an object, keeping the reference", game_id)
                ctx.counters["game_fetch_failures"] += 1
                return dict(ref)

            merged = {**ref, **detail}
            game = self.store_game(game_id, merged, ctx)
            ctx.counters["games_fetched"] += 1

        self.linker.link_game(owner, game)
        self.link_participants(owner, game, merged, ctx)
        return merged

    def store_game(self, game_id: str, data: dict, ctx: BatchContext) -> Game:
        defaults = {
            "name": clip(data.get("name") or "Unknown", 255),
            "status": clip(data.get("status") or "unknown", 50),
            "begin_at": parse_timestamp(data.get("begin_at"), field="begin_at", ref=game_id),
            "end_at": parse_timestamp(data.get("end_at"), field="end_at", ref=game_id),
            "data": data,
            "tournament": self._tournament_for(data, ctx),
        }
        for name in GAME_BLOB_FIELDS:
            defaults[name] = data.get(name)

        # Another sync may have stored the same game since our lookup.
        game, created = Game.objects.update_or_create(external_id=game_id, defaults=defaults)
        if created:
            logger.info("Created game %s (%s)", game_id, game.name)
        ctx.remember(game)
        return game

    def link_participants(self, owner: Team | Player, game: Game, data: dict, ctx: BatchContext) -> None:
        team_ids = [ref_id(team) for team in data.get("teams") or [] if isinstance(team, dict)]

        owner_team_id = self._owner_team_id(owner)
        rounds_score = data.get("rounds_score")
        if owner_team_id and isinstance(rounds_score, list):
            for entry in rounds_score:
                if not isinstance(entry, dict):
                    continue
                team_id = ref_id(entry.get("team_id"))
                if team_id and team_id != owner_team_id:
                    team_ids.append(team_id)

        for team in self.linker.resolve_teams(team_ids, ctx).values():
            if self.linker.link_team_game(team, game):
                logger.debug("Linked team %s to game %s", team.external_id, game.external_id)

    def _owner_team_id(self, owner: Team | Player) -> str | None:
        if isinstance(owner, Team):
            return owner.external_id
        if owner.current_team_id is None:
            return None
        return owner.current_team.external_id

    def _tournament_for(self, data: dict, ctx: BatchContext):
        match = data.get("match")
        if not isinstance(match, dict):
            return None
        tournament_id = ref_id(match.get("tournament")) or ref_id(match.get("tournament_id"))
        if tournament_id is None:
            return None
        return self.linker.resolve_tournament(tournament_id, ctx)
