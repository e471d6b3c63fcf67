import logging
from typing import Any

from .context import BatchContext
from .enrichment import GameEnrichmentResolver
from .models import Player, Team
from .payloads import MalformedRecord, ref_id

logger = logging.getLogger(__name__)


def _check_payload(owner, payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise MalformedRecord(
            f"stats for {owner._meta.model_name} {owner.external_id} is not an object"
        )
    return payload


def _last_games(owner, last_games: Any, resolver: GameEnrichmentResolver, ctx: BatchContext):
    if not isinstance(last_games, list):
        return last_games
    return resolver.enrich_last_games(owner, last_games, ctx)


def apply_player_stats(
    player: Player, payload: Any, resolver: GameEnrichmentResolver, ctx: BatchContext
) -> Player:
    """Apply a `/players/{id}/stats` payload: stats blob, roster history, last games."""
    data = _check_payload(player, payload)
    player.stats = data.get("stats")

    team_ids = [ref_id(team) for team in data.get("teams") or [] if isinstance(team, dict)]
    for team in resolver.linker.resolve_teams(team_ids, ctx).values():
        resolver.linker.link_roster(player, team)

    player.last_games = _last_games(player, data.get("last_games"), resolver, ctx)
    player.save(update_fields=["stats", "last_games", "updated_at"])
    return player


def apply_team_stats(
    team: Team, payload: Any, resolver: GameEnrichmentResolver, ctx: BatchContext
) -> Team:
    """Apply a `/teams/{id}/stats` payload. Listed players are linked only if we already store them."""
    data = _check_payload(team, payload)
    team.stats = data.get("stats")

    player_ids = [ref_id(player) for player in data.get("players") or [] if isinstance(player, dict)]
    for player in resolver.linker.resolve_players(player_ids, ctx).values():
        resolver.linker.link_roster(player, team)

    team.last_games = _last_games(team, data.get("last_games"), resolver, ctx)
    team.save(update_fields=["stats", "last_games", "updated_at"])
    return team
