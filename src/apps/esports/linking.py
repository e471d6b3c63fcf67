import logging
from dataclasses import dataclass
from typing import Any, Iterable

from .context import BatchContext
from .models import Game, Player, Team, Tournament
from .payloads import ref_id, to_int

logger = logging.getLogger(__name__)


@dataclass
class RosterLinkResult:
    teams_linked: int = 0
    players_linked: int = 0
    not_found_players: int = 0


def insert_edge(through, **pair) -> bool:
    """
    Insert one row into an M2M through table unless it is already there.

    The unique constraint on the pair turns a concurrent insert of the same
    edge into a no-op instead of an error. Returns True when a row was added
    by this call (as far as the existence check can tell).
    """
    if through.objects.filter(**pair).exists():
        return False
    through.objects.bulk_create([through(**pair)], ignore_conflicts=True)
    return True


def _roster_players(tournament: Tournament, entry: dict) -> list:
    players = entry.get("players")
    if players is None:
        return []
    if not isinstance(players, list):
        logger.warning(
            "Tournament %s roster entry has non-list players (%s), ignoring them",
            tournament.external_id,
            type(players).__name__,
        )
        return []
    return players


class RelationshipLinker:
    """Additive, idempotent edge maintenance between synced entities."""

    def resolve_teams(self, external_ids: Iterable[str | None], ctx: BatchContext) -> dict[str, Team]:
        wanted = {i for i in external_ids if i}
        missing = wanted - ctx.teams.keys()
        if missing:
            ctx.teams.update(Team.objects.in_bulk(list(missing), field_name="external_id"))
        return {i: ctx.teams[i] for i in wanted if i in ctx.teams}

    def resolve_players(self, external_ids: Iterable[str | None], ctx: BatchContext) -> dict[str, Player]:
        wanted = {i for i in external_ids if i}
        missing = wanted - ctx.players.keys()
        if missing:
            ctx.players.update(Player.objects.in_bulk(list(missing), field_name="external_id"))
        return {i: ctx.players[i] for i in wanted if i in ctx.players}

    def resolve_tournament(self, external_id: Any, ctx: BatchContext) -> Tournament | None:
        tournament_id = to_int(external_id)
        if tournament_id is None:
            return None
        if tournament_id not in ctx.tournaments:
            tournament = Tournament.objects.filter(external_id=tournament_id).first()
            if tournament is None:
                return None
            ctx.tournaments[tournament_id] = tournament
        return ctx.tournaments[tournament_id]

    def link_current_team(self, player: Player, team_external_id: str | None, ctx: BatchContext) -> Team | None:
        # Assignment only; the batch flush writes it.
        team = self.resolve_teams([team_external_id], ctx).get(team_external_id)
        if team is not None:
            player.current_team = team
        return team

    def link_roster_membership(self, player: Player, team_external_id: str | None, ctx: BatchContext) -> bool:
        team = self.resolve_teams([team_external_id], ctx).get(team_external_id)
        if team is None:
            return False
        return self.link_roster(player, team)

    def link_roster(self, player: Player, team: Team) -> bool:
        added = insert_edge(Player.teams.through, player_id=player.pk, team_id=team.pk)
        if added:
            logger.debug("Linked player %s to team %s", player.external_id, team.external_id)
        return added

    def link_tournament_roster(
        self, tournament: Tournament, expected_roster: Any, ctx: BatchContext
    ) -> RosterLinkResult:
        result = RosterLinkResult()
        if not isinstance(expected_roster, list):
            return result

        entries = [entry for entry in expected_roster if isinstance(entry, dict)]
        team_ids = [ref_id(entry.get("team")) for entry in entries]
        rosters = [_roster_players(tournament, entry) for entry in entries]
        player_ids = [
            ref_id(player)
            for roster in rosters
            for player in roster
            if isinstance(player, dict)
        ]
        teams = self.resolve_teams(team_ids, ctx)
        players = self.resolve_players(player_ids, ctx)

        for team_id, roster in zip(team_ids, rosters):
            team = teams.get(team_id) if team_id else None
            if team is not None and insert_edge(
                Tournament.teams.through, tournament_id=tournament.pk, team_id=team.pk
            ):
                result.teams_linked += 1

            for player_data in roster:
                player_id = ref_id(player_data) if isinstance(player_data, dict) else None
                if not player_id:
                    continue
                player = players.get(player_id)
                if player is None:
                    result.not_found_players += 1
                    continue
                if insert_edge(
                    Tournament.players.through, tournament_id=tournament.pk, player_id=player.pk
                ):
                    result.players_linked += 1

        ctx.counters["not_found_players"] += result.not_found_players
        return result

    def link_team_game(self, team: Team, game: Game) -> bool:
        return insert_edge(Game.teams.through, game_id=game.pk, team_id=team.pk)

    def link_player_game(self, player: Player, game: Game) -> bool:
        return insert_edge(Game.players.through, game_id=game.pk, player_id=player.pk)

    def link_game(self, owner: Team | Player, game: Game) -> bool:
        if isinstance(owner, Team):
            return self.link_team_game(owner, game)
        return self.link_player_game(owner, game)
