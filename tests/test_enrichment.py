import pytest

from apps.esports.context import BatchContext
from apps.esports.enrichment import GameEnrichmentResolver
from apps.esports.models import Game
from apps.esports.stats import apply_player_stats, apply_team_stats
from apps.esports.vendor.pandascore_client import PandaScoreError


class DummyGameClient:
    def __init__(self, games=None, failing=()):
        self.games = games or {}
        self.failing = set(failing)
        self.calls = []

    def get_game(self, game_id):
        self.calls.append(str(game_id))
        if str(game_id) in self.failing:
            raise PandaScoreError("PandaScore error 503: busy", status_code=503, retryable=True)
        return self.games[str(game_id)]


def _game_detail(game_id, team_a, team_b, **extra):
    detail = {
        "id": int(game_id),
        "name": f"Game {game_id}",
        "status": "finished",
        "begin_at": "2024-05-01T18:00:00Z",
        "map": {"name": "Mirage"},
        "rounds_score": [
            {"team_id": int(team_a), "score": 16},
            {"team_id": int(team_b), "score": 12},
        ],
    }
    detail.update(extra)
    return detail


@pytest.mark.django_db
def test_known_game_is_reused_without_a_fetch(team_factory):
    team_a = team_factory("1")
    team_b = team_factory("2")
    Game.objects.create(external_id="100", name="Known", data={"id": 100, "name": "Known", "status": "finished"})
    client = DummyGameClient()
    resolver = GameEnrichmentResolver(client)
    ctx = BatchContext()

    resolver.enrich_last_games(team_a, [{"id": 100}], ctx)
    enriched = resolver.enrich_last_games(team_b, [{"id": 100, "status": "running"}], ctx)

    assert client.calls == []
    assert enriched == [{"id": 100, "name": "Known", "status": "finished"}]
    assert set(Game.objects.get(external_id="100").teams.all()) == {team_a, team_b}
    assert ctx.counters["games_reused"] == 2


@pytest.mark.django_db
def test_unseen_game_is_fetched_stored_and_opponent_linked(team_factory, tournament_factory):
    team_a = team_factory("1")
    team_b = team_factory("2")
    tournament = tournament_factory(55)
    client = DummyGameClient(
        {"200": _game_detail(200, 1, 2, match={"id": 9, "tournament": {"id": 55}})}
    )
    resolver = GameEnrichmentResolver(client)
    ctx = BatchContext()

    enriched = resolver.enrich_last_games(team_a, [{"id": 200, "status": "running", "position": 1}], ctx)

    game = Game.objects.get(external_id="200")
    assert client.calls == ["200"]
    assert enriched[0]["status"] == "finished"
    assert enriched[0]["position"] == 1
    assert game.status == "finished"
    assert game.tournament == tournament
    assert game.map == {"name": "Mirage"}
    assert game.data["position"] == 1
    assert set(game.teams.all()) == {team_a, team_b}
    assert ctx.counters["games_fetched"] == 1


@pytest.mark.django_db
def test_fetch_failure_keeps_the_reference(team_factory):
    team = team_factory("1")
    client = DummyGameClient({"301": _game_detail(301, 1, 2)}, failing={"300"})
    resolver = GameEnrichmentResolver(client)
    ctx = BatchContext()

    enriched = resolver.enrich_last_games(team, [{"id": 300, "name": "ref"}, {"id": 301}], ctx)

    assert enriched[0] == {"id": 300, "name": "ref"}
    assert enriched[1]["name"] == "Game 301"
    assert not Game.objects.filter(external_id="300").exists()
    assert Game.objects.filter(external_id="301").exists()
    assert ctx.counters["game_fetch_failures"] == 1


@pytest.mark.django_db
def test_only_the_first_five_distinct_games_are_enriched(team_factory):
    team = team_factory("1")
    games = {str(i): _game_detail(i, 1, 2) for i in range(1, 8)}
    client = DummyGameClient(games)
    resolver = GameEnrichmentResolver(client, limit=5)
    refs = [{"id": 1}, {"id": 1}] + [{"id": i} for i in range(2, 8)]

    enriched = resolver.enrich_last_games(team, refs, BatchContext())

    assert client.calls == ["1", "2", "3", "4", "5"]
    assert len(enriched) == len(refs)
    assert enriched[-1] == {"id": 7}
    assert Game.objects.count() == 5


@pytest.mark.django_db
def test_player_without_current_team_skips_opponents(team_factory, player_factory):
    team_factory("1")
    team_factory("2")
    player = player_factory("50")
    client = DummyGameClient({"400": _game_detail(400, 1, 2)})

    GameEnrichmentResolver(client).enrich_last_games(player, [{"id": 400}], BatchContext())

    game = Game.objects.get(external_id="400")
    assert list(game.players.all()) == [player]
    assert game.teams.count() == 0


@pytest.mark.django_db
def test_player_with_current_team_links_the_opponent(team_factory, player_factory):
    own = team_factory("1")
    opponent = team_factory("2")
    player = player_factory("50", current_team=own)
    client = DummyGameClient({"401": _game_detail(401, 1, 2)})

    GameEnrichmentResolver(client).enrich_last_games(player, [{"id": 401}], BatchContext())

    game = Game.objects.get(external_id="401")
    assert list(game.teams.all()) == [opponent]


@pytest.mark.django_db
def test_team_stats_replace_blobs_and_link_known_players(team_factory, player_factory):
    team = team_factory("1", stats={"old": True})
    known = player_factory("70")
    client = DummyGameClient({"500": _game_detail(500, 1, 2)})
    payload = {
        "stats": {"wins": 10},
        "players": [{"id": 70}, {"id": 71}],
        "last_games": [{"id": 500}],
    }

    apply_team_stats(team, payload, GameEnrichmentResolver(client), BatchContext())

    team.refresh_from_db()
    assert team.stats == {"wins": 10}
    assert team.last_games[0]["name"] == "Game 500"
    assert list(team.roster_players.all()) == [known]


@pytest.mark.django_db
def test_player_stats_link_roster_teams(team_factory, player_factory):
    old_team = team_factory("1")
    player = player_factory("80", stats={"kd": 1.0})
    payload = {"teams": [{"id": 1}, {"id": 404}], "stats": {"kd": 1.3}, "last_games": []}

    apply_player_stats(player, payload, GameEnrichmentResolver(DummyGameClient()), BatchContext())

    player.refresh_from_db()
    assert player.stats == {"kd": 1.3}
    assert player.last_games == []
    assert list(player.teams.all()) == [old_team]


@pytest.mark.django_db
def test_stats_absent_from_the_payload_are_dropped(team_factory):
    team = team_factory("1", stats={"wins": 4}, last_games=[{"id": 9}])

    apply_team_stats(team, {"players": []}, GameEnrichmentResolver(DummyGameClient()), BatchContext())

    team.refresh_from_db()
    assert team.stats is None
    assert team.last_games is None
