from collections import Counter
from dataclasses import dataclass, field

from .models import Game, Player, Team, Tournament


@dataclass
class BatchContext:
    """
    State that lives for exactly one batch: identity caches keyed by external
    id, slugs handed out to rows not yet flushed, and event counters.

    The runner builds a fresh context per batch and calls `clear()` once the
    batch is committed, so nothing loaded for one page outlives it.
    """

    index: int = 0
    teams: dict[str, Team] = field(default_factory=dict)
    players: dict[str, Player] = field(default_factory=dict)
    tournaments: dict[int, Tournament] = field(default_factory=dict)
    games: dict[str, Game] = field(default_factory=dict)
    reserved_slugs: dict[str, set[str]] = field(default_factory=dict)
    counters: Counter = field(default_factory=Counter)

    def slugs_for(self, model) -> set[str]:
        return self.reserved_slugs.setdefault(model._meta.label, set())

    def remember(self, instance) -> None:
        if isinstance(instance, Team):
            self.teams[instance.external_id] = instance
        elif isinstance(instance, Player):
            self.players[instance.external_id] = instance
        elif isinstance(instance, Tournament):
            self.tournaments[instance.external_id] = instance
        elif isinstance(instance, Game):
            self.games[instance.external_id] = instance

    def clear(self) -> None:
        self.teams.clear()
        self.players.clear()
        self.tournaments.clear()
        self.games.clear()
        self.reserved_slugs.clear()
