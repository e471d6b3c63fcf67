from typing import Any

import httpx
import pytest

from apps.esports.models import Player, Team, Tournament
from apps.esports.vendor.pandascore_client import PandaScoreClient
from apps.esports.vendor.scheduler import RequestScheduler


class FakePandaScore:
    """In-memory stand-in for the PandaScore API, served through httpx.MockTransport."""

    def __init__(self):
        self.pages: dict[str, list[list]] = {}
        self.details: dict[str, Any] = {}
        self.failures: dict[tuple[str, int | None], list[int]] = {}
        self.requests: list[httpx.Request] = []

    def fail(self, path: str, times: int = 1, status: int = 503, page: int | None = None):
        self.failures[(path, page)] = [status] * times

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/csgo")
        page = request.url.params.get("page")
        page = int(page) if page is not None else None

        queued = self.failures.get((path, page))
        if queued:
            return httpx.Response(queued.pop(0), json={"error": "unavailable"})

        if path in self.pages:
            pages = self.pages[path]
            body = pages[page - 1] if page and page <= len(pages) else []
            return httpx.Response(200, json=body)
        if path in self.details:
            return httpx.Response(200, json=self.details[path])
        return httpx.Response(404, json={"error": "Not found"})

    def paths(self) -> list[str]:
        return [request.url.path.removeprefix("/csgo") for request in self.requests]


@pytest.fixture
def pandascore(monkeypatch, settings):
    settings.PANDASCORE_TOKEN = "test-token"
    settings.PANDASCORE_BASE_URL = "https://pandascore.test/csgo"

    api = FakePandaScore()
    transport = httpx.MockTransport(api.handler)
    build_scheduler = RequestScheduler.from_settings.__func__
    build_client = PandaScoreClient.from_settings.__func__

    def scheduler_from_settings(cls, max_in_flight=2, transport=None):
        return build_scheduler(cls, max_in_flight=max_in_flight, transport=httpx.MockTransport(api.handler))

    def client_from_settings(cls, **overrides):
        overrides.setdefault("transport", transport)
        return build_client(cls, **overrides)

    monkeypatch.setattr(RequestScheduler, "from_settings", classmethod(scheduler_from_settings))
    monkeypatch.setattr(PandaScoreClient, "from_settings", classmethod(client_from_settings))
    return api


@pytest.fixture
def team_factory(db):
    def _create(external_id, name=None, **extra):
        extra.setdefault("slug", f"team-{external_id}")
        return Team.objects.create(
            external_id=str(external_id),
            name=name or f"Team {external_id}",
            **extra,
        )

    return _create


@pytest.fixture
def player_factory(db):
    def _create(external_id, name=None, **extra):
        extra.setdefault("slug", f"player-{external_id}")
        return Player.objects.create(
            external_id=str(external_id),
            name=name or f"Player {external_id}",
            **extra,
        )

    return _create


@pytest.fixture
def tournament_factory(db):
    def _create(external_id, name=None, **extra):
        return Tournament.objects.create(
            external_id=int(external_id),
            name=name or f"Tournament {external_id}",
            **extra,
        )

    return _create
