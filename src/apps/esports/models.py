from django.db import models
from django.utils import timezone


class Team(models.Model):
    external_id = models.CharField(max_length=36, unique=True)
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    acronym = models.CharField(max_length=255, blank=True, default="")
    location = models.CharField(max_length=5, blank=True, default="")
    image_url = models.CharField(max_length=500, blank=True, default="")
    stats = models.JSONField(null=True, blank=True)
    last_games = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name


class Player(models.Model):
    external_id = models.CharField(max_length=36, unique=True)
    name = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    first_name = models.CharField(max_length=255, blank=True, default="")
    last_name = models.CharField(max_length=255, blank=True, default="")
    nationality = models.CharField(max_length=5, blank=True, default="")
    birthday = models.DateField(null=True, blank=True)
    image_url = models.CharField(max_length=500, blank=True, default="")
    current_team = models.ForeignKey(
        Team,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="current_players",
    )
    teams = models.ManyToManyField(Team, blank=True, related_name="roster_players")
    stats = models.JSONField(null=True, blank=True)
    last_games = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name


class Tournament(models.Model):
    external_id = models.BigIntegerField(unique=True)
    name = models.CharField(max_length=255)
    slug = models.CharField(max_length=255, blank=True, default="")
    begin_at = models.DateTimeField(null=True, blank=True)
    end_at = models.DateTimeField(null=True, blank=True)
    country = models.CharField(max_length=2, blank=True, default="")
    detailed_stats = models.BooleanField(default=False)
    has_bracket = models.BooleanField(default=False)
    league_id = models.BigIntegerField(null=True, blank=True)
    league = models.JSONField(null=True, blank=True)
    live_supported = models.BooleanField(default=False)
    matches = models.JSONField(null=True, blank=True)
    expected_roster = models.JSONField(null=True, blank=True)
    parsed_teams = models.JSONField(null=True, blank=True)
    prizepool = models.CharField(max_length=255, null=True, blank=True)
    prizepool_currency = models.CharField(max_length=3, blank=True, default="")
    region = models.CharField(max_length=255, blank=True, default="")
    serie_id = models.BigIntegerField(null=True, blank=True)
    serie = models.JSONField(null=True, blank=True)
    tier = models.CharField(max_length=255, blank=True, default="")
    type = models.CharField(max_length=255, blank=True, default="")
    winner_id = models.BigIntegerField(null=True, blank=True)
    winner_type = models.CharField(max_length=255, blank=True, default="")
    teams = models.ManyToManyField(Team, blank=True, related_name="tournaments")
    players = models.ManyToManyField(Player, blank=True, related_name="tournaments")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name


class Game(models.Model):
    external_id = models.CharField(max_length=36, unique=True)
    name = models.CharField(max_length=255)
    status = models.CharField(max_length=50, default="unknown")
    begin_at = models.DateTimeField(null=True, blank=True)
    end_at = models.DateTimeField(null=True, blank=True)
    match = models.JSONField(null=True, blank=True)
    map = models.JSONField(null=True, blank=True)
    winner = models.JSONField(null=True, blank=True)
    rounds = models.JSONField(null=True, blank=True)
    rounds_score = models.JSONField(null=True, blank=True)
    results = models.JSONField(null=True, blank=True)
    data = models.JSONField(null=True, blank=True)
    tournament = models.ForeignKey(
        Tournament,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="games",
    )
    teams = models.ManyToManyField(Team, blank=True, related_name="games")
    players = models.ManyToManyField(Player, blank=True, related_name="games")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.name} ({self.external_id})"


class SyncState(models.Model):
    job = models.CharField(max_length=100, unique=True)
    last_run_at = models.DateTimeField(null=True, blank=True)
    last_success_at = models.DateTimeField(null=True, blank=True)
    error_count = models.IntegerField(default=0)
    last_error = models.TextField(blank=True, default="")
    last_error_at = models.DateTimeField(null=True, blank=True)
    meta = models.JSONField(default=dict, blank=True)

    def __str__(self) -> str:
        return self.job

    @classmethod
    def start(cls, job: str) -> "SyncState":
        state, _ = cls.objects.get_or_create(job=job)
        state.last_run_at = timezone.now()
        state.save(update_fields=["last_run_at"])
        return state

    def record_failure(self, error: str, meta: dict | None = None) -> None:
        self.error_count += 1
        self.last_error = error[:500]
        self.last_error_at = timezone.now()
        update_fields = ["error_count", "last_error", "last_error_at"]
        if meta is not None:
            self.meta = meta
            update_fields.append("meta")
        self.save(update_fields=update_fields)

    def record_success(self, meta: dict) -> None:
        self.last_success_at = timezone.now()
        self.last_error = ""
        self.meta = meta
        self.save(update_fields=["last_success_at", "last_error", "meta"])
