from django.contrib import admin

from .models import Game, Player, SyncState, Team, Tournament


@admin.register(Team)
class TeamAdmin(admin.ModelAdmin):
    list_display = ("name", "acronym", "external_id", "location", "updated_at")
    search_fields = ("name", "acronym", "external_id", "slug")


@admin.register(Player)
class PlayerAdmin(admin.ModelAdmin):
    list_display = ("name", "external_id", "current_team", "nationality", "updated_at")
    list_filter = ("nationality",)
    search_fields = ("name", "first_name", "last_name", "external_id", "slug")
    raw_id_fields = ("current_team",)
    filter_horizontal = ("teams",)


@admin.register(Tournament)
class TournamentAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "external_id",
        "tier",
        "region",
        "begin_at",
        "prizepool",
        "prizepool_currency",
    )
    list_filter = ("tier", "region", "has_bracket")
    search_fields = ("name", "external_id", "slug")
    filter_horizontal = ("teams", "players")


@admin.register(Game)
class GameAdmin(admin.ModelAdmin):
    list_display = ("name", "external_id", "status", "tournament", "begin_at")
    list_filter = ("status",)
    search_fields = ("name", "external_id")
    raw_id_fields = ("tournament",)
    filter_horizontal = ("teams", "players")


@admin.register(SyncState)
class SyncStateAdmin(admin.ModelAdmin):
    list_display = ("job", "last_success_at", "last_run_at", "error_count")
