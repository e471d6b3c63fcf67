from django.conf import settings
from django.core.management import call_command
from django.core.management.base import BaseCommand, CommandError


class Command(BaseCommand):
    help = "Run the full PandaScore sync: teams, players, tournaments, stats, tournament rosters."

    def add_arguments(self, parser):
        parser.add_argument("--skip-stats", action="store_true")
        parser.add_argument("--max-pages", type=int, default=None)

    def handle(self, *args, **options):
        if not settings.PANDASCORE_TOKEN:
            raise CommandError("PANDASCORE_TOKEN is not set")

        max_pages = options["max_pages"]
        out = {"stdout": self.stdout, "stderr": self.stderr}

        # Teams first so players can resolve their current team.
        call_command("fetch_teams", max_pages=max_pages, **out)
        call_command("fetch_players", max_pages=max_pages, **out)
        call_command("fetch_tournaments", max_pages=max_pages, **out)

        if not options["skip_stats"]:
            call_command("fetch_team_stats", **out)
            call_command("fetch_player_stats", **out)

        call_command("link_tournaments", **out)
        self.stdout.write(self.style.SUCCESS("PandaScore sync complete"))
