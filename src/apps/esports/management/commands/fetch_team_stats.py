from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from apps.esports.enrichment import GameEnrichmentResolver
from apps.esports.runner import BatchRunner, SyncAborted, run_tracked, sync_stats
from apps.esports.vendor.pandascore_client import PandaScoreClient
from apps.esports.vendor.scheduler import RequestScheduler


class Command(BaseCommand):
    help = "Refresh stats and last games for stored teams, creating any games not seen yet"

    def add_arguments(self, parser):
        parser.add_argument("--batch-size", type=int, default=50)
        parser.add_argument("--offset", type=int, default=0)
        parser.add_argument("--max-teams", type=int, default=None)
        parser.add_argument("--concurrency", type=int, default=10)
        parser.add_argument("--id", dest="external_id", type=str, default=None)

    def handle(self, *args, **options):
        if not settings.PANDASCORE_TOKEN:
            raise CommandError("PANDASCORE_TOKEN is not set")

        scheduler = RequestScheduler.from_settings(max_in_flight=options["concurrency"])
        runner = BatchRunner.from_settings(label="team-stats", progress=self.stdout.write)

        with PandaScoreClient.from_settings() as client:
            resolver = GameEnrichmentResolver(client, limit=settings.SYNC_LAST_GAMES_LIMIT)
            try:
                report = run_tracked(
                    "fetch_team_stats",
                    lambda: sync_stats(
                        "team",
                        scheduler,
                        resolver,
                        runner,
                        batch_size=options["batch_size"],
                        offset=options["offset"],
                        max_items=options["max_teams"],
                        external_id=options["external_id"],
                    ),
                )
            except SyncAborted as exc:
                raise CommandError(str(exc)) from exc

        self.stdout.write(self.style.SUCCESS(f"Team stats synced: {report.summary()}"))
