from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from apps.esports.reconcile import PlayerReconciler
from apps.esports.runner import BatchRunner, SyncAborted, run_tracked, sync_feed
from apps.esports.vendor.scheduler import RequestScheduler


class Command(BaseCommand):
    help = "Fetch CS:GO players from PandaScore and upsert them by external id"

    def add_arguments(self, parser):
        parser.add_argument("--per-page", type=int, default=100)
        parser.add_argument("--start-page", type=int, default=1)
        parser.add_argument("--max-pages", type=int, default=None)
        parser.add_argument("--concurrency", type=int, default=2)

    def handle(self, *args, **options):
        if not settings.PANDASCORE_TOKEN:
            raise CommandError("PANDASCORE_TOKEN is not set")

        scheduler = RequestScheduler.from_settings(max_in_flight=options["concurrency"])
        runner = BatchRunner.from_settings(label="players", progress=self.stdout.write)

        try:
            report = run_tracked(
                "fetch_players",
                lambda: sync_feed(
                    scheduler,
                    "/players",
                    PlayerReconciler(),
                    runner,
                    per_page=options["per_page"],
                    start_page=options["start_page"],
                    max_pages=options["max_pages"],
                ),
            )
        except SyncAborted as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(self.style.SUCCESS(f"Players synced: {report.summary()}"))
