from django.core.management.base import BaseCommand, CommandError

from apps.esports.runner import BatchRunner, SyncAborted, link_tournaments, run_tracked


class Command(BaseCommand):
    help = "Link stored teams and players to tournaments from each tournament's expected roster"

    def add_arguments(self, parser):
        parser.add_argument("--batch-size", type=int, default=10)
        parser.add_argument("--max-tournaments", type=int, default=None)

    def handle(self, *args, **options):
        runner = BatchRunner.from_settings(label="link-tournaments", progress=self.stdout.write)

        try:
            report = run_tracked(
                "link_tournaments",
                lambda: link_tournaments(
                    runner,
                    batch_size=options["batch_size"],
                    max_items=options["max_tournaments"],
                ),
            )
        except SyncAborted as exc:
            raise CommandError(str(exc)) from exc

        self.stdout.write(
            self.style.SUCCESS(
                f"Tournaments linked: processed={report.processed} "
                f"not_found_players={report.not_found_players}"
            )
        )
