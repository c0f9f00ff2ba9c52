"""Management command that settles VOTE events past their deadline.

Schedule it periodically (cron, systemd timer). Re-running is harmless.
"""

from datetime import datetime

from django.core.management.base import BaseCommand, CommandError

from planner.wiring import get_planner


class Command(BaseCommand):
    help = "Fail or advance VOTE-phase events whose vote deadline has passed"

    def add_arguments(self, parser):
        parser.add_argument(
            "--now",
            help="ISO-8601 instant to sweep as of (defaults to the current time)",
        )

    def handle(self, *args, **options):
        now = None
        if options["now"]:
            try:
                now = datetime.fromisoformat(options["now"].replace("Z", "+00:00"))
            except ValueError as exc:
                raise CommandError(f"Invalid --now value: {options['now']}") from exc
            if now.tzinfo is None:
                raise CommandError("--now must include a UTC offset")

        result = get_planner().sweeper.sweep(now)

        self.stdout.write(f"Failed {len(result.failed)} events, advanced {len(result.advanced)} events")
        if result.errors:
            self.stdout.write(self.style.WARNING(f"Could not settle {len(result.errors)} events, see logs"))
        else:
            self.stdout.write(self.style.SUCCESS("Sweep complete"))
