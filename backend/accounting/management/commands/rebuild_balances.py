# accounting/management/commands/rebuild_balances.py
"""
Verify or rebuild cached account balances.

Account balances are a cache of approved journal lines. This command
replays the approved lines, reports any account whose cached balance or
movement log disagrees, and (unless --verify-only or --dry-run) resets
the cache to the replayed values.

Usage:
    python manage.py rebuild_balances --verify-only
    python manage.py rebuild_balances --dry-run
    python manage.py rebuild_balances
"""

import logging

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounting.balances import rebuild_balances, verify_balances


logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Verify cached account balances against the journal and optionally rebuild them"

    def add_arguments(self, parser):
        parser.add_argument(
            "--verify-only",
            action="store_true",
            help="Report mismatches and exit non-zero if any are found",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would change without writing",
        )

    def handle(self, *args, **options):
        report = verify_balances()

        self.stdout.write(
            f"Accounts: {report['total_accounts']}, verified: {report['verified']}, "
            f"approved lines replayed: {report['lines_processed']}"
        )

        for mismatch in report["mismatches"]:
            self.stdout.write(self.style.WARNING(
                f"  {mismatch['account_code']}: cached={mismatch['cached_balance']} "
                f"expected={mismatch['expected_balance']} "
                f"movements={mismatch['movement_balance']}"
            ))

        if not report["mismatches"]:
            self.stdout.write(self.style.SUCCESS("All balances match the journal."))
            return

        if options["verify_only"]:
            raise CommandError(f"{len(report['mismatches'])} account balance(s) do not match.")

        if options["dry_run"]:
            self.stdout.write("Dry run: no changes written.")
            return

        with transaction.atomic():
            corrections = rebuild_balances()

        logger.warning("Balances rebuilt", extra={"corrections": len(corrections)})
        self.stdout.write(self.style.SUCCESS(f"Rebuilt {len(corrections)} account balance(s)."))
