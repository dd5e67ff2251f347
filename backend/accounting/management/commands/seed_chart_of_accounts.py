# accounting/management/commands/seed_chart_of_accounts.py
"""
Provision the standard construction chart of accounts.

Safe to run repeatedly: accounts that already exist are left unchanged.

Usage:
    python manage.py seed_chart_of_accounts
    python manage.py seed_chart_of_accounts --currency EUR
"""

from django.conf import settings
from django.core.management.base import BaseCommand

from accounting.chart import STANDARD_CHART, seed_chart


class Command(BaseCommand):
    help = "Create the standard chart of accounts (idempotent)"

    def add_arguments(self, parser):
        parser.add_argument(
            "--currency",
            type=str,
            default=getattr(settings, "LEDGER_DEFAULT_CURRENCY", "USD"),
            help="Currency code for newly created accounts",
        )

    def handle(self, *args, **options):
        created = seed_chart(currency=options["currency"].upper())

        for account in created:
            self.stdout.write(f"  + {account.code} {account.name} ({account.account_type})")

        self.stdout.write(self.style.SUCCESS(
            f"Chart of accounts ready: {len(created)} created, "
            f"{len(STANDARD_CHART) - len(created)} already present."
        ))
