"""
Stock — Management Command: check_stock_drift

Reports products whose cached quantity differs from
opening_quantity + SUM(IN) - SUM(OUT) over the movement ledger.

Usage::

    python manage.py check_stock_drift
    python manage.py check_stock_drift --repair

@file stock/management/commands/check_stock_drift.py
"""

from django.core.management.base import BaseCommand, CommandError

from core.exceptions import InfrastructureError
from stock.services import StockReconciliationService


class Command(BaseCommand):
    help = 'Compare product quantities against the stock movement ledger.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--repair', action='store_true',
            help='Overwrite drifted quantities with the ledger projection.',
        )

    def handle(self, *args, **options):
        drift = StockReconciliationService.find_quantity_drift()
        if not drift:
            self.stdout.write(self.style.SUCCESS('No quantity drift found.'))
            return

        for item in drift:
            self.stdout.write(
                f'  {item.sku}: recorded={item.recorded} ledger={item.expected} '
                f'(diff {item.difference:+d})',
            )

        if not options['repair']:
            self.stdout.write(self.style.WARNING(f'{len(drift)} product(s) drifted.'))
            return

        failed = 0
        for item in drift:
            try:
                StockReconciliationService.repair(item)
            except InfrastructureError as exc:
                failed += 1
                self.stderr.write(f'  Could not repair {item.sku}: {exc.detail}')

        if failed:
            raise CommandError(f'{failed} of {len(drift)} product(s) could not be repaired.')
        self.stdout.write(self.style.SUCCESS(f'Repaired {len(drift)} product(s).'))
