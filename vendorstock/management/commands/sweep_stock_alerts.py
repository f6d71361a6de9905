"""
Management command to re-run threshold and expiry alert sweeps.

Usage:
    python manage.py sweep_stock_alerts
    python manage.py sweep_stock_alerts --vendor v-42 --days 14
    python manage.py sweep_stock_alerts --dry-run
"""

from django.core.management.base import BaseCommand

from vendorstock.service import get_stock_service


class Command(BaseCommand):
    """Sweep stock alerts command."""

    help = 'Re-evaluates stock thresholds and batch expiry alerts'

    def add_arguments(self, parser):
        parser.add_argument(
            '--vendor',
            help='Only sweep this vendor (default: every vendor with products)'
        )
        parser.add_argument(
            '--days',
            type=int,
            default=None,
            help='Expiry lookahead in days (default: per-product setting)'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report expiring batches without touching alerts'
        )

    def handle(self, *args, **options):
        stock = get_stock_service()
        vendors = [options['vendor']] if options['vendor'] else stock.storage.products.vendor_ids()

        for vendor_id in vendors:
            if options['dry_run']:
                expiring = stock.get_expiring_batches(vendor_id, days_ahead=options['days'])
                self.stdout.write(f'{vendor_id}: {len(expiring)} batch(es) expiring')
                continue

            active = stock.sweep_alerts(vendor_id, days_ahead=options['days'])
            self.stdout.write(
                self.style.SUCCESS(f'{vendor_id}: {len(active)} active expiry alert(s)')
            )
