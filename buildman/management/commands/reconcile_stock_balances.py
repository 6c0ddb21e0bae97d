"""
Management command to reconcile cached balances with the movement ledger.

Usage:
    python manage.py reconcile_stock_balances
    python manage.py reconcile_stock_balances --project 12 --dry-run
"""

from django.core.management.base import BaseCommand

from buildman import stock


class Command(BaseCommand):
    """Reconcile stock balances command."""

    help = 'Recompute stock balances from the movement ledger'

    def add_arguments(self, parser):
        parser.add_argument(
            '--project',
            type=int,
            default=None,
            help='Only reconcile balances of this project id'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Report drift without repairing it'
        )

    def handle(self, *args, **options):
        drifted = stock.reconcile(
            project_id=options['project'],
            dry_run=options['dry_run'],
        )

        for balance, cached, ledger in drifted:
            self.stdout.write(
                f'material {balance.material_id} @ project {balance.project_id}: '
                f'cached {cached}, ledger {ledger}'
            )

        if options['dry_run']:
            self.stdout.write(f'{len(drifted)} balance(s) would be repaired')
        else:
            self.stdout.write(
                self.style.SUCCESS(f'{len(drifted)} balance(s) repaired')
            )
