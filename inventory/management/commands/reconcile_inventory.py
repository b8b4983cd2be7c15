from django.core.management.base import BaseCommand, CommandError

from inventory.services import StockService


class Command(BaseCommand):
    help = 'Report products whose stock counter disagrees with the lot ledger (read-only)'

    def add_arguments(self, parser):
        parser.add_argument('--product', type=int, help='Only check this product id')
        parser.add_argument(
            '--fail-on-drift',
            action='store_true',
            help='Exit with an error when any drift is found',
        )

    def handle(self, *args, **options):
        self.stdout.write(self.style.WARNING('Checking stock against the lot ledger...'))

        drifts = StockService().check_consistency(product_id=options.get('product'))

        for drift in drifts:
            self.stdout.write(
                self.style.ERROR(
                    f"✗ {drift.product_code}: stock {drift.product_quantity}, "
                    f"ledger {drift.ledger_quantity} (difference {drift.difference:+d})"
                )
            )

        self.stdout.write(self.style.SUCCESS('\n' + '=' * 60))
        self.stdout.write(self.style.SUCCESS('SUMMARY:'))
        self.stdout.write(self.style.SUCCESS('=' * 60))
        self.stdout.write(f"Products with drift: {len(drifts)}")

        if drifts and options['fail_on_drift']:
            raise CommandError(f"{len(drifts)} product(s) out of step with the lot ledger")

        if not drifts:
            self.stdout.write(self.style.SUCCESS('\n✅ Stock and ledger agree.'))
