from django.core.management.base import BaseCommand

from inventory.services import StockService


class Command(BaseCommand):
    help = 'Record an opening lot for products that have stock but no lot history'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the products that would get an opening lot without writing anything',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        products = StockService().backfill_opening_lots(dry_run=dry_run)

        for product in products:
            prefix = 'Would backfill' if dry_run else '✓ Backfilled'
            self.stdout.write(
                f"{prefix}: {product.product_code} | Quantity: {product.quantity} "
                f"@ {product.buying_price}"
            )

        verb = 'would be backfilled' if dry_run else 'backfilled'
        self.stdout.write(self.style.SUCCESS(f"\n{len(products)} product(s) {verb}."))
