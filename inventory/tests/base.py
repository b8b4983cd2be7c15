from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from inventory.models import Category, InventoryLot, Product
from inventory.services import LotLedger, StockService


class RacingWriterLedger(LotLedger):
    """Ledger where another checkout consumes `stolen` units of a lot right before our first decrement."""

    def __init__(self, stolen):
        self.stolen = stolen
        self.raced = False

    def decrement_remaining(self, lot_id, amount):
        if not self.raced:
            self.raced = True
            LotLedger().decrement_remaining(lot_id, self.stolen)
        return super().decrement_remaining(lot_id, amount)


class InventoryFixturesMixin:
    """Builders shared by the inventory and sales test cases."""

    def make_user(self, username='cashier'):
        User = get_user_model()
        return User.objects.create_user(username=username, password='pass123')

    def make_category(self, name='Phones'):
        return Category.objects.create(name=name)

    def make_product(self, code='PRD-001', category=None, selling_price='15.00', buying_price='10.00'):
        """Product with no stock and no lots."""
        return StockService().create_product(
            product_code=code,
            name=f"Product {code}",
            category=category or self.category,
            quantity=0,
            buying_price=Decimal(buying_price),
            selling_price=Decimal(selling_price),
        )

    def receive(self, product, quantity, unit_cost, hours_ago=0):
        """Restock through the service so stock and ledger stay in step."""
        received_at = self.base_time - timedelta(hours=hours_ago)
        return StockService().receive_stock(
            product.pk, quantity, unit_cost=Decimal(unit_cost), received_at=received_at
        )

    def two_lot_product(self, code='PRD-001', category=None):
        """5 units @ 10.00 received first, then 5 units @ 12.00."""
        product = self.make_product(code, category=category)
        older = self.receive(product, 5, '10.00', hours_ago=2)
        newer = self.receive(product, 5, '12.00', hours_ago=1)
        return product, older, newer

    def remaining(self, *lots):
        return [InventoryLot.objects.get(pk=lot.pk).remaining_quantity for lot in lots]

    def assertLedgerMatchesStock(self, product):
        product = Product.objects.get(pk=product.pk)
        ledger = sum(lot.remaining_quantity for lot in product.lots.all())
        self.assertEqual(product.quantity, ledger)

    @property
    def base_time(self):
        if not hasattr(self, '_base_time'):
            self._base_time = timezone.now() - timedelta(days=1)
        return self._base_time
