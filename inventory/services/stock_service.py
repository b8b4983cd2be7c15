"""
Stock receipts and ledger consistency checks.

Every stock increase goes through here so that the product counter and the
lot ledger move together in one transaction:

    product.quantity == sum(lot.remaining_quantity for lot in product.lots)
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from django.conf import settings
from django.db import transaction
from django.db.models import Count, IntegerField, OuterRef, Subquery, Sum
from django.db.models.functions import Coalesce

from inventory.exceptions import InvalidQuantity, ProductNotFound
from inventory.models import InventoryLot, Product
from inventory.services.ledger import LotLedger, validate_quantity, validate_unit_cost

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockDrift:
    product_id: int
    product_code: str
    product_quantity: int
    ledger_quantity: int

    @property
    def difference(self):
        return self.product_quantity - self.ledger_quantity


class StockService:
    def __init__(self, ledger=None):
        self.ledger = ledger or LotLedger()

    def _check_entry_limit(self, quantity):
        limit = settings.INVENTORY_CONFIG.get('MAX_QUANTITY_PER_ENTRY')
        if limit and quantity > limit:
            raise InvalidQuantity(
                quantity, f"Quantity {quantity} exceeds the per-entry limit of {limit}"
            )

    @transaction.atomic
    def create_product(self, *, product_code, name, category, quantity=0,
                       buying_price=Decimal('0.00'), selling_price=Decimal('0.00'),
                       owner=None, note='Initial stock') -> Product:
        """Create a product; positive starting stock becomes its opening lot."""
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise InvalidQuantity(quantity)
        buying_price = validate_unit_cost(buying_price)
        selling_price = validate_unit_cost(selling_price, label='Selling price')
        if quantity:
            self._check_entry_limit(quantity)

        product = Product.objects.create(
            product_code=product_code,
            name=name,
            category=category,
            quantity=quantity,
            buying_price=buying_price,
            selling_price=selling_price,
            owner=owner,
        )
        if quantity > 0:
            self.ledger.record_lot(
                product.pk, quantity, buying_price, received_by=owner, note=note
            )

        logger.info(
            f"Product created: {product.product_code} - {product.name} "
            f"(Category: {category.name}, Quantity: {quantity})"
        )
        return product

    @transaction.atomic
    def receive_stock(self, product_id, quantity, unit_cost=None, actor=None,
                      note='Restock', received_at=None, selling_price=None) -> InventoryLot:
        """
        Restock: bump the product counter and record the lot together.

        `unit_cost` defaults to the product's current buying price; when given
        it also becomes the new buying price.
        """
        quantity = validate_quantity(quantity)
        self._check_entry_limit(quantity)
        if selling_price is not None:
            selling_price = validate_unit_cost(selling_price, label='Selling price')

        try:
            product = Product.objects.select_for_update().get(pk=product_id, is_active=True)
        except Product.DoesNotExist:
            raise ProductNotFound(product_id)

        if unit_cost is None:
            cost = product.buying_price
        else:
            cost = validate_unit_cost(unit_cost)

        lot = self.ledger.record_lot(
            product.pk, quantity, cost,
            received_at=received_at, received_by=actor, note=note,
        )

        old_quantity = product.quantity
        product.quantity = old_quantity + quantity
        update_fields = ['quantity']
        if unit_cost is not None:
            product.buying_price = cost
            update_fields.append('buying_price')
        if selling_price is not None:
            product.selling_price = selling_price
            update_fields.append('selling_price')
        product.save(update_fields=update_fields)

        logger.info(
            f"Restocked: {product.product_code} | Quantity: {old_quantity} → {product.quantity} | "
            f"Lot #{lot.pk} @ {cost}"
        )
        return lot

    def check_consistency(self, product_id=None) -> List[StockDrift]:
        """
        Products whose stock counter disagrees with the ledger.

        Reports only. Repairing drift needs an operator decision.
        """
        ledger_total = (
            InventoryLot.objects
            .filter(product=OuterRef('pk'))
            .values('product')
            .annotate(total=Sum('remaining_quantity'))
            .values('total')
        )
        products = Product.objects.annotate(
            ledger_quantity=Coalesce(
                Subquery(ledger_total, output_field=IntegerField()), 0
            )
        ).order_by('pk')
        if product_id is not None:
            products = products.filter(pk=product_id)

        drifts = [
            StockDrift(p.pk, p.product_code, p.quantity, p.ledger_quantity)
            for p in products
            if p.quantity != p.ledger_quantity
        ]
        for drift in drifts:
            logger.error(
                f"[LEDGER DRIFT] Product {drift.product_code}: stock {drift.product_quantity}, "
                f"ledger {drift.ledger_quantity} (difference {drift.difference})"
            )
        return drifts

    def backfill_opening_lots(self, dry_run=False, actor=None) -> List[Product]:
        """
        Give products with stock but no lot history an opening lot.

        Only products that never had a lot qualify; a product with partial
        history is drift and stays for an operator.
        """
        candidates = list(
            Product.objects
            .filter(is_active=True, quantity__gt=0)
            .annotate(lot_count=Count('lots'))
            .filter(lot_count=0)
            .order_by('pk')
        )
        if dry_run:
            return candidates

        with transaction.atomic():
            for product in candidates:
                self.ledger.record_lot(
                    product.pk, product.quantity, product.buying_price,
                    received_at=product.created_at, received_by=actor,
                    note='Opening balance (backfill)',
                )
        logger.info(f"Backfilled opening lots for {len(candidates)} products")
        return candidates
