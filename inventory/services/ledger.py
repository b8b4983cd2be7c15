"""
Lot ledger: the append-mostly store of purchase lots.

`record_lot` is the single place that creates InventoryLot rows.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.db.models import F, Sum
from django.utils import timezone

from inventory.exceptions import (
    InsufficientLotQuantity,
    InvalidCost,
    InvalidQuantity,
    ProductNotFound,
)
from inventory.models import CostingPolicy, InventoryLot, Product

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def validate_quantity(quantity):
    # bool is an int subclass; True is not a quantity
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantity(quantity)
    return quantity


def validate_unit_cost(unit_cost, label=None):
    message = f"{label} must be a non-negative amount in cents, got {unit_cost!r}" if label else None
    if isinstance(unit_cost, bool) or unit_cost is None:
        raise InvalidCost(unit_cost, message)
    try:
        cost = Decimal(str(unit_cost))
    except (InvalidOperation, ValueError):
        raise InvalidCost(unit_cost, message)
    if not cost.is_finite() or cost < 0 or cost != cost.quantize(CENT):
        raise InvalidCost(unit_cost, message)
    return cost


class LotLedger:
    """Ordered record of every stock receipt, per product."""

    def record_lot(self, product_id, quantity, unit_cost, received_at=None,
                   received_by=None, note='') -> InventoryLot:
        """
        Append a new lot with remaining_quantity == quantity.

        Updating Product.quantity is the caller's job and must happen in the
        same transaction (see StockService).
        """
        quantity = validate_quantity(quantity)
        cost = validate_unit_cost(unit_cost)

        if not Product.objects.filter(pk=product_id, is_active=True).exists():
            raise ProductNotFound(product_id)

        lot = InventoryLot.objects.create(
            product_id=product_id,
            quantity_received=quantity,
            unit_cost=cost,
            remaining_quantity=quantity,
            received_at=received_at or timezone.now(),
            received_by=received_by,
            note=note or '',
        )
        logger.info(
            f"[LOT RECEIVED] Lot #{lot.pk} | Product: {product_id} | "
            f"Quantity: {quantity} | Unit Cost: {cost} | Note: {lot.note or 'N/A'}"
        )
        return lot

    def unconsumed_lots(self, product_id, order_policy, lock=False):
        """
        Lots with stock left, in the order the policy consumes them.

        Returns a QuerySet: nothing is read until it is iterated, and it can
        be iterated again. Equal timestamps always fall back to ascending id.
        AVERAGE depletes in FIFO order.
        """
        policy = CostingPolicy.parse(order_policy)
        queryset = InventoryLot.objects.filter(product_id=product_id, remaining_quantity__gt=0)

        if policy is CostingPolicy.LIFO:
            queryset = queryset.order_by('-received_at', 'id')
        elif policy in (CostingPolicy.FIFO, CostingPolicy.AVERAGE):
            queryset = queryset.order_by('received_at', 'id')
        else:
            raise AssertionError(f"Unhandled costing policy {policy!r}")

        if lock:
            queryset = queryset.select_for_update()
        return queryset

    def decrement_remaining(self, lot_id, amount) -> None:
        """Consume `amount` units of a lot; the check and write are one UPDATE."""
        amount = validate_quantity(amount)
        updated = (
            InventoryLot.objects
            .filter(pk=lot_id, remaining_quantity__gte=amount)
            .update(remaining_quantity=F('remaining_quantity') - amount)
        )
        if not updated:
            raise InsufficientLotQuantity(lot_id, amount)

    def remaining_total(self, product_id) -> int:
        total = (
            InventoryLot.objects
            .filter(product_id=product_id)
            .aggregate(total=Sum('remaining_quantity'))['total']
        )
        return total or 0
