"""
Inventory valuation.

Read-only: values the stock still sitting in unconsumed lots under the
active policy. FIFO and LIFO value every lot at its own cost (which lots are
left depends on how past sales were allocated); AVERAGE values the whole
remaining quantity at the weighted average cost.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from inventory.models import CostingPolicy, InventoryLot
from inventory.services.allocation import UNIT_COST_PLACES, weighted_unit_cost
from inventory.services.ledger import CENT
from inventory.services.policy import DatabasePolicySwitch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProductValuation:
    product_id: int
    product_code: str
    product_name: str
    category_id: int
    category_name: str
    remaining_quantity: int
    averaged_unit_value: Decimal
    total_value: Decimal
    policy_used: CostingPolicy


@dataclass(frozen=True)
class CategoryValuation:
    category_id: int
    category_name: str
    product_count: int
    remaining_quantity: int
    total_value: Decimal
    policy_used: CostingPolicy


class ValuationCalculator:
    def __init__(self, policy_switch=None):
        self.policy_switch = policy_switch or DatabasePolicySwitch()

    def valuation(self, product_id=None, category_id=None) -> List[ProductValuation]:
        """
        Per-product value of remaining stock, ordered by product id.

        Products without remaining ledger stock are left out, so an empty
        inventory gives an empty list.
        """
        policy = self.policy_switch.get_policy()

        lots = (
            InventoryLot.objects
            .filter(remaining_quantity__gt=0)
            .select_related('product', 'product__category')
            .order_by('product_id', 'received_at', 'id')
        )
        if product_id is not None:
            lots = lots.filter(product_id=product_id)
        if category_id is not None:
            lots = lots.filter(product__category_id=category_id)

        grouped = OrderedDict()
        for lot in lots:
            grouped.setdefault(lot.product_id, []).append(lot)

        return [self._value_product(product_lots, policy) for product_lots in grouped.values()]

    def by_category(self, category_id=None) -> List[CategoryValuation]:
        """Sum of the per-product rows, grouped by category."""
        rows = self.valuation(category_id=category_id)
        if not rows:
            return []

        policy = rows[0].policy_used
        totals = OrderedDict()
        for row in sorted(rows, key=lambda r: (r.category_name, r.category_id)):
            entry = totals.setdefault(row.category_id, {
                'category_name': row.category_name,
                'product_count': 0,
                'remaining_quantity': 0,
                'total_value': Decimal('0.00'),
            })
            entry['product_count'] += 1
            entry['remaining_quantity'] += row.remaining_quantity
            entry['total_value'] += row.total_value

        return [
            CategoryValuation(
                category_id=cat_id,
                category_name=entry['category_name'],
                product_count=entry['product_count'],
                remaining_quantity=entry['remaining_quantity'],
                total_value=entry['total_value'],
                policy_used=policy,
            )
            for cat_id, entry in totals.items()
        ]

    def total(self, product_id=None, category_id=None) -> Decimal:
        return sum(
            (row.total_value for row in self.valuation(product_id, category_id)),
            Decimal('0.00'),
        )

    @staticmethod
    def _value_product(lots, policy) -> ProductValuation:
        product = lots[0].product
        remaining = sum(lot.remaining_quantity for lot in lots)

        if policy is CostingPolicy.FIFO or policy is CostingPolicy.LIFO:
            total_value = sum((lot.remaining_value for lot in lots), Decimal('0'))
        elif policy is CostingPolicy.AVERAGE:
            total_value = weighted_unit_cost(lots) * remaining
        else:
            raise AssertionError(f"Unhandled costing policy {policy!r}")

        total_value = total_value.quantize(CENT, rounding=ROUND_HALF_UP)
        averaged = (total_value / remaining).quantize(UNIT_COST_PLACES, rounding=ROUND_HALF_UP)

        return ProductValuation(
            product_id=product.pk,
            product_code=product.product_code,
            product_name=product.name,
            category_id=product.category_id,
            category_name=product.category.name,
            remaining_quantity=remaining,
            averaged_unit_value=averaged,
            total_value=total_value,
            policy_used=policy,
        )
