"""
Allocation engine.

Matches an outgoing quantity against the product's lots under the active
costing policy and works out the cost basis of the sale.

FIFO / LIFO:
    Walk the unconsumed lots in policy order, take min(remaining, needed)
    from each and accumulate consumed * unit_cost.

AVERAGE:
    weighted = sum(remaining_i * cost_i) / sum(remaining_i) over all
    unconsumed lots, total = weighted * quantity rounded half-up to cents.
    Lots are still depleted oldest first; only the cost differs.
"""

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Tuple

from django.db import transaction

from inventory.exceptions import InsufficientInventoryHistory
from inventory.models import CostingPolicy
from inventory.services.ledger import CENT, LotLedger, validate_quantity
from inventory.services.policy import DatabasePolicySwitch

logger = logging.getLogger(__name__)

UNIT_COST_PLACES = Decimal('0.0001')


@dataclass(frozen=True)
class LotConsumption:
    lot_id: int
    quantity: int
    lot_unit_cost: Decimal


@dataclass(frozen=True)
class AllocationResult:
    product_id: int
    quantity: int
    policy: CostingPolicy
    total_cost: Decimal
    unit_cost_for_sale: Decimal
    breakdown: Tuple[LotConsumption, ...] = field(default_factory=tuple)


class AllocationEngine:
    def __init__(self, policy_switch=None, ledger: Optional[LotLedger] = None):
        self.policy_switch = policy_switch or DatabasePolicySwitch()
        self.ledger = ledger or LotLedger()

    def allocate(self, product_id, quantity) -> AllocationResult:
        """
        Consume `quantity` units from the product's lots.

        The lots are locked for the whole walk and every decrement happens in
        one atomic block (a savepoint when called inside the sale
        transaction), so a failure leaves no lot touched.
        """
        quantity = validate_quantity(quantity)
        policy = self.policy_switch.get_policy()

        with transaction.atomic():
            lots = list(self.ledger.unconsumed_lots(product_id, policy, lock=True))
            result = self._plan(product_id, quantity, policy, lots)

            for consumption in result.breakdown:
                self.ledger.decrement_remaining(consumption.lot_id, consumption.quantity)

        logger.info(
            f"[ALLOCATION] Product: {product_id} | Quantity: {quantity} | "
            f"Policy: {policy.value} | Total Cost: {result.total_cost} | "
            f"Unit Cost: {result.unit_cost_for_sale} | "
            f"Lots: {', '.join(f'#{c.lot_id}x{c.quantity}' for c in result.breakdown)}"
        )
        return result

    def quote(self, product_id, quantity) -> AllocationResult:
        """Cost `quantity` units as allocate() would, without consuming anything."""
        quantity = validate_quantity(quantity)
        policy = self.policy_switch.get_policy()
        lots = list(self.ledger.unconsumed_lots(product_id, policy))
        return self._plan(product_id, quantity, policy, lots)

    def _plan(self, product_id, quantity, policy, lots) -> AllocationResult:
        available = sum(lot.remaining_quantity for lot in lots)
        if available < quantity:
            logger.error(
                f"[LEDGER DRIFT] Product {product_id}: ledger holds {available} units, "
                f"allocation needs {quantity}"
            )
            raise InsufficientInventoryHistory(product_id, quantity, available)

        breakdown = self._walk(lots, quantity)

        if policy is CostingPolicy.FIFO or policy is CostingPolicy.LIFO:
            total_cost = sum(
                (c.quantity * c.lot_unit_cost for c in breakdown), Decimal('0')
            ).quantize(CENT, rounding=ROUND_HALF_UP)
        elif policy is CostingPolicy.AVERAGE:
            weighted = weighted_unit_cost(lots)
            total_cost = (weighted * quantity).quantize(CENT, rounding=ROUND_HALF_UP)
        else:
            raise AssertionError(f"Unhandled costing policy {policy!r}")

        unit_cost = (total_cost / quantity).quantize(UNIT_COST_PLACES, rounding=ROUND_HALF_UP)

        return AllocationResult(
            product_id=product_id,
            quantity=quantity,
            policy=policy,
            total_cost=total_cost,
            unit_cost_for_sale=unit_cost,
            breakdown=tuple(breakdown),
        )

    @staticmethod
    def _walk(lots, quantity) -> List[LotConsumption]:
        needed = quantity
        consumed = []
        for lot in lots:
            if needed == 0:
                break
            take = min(lot.remaining_quantity, needed)
            consumed.append(LotConsumption(lot.pk, take, lot.unit_cost))
            needed -= take
        return consumed


def weighted_unit_cost(lots) -> Decimal:
    """sum(remaining * cost) / sum(remaining), unrounded. Zero when nothing remains."""
    total_quantity = 0
    total_value = Decimal('0')
    for lot in lots:
        total_quantity += lot.remaining_quantity
        total_value += lot.remaining_quantity * lot.unit_cost
    if total_quantity == 0:
        return Decimal('0')
    return total_value / total_quantity
