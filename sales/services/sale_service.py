"""
Sale recording.

This is the transactional boundary for a sale: the sale row, the lot
decrements made by the allocation engine and the product stock decrements
either all commit or all roll back.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from django.db import transaction
from django.db.models import Avg, Count, DecimalField, Sum, Value
from django.db.models.functions import Coalesce
from django.utils import timezone

from inventory.exceptions import CostingValidationError, InsufficientStock, ProductNotFound
from inventory.models import Product
from inventory.services import AllocationEngine
from inventory.services.ledger import CENT, validate_quantity, validate_unit_cost
from sales.models import Sale, SaleItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaleLine:
    product_id: int
    quantity: int
    unit_price: Optional[Decimal] = None


class SaleService:
    def __init__(self, engine: Optional[AllocationEngine] = None):
        self.engine = engine or AllocationEngine()

    def record_sale(self, seller, lines: Iterable[SaleLine], buyer_name='', sale_date=None) -> Sale:
        """
        Record a sale and its cost basis.

        Products are locked in id order so concurrent sales touching the same
        products always queue in the same order. If any line fails (stock,
        ledger drift, policy) nothing of the sale is kept.
        """
        lines = list(lines)
        if not lines:
            raise CostingValidationError("A sale needs at least one item")
        for line in lines:
            validate_quantity(line.quantity)
            if line.unit_price is not None:
                validate_unit_cost(line.unit_price, label='Unit price')

        with transaction.atomic():
            sale = Sale.objects.create(
                seller=seller,
                buyer_name=buyer_name or '',
                sale_date=sale_date or timezone.now(),
            )

            total_amount = Decimal('0.00')
            total_cost = Decimal('0.00')

            for line in sorted(lines, key=lambda l: l.product_id):
                try:
                    product = Product.objects.select_for_update().get(pk=line.product_id, is_active=True)
                except Product.DoesNotExist:
                    raise ProductNotFound(line.product_id)

                if product.quantity < line.quantity:
                    raise InsufficientStock(product.pk, line.quantity, product.quantity)

                allocation = self.engine.allocate(product.pk, line.quantity)

                unit_price = product.selling_price
                if line.unit_price is not None:
                    unit_price = validate_unit_cost(line.unit_price, label='Unit price')
                line_total = (unit_price * line.quantity).quantize(CENT, rounding=ROUND_HALF_UP)

                SaleItem.objects.create(
                    sale=sale,
                    product=product,
                    quantity=line.quantity,
                    unit_price=unit_price,
                    total_price=line_total,
                    cost_price=allocation.unit_cost_for_sale,
                    cost_total=allocation.total_cost,
                    costing_policy=allocation.policy.value,
                )

                old_quantity = product.quantity
                product.quantity = old_quantity - line.quantity
                product.save(update_fields=['quantity'])

                total_amount += line_total
                total_cost += allocation.total_cost

                logger.info(
                    f"[SALE ITEM] Sale #{sale.sale_id} | Product: {product.product_code} | "
                    f"Quantity: {line.quantity} | Stock: {old_quantity} → {product.quantity} | "
                    f"Price: {line_total} | Cost ({allocation.policy.value}): {allocation.total_cost}"
                )

            sale.total_amount = total_amount
            sale.total_cost = total_cost
            sale.save(update_fields=['total_amount', 'total_cost'])

        logger.info(
            f"[SALE RECORDED] Sale #{sale.sale_id} | Items: {len(lines)} | "
            f"Total: {total_amount} | Cost: {total_cost} | "
            f"Seller: {getattr(seller, 'username', None) or 'System'}"
        )
        return sale


def profit_summary(start=None, end=None, seller=None):
    """
    Revenue, cost and gross profit of recorded sales in [start, end],
    optionally for one seller only.

    Costs are the ones stored on each sale line, so a later policy switch
    does not change the figures.
    """
    items = SaleItem.objects.all()
    if start is not None:
        items = items.filter(sale__sale_date__gte=start)
    if end is not None:
        items = items.filter(sale__sale_date__lte=end)
    if seller is not None:
        items = items.filter(sale__seller=seller)

    zero = Value(Decimal('0.00'), output_field=DecimalField(max_digits=14, decimal_places=2))
    totals = items.aggregate(
        revenue=Coalesce(Sum('total_price'), zero),
        cost=Coalesce(Sum('cost_total'), zero),
        units=Sum('quantity'),
    )

    revenue = Decimal(totals['revenue']).quantize(CENT)
    cost = Decimal(totals['cost']).quantize(CENT)
    gross_profit = revenue - cost
    if revenue:
        margin = (gross_profit / revenue * 100).quantize(CENT, rounding=ROUND_HALF_UP)
    else:
        margin = Decimal('0.00')

    return {
        'total_revenue': revenue,
        'total_cost': cost,
        'gross_profit': gross_profit,
        'profit_margin': margin,
        'units_sold': totals['units'] or 0,
    }


def seller_performance(start=None, end=None):
    """
    Per-seller sales count, revenue, cost, gross profit and average sale
    value in [start, end], best revenue first. Sellers with no sales in the
    range are left out.
    """
    sales = Sale.objects.all()
    if start is not None:
        sales = sales.filter(sale_date__gte=start)
    if end is not None:
        sales = sales.filter(sale_date__lte=end)

    rows = (
        sales
        .values('seller_id', 'seller__username')
        .annotate(
            total_sales=Count('id'),
            revenue=Sum('total_amount'),
            cost=Sum('total_cost'),
            average=Avg('total_amount'),
        )
        .order_by('-revenue', 'seller_id')
    )

    performance = []
    for row in rows:
        revenue = Decimal(row['revenue']).quantize(CENT)
        cost = Decimal(row['cost']).quantize(CENT)
        performance.append({
            'seller_id': row['seller_id'],
            'seller_username': row['seller__username'] or 'System',
            'total_sales': row['total_sales'],
            'total_revenue': revenue,
            'total_cost': cost,
            'gross_profit': revenue - cost,
            'average_sale_value': Decimal(row['average']).quantize(CENT, rounding=ROUND_HALF_UP),
        })
    return performance
