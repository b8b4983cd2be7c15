import uuid
from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from inventory.models import CostingPolicy, Product


def generate_sale_id():
    return f"SALE-{uuid.uuid4().hex[:12].upper()}"


class Sale(models.Model):
    """
    One checkout transaction.

    total_amount and total_cost are sums over the items, written once when
    the sale is recorded.
    """

    sale_id = models.CharField(max_length=30, unique=True, default=generate_sale_id, editable=False)
    seller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sales',
    )
    buyer_name = models.CharField(max_length=200, blank=True)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_cost = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    sale_date = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-sale_date', '-id']
        indexes = [
            models.Index(fields=['sale_date', 'seller'], name='sales_date_seller_idx'),
        ]

    def __str__(self):
        return f"Sale #{self.sale_id}"

    @property
    def gross_profit(self):
        return self.total_amount - self.total_cost


class SaleItem(models.Model):
    """
    A sale line.

    cost_price / cost_total are the cost basis from the allocation engine
    under the policy active at sale time; they never change afterwards.
    """

    sale = models.ForeignKey(Sale, on_delete=models.CASCADE, related_name='items')
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='sale_items')
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=14, decimal_places=2)
    cost_price = models.DecimalField(max_digits=14, decimal_places=4)
    cost_total = models.DecimalField(max_digits=14, decimal_places=2)
    costing_policy = models.CharField(max_length=10, choices=CostingPolicy.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['id']
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name='sales_item_quantity_positive'),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.product.product_code} (Sale #{self.sale.sale_id})"

    @property
    def profit(self):
        return self.total_price - self.cost_total
