from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from .exceptions import UnknownPolicy


# ============================================
# COSTING POLICY
# ============================================

class CostingPolicy(models.TextChoices):
    """Closed set of costing policies. Anything else is a configuration error."""

    FIFO = 'FIFO', 'FIFO (First In, First Out)'
    LIFO = 'LIFO', 'LIFO (Last In, First Out)'
    AVERAGE = 'AVERAGE', 'Weighted Average'

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise UnknownPolicy(value)


# ============================================
# CATEGORY
# ============================================

class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name_plural = 'categories'

    def __str__(self):
        return self.name


# ============================================
# PRODUCT
# ============================================

class Product(models.Model):
    """
    A sellable product.

    `quantity` is the current stock and must always equal the sum of
    `remaining_quantity` over the product's lots. `buying_price` is the most
    recently recorded cost; it prices new lots but never a costed sale.
    """

    STATUS_CHOICES = [
        ('available', 'Available'),
        ('lowstock', 'Low Stock'),
        ('outofstock', 'Out of Stock'),
    ]

    product_code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=200)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='products')
    quantity = models.IntegerField(default=0)
    buying_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    selling_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='outofstock')
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='products',
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gte=0),
                name='inventory_product_quantity_non_negative',
            ),
        ]

    def __str__(self):
        return f"{self.product_code} - {self.name}"

    def _update_status(self):
        threshold = settings.INVENTORY_CONFIG.get('LOW_STOCK_THRESHOLD', 5)
        if self.quantity <= 0:
            self.status = 'outofstock'
        elif self.quantity <= threshold:
            self.status = 'lowstock'
        else:
            self.status = 'available'

    def save(self, *args, **kwargs):
        self._update_status()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'quantity' in update_fields:
            kwargs['update_fields'] = set(update_fields) | {'status', 'updated_at'}
        super().save(*args, **kwargs)

    @property
    def profit_margin(self):
        return (self.selling_price or Decimal('0')) - (self.buying_price or Decimal('0'))


# ============================================
# INVENTORY LOT (cost layer)
# ============================================

class InventoryLot(models.Model):
    """
    One receipt of stock at a fixed unit cost.

    Only `remaining_quantity` ever changes after creation, and only downward.
    Lots are kept forever for audit, even once fully consumed.
    """

    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name='lots')
    quantity_received = models.PositiveIntegerField()
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2)
    remaining_quantity = models.PositiveIntegerField()
    received_at = models.DateTimeField(default=timezone.now)
    received_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='received_lots',
    )
    note = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['received_at', 'id']
        indexes = [
            models.Index(fields=['product', 'received_at'], name='inv_lot_product_received_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity_received__gt=0),
                name='inventory_lot_quantity_positive',
            ),
            models.CheckConstraint(
                condition=Q(unit_cost__gte=0),
                name='inventory_lot_cost_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(remaining_quantity__gte=0) & Q(remaining_quantity__lte=F('quantity_received')),
                name='inventory_lot_remaining_within_received',
            ),
        ]

    def __str__(self):
        return (
            f"Lot #{self.pk} {self.product.product_code}: "
            f"{self.remaining_quantity}/{self.quantity_received} @ {self.unit_cost}"
        )

    @property
    def consumed_quantity(self):
        return self.quantity_received - self.remaining_quantity

    @property
    def is_depleted(self):
        return self.remaining_quantity == 0

    @property
    def remaining_value(self):
        return self.remaining_quantity * self.unit_cost


# ============================================
# COSTING POLICY SETTING
# ============================================

class CostingSetting(models.Model):
    """Singleton row (pk=1) holding the active costing policy."""

    SINGLETON_PK = 1

    policy = models.CharField(max_length=10, choices=CostingPolicy.choices)
    updated_at = models.DateTimeField(auto_now=True)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    class Meta:
        verbose_name = 'costing setting'

    def __str__(self):
        return f"Costing policy: {self.policy}"


class CostingPolicyChange(models.Model):
    previous_policy = models.CharField(max_length=10, blank=True)
    new_policy = models.CharField(max_length=10, choices=CostingPolicy.choices)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    changed_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-changed_at', '-id']

    def __str__(self):
        return f"{self.previous_policy or '-'} -> {self.new_policy} at {self.changed_at}"
