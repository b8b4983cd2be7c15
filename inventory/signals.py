from django.db.models.signals import post_save, post_delete
from django.dispatch import receiver
from .models import InventoryLot, Product
import logging

logger = logging.getLogger(__name__)


# ============================================
# LOW STOCK ALERTS
# ============================================

@receiver(post_save, sender=Product)
def check_low_stock_alert(sender, instance, created, **kwargs):
    """Log when a product reaches low stock or runs out."""
    if created:
        return

    if instance.status == 'lowstock':
        logger.warning(
            f"LOW STOCK ALERT: {instance.name} ({instance.product_code}) "
            f"has only {instance.quantity} units remaining"
        )
    elif instance.status == 'outofstock':
        logger.warning(
            f"OUT OF STOCK: {instance.name} ({instance.product_code}) "
            f"is out of stock"
        )


# ============================================
# AUDIT TRAIL SIGNALS
# ============================================

@receiver(post_save, sender=InventoryLot)
def create_audit_trail(sender, instance, created, **kwargs):
    """
    Write an audit line for every new lot.

    Remaining-quantity decrements use queryset.update() and do not pass
    through here.
    """
    if created:
        audit_message = (
            f"[STOCK RECEIPT] "
            f"Lot: #{instance.pk} | "
            f"Product: {instance.product_id} | "
            f"Quantity: {instance.quantity_received} | "
            f"Unit Cost: {instance.unit_cost} | "
            f"User: {instance.received_by.username if instance.received_by else 'System'} | "
            f"Received: {instance.received_at}"
        )
        logger.info(audit_message)


@receiver(post_delete, sender=InventoryLot)
def log_lot_deletion(sender, instance, **kwargs):
    """
    Lots are never deleted in normal operation; log it loudly if one is.
    """
    logger.error(
        f"[AUDIT ALERT] Inventory lot DELETED: "
        f"ID: {instance.pk} | "
        f"Product: {instance.product_id} | "
        f"Received: {instance.quantity_received} | "
        f"Remaining: {instance.remaining_quantity} | "
        f"This should not happen in normal operations!"
    )
