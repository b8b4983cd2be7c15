from django.db.models.signals import post_save, pre_delete
from django.dispatch import receiver
import logging

from sales.models import Sale, SaleItem

logger = logging.getLogger(__name__)


# ============================================
# SALE ITEM MONITOR
# ============================================

@receiver(post_save, sender=SaleItem)
def log_sale_item(sender, instance, created, **kwargs):
    """
    Audit each sold line with its cost basis.
    Stock and lot updates are done by SaleService, not here.
    """
    if not created:
        return

    sale = instance.sale
    logger.info(
        f"[SALE MONITOR] Sale #{sale.sale_id} | "
        f"Product: {instance.product.product_code} ({instance.product.name}) | "
        f"Quantity Sold: {instance.quantity} | "
        f"Buyer: {sale.buyer_name or 'Walk-in'} | "
        f"Total: {instance.total_price} | "
        f"Cost ({instance.costing_policy}): {instance.cost_total}"
    )


# ============================================
# SALE DELETION ALERT
# ============================================

@receiver(pre_delete, sender=Sale)
def alert_on_sale_delete(sender, instance, **kwargs):
    """
    Sales are permanent. A delete means someone bypassed the API/admin,
    and the lots consumed by this sale are NOT restored.
    """
    logger.error(
        f"[AUDIT ALERT] Sale #{instance.sale_id} deleted | "
        f"Total: {instance.total_amount} | Cost: {instance.total_cost} | "
        f"Consumed lots are not restored"
    )
