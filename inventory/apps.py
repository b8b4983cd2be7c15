from django.apps import AppConfig


class InventoryConfig(AppConfig):
    """
    Configuration for the Inventory application.

    This app manages product stock and its cost layers:
    - Categories and Products
    - Inventory lots (one per stock receipt)
    - The active costing policy (FIFO / LIFO / AVERAGE)
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'inventory'
    verbose_name = 'Inventory Management'

    def ready(self):
        """
        Import signal handlers when the app is ready.

        Signals only log (audit trail, low stock alerts). All stock and lot
        mutations happen explicitly in inventory.services.
        """
        import inventory.signals  # noqa: F401
