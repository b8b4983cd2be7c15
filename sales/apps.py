from django.apps import AppConfig


class SalesConfig(AppConfig):
    """
    Configuration for the Sales application.

    Records sales and attaches to every line the cost basis computed by the
    inventory allocation engine.
    """

    default_auto_field = 'django.db.models.BigAutoField'
    name = 'sales'
    verbose_name = 'Sales'

    def ready(self):
        import sales.signals  # noqa: F401
