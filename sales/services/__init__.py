from .sale_service import SaleLine, SaleService, profit_summary, seller_performance

__all__ = ['SaleLine', 'SaleService', 'profit_summary', 'seller_performance']
