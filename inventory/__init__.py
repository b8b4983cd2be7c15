"""
Inventory Management Application

Products, categories and the cost-layer ledger behind them.

MODELS:
- Category: groups products for reporting
- Product: current stock counter and current (latest) cost
- InventoryLot: one stock receipt at a fixed unit cost, consumed by sales
- CostingSetting / CostingPolicyChange: active costing policy and its history

BUSINESS LOGIC (inventory.services):
- LotLedger: records lots, lists unconsumed lots in policy order
- AllocationEngine: FIFO / LIFO / AVERAGE cost of an outgoing quantity
- ValuationCalculator: value of remaining stock per product / category
- StockService: product creation and restock (stock + lot in one transaction)

USAGE:
    from inventory.services import StockService, AllocationEngine

    product = StockService().create_product(
        product_code="CBL-001", name="USB-C Cable", category=cables,
        quantity=5, buying_price=Decimal("10.00"),
    )
    StockService().receive_stock(product.pk, 5, unit_cost=Decimal("12.00"))

    result = AllocationEngine().allocate(product.pk, 8)
    result.total_cost           # Decimal("86.00") under FIFO
"""

__version__ = '2.1.0'
