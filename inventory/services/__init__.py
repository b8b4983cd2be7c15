from .allocation import AllocationEngine, AllocationResult, LotConsumption
from .ledger import LotLedger
from .policy import DatabasePolicySwitch, StaticPolicySwitch
from .stock_service import StockDrift, StockService
from .valuation import CategoryValuation, ProductValuation, ValuationCalculator

__all__ = [
    'AllocationEngine',
    'AllocationResult',
    'CategoryValuation',
    'DatabasePolicySwitch',
    'LotConsumption',
    'LotLedger',
    'ProductValuation',
    'StaticPolicySwitch',
    'StockDrift',
    'StockService',
    'ValuationCalculator',
]
