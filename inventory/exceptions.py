"""
Typed failures raised by the inventory costing core.

Grouped by how a caller is expected to react:

- CostingValidationError: bad input, rejected before any mutation.
- ProductNotFound: the referenced product does not exist (or is inactive).
- CostingIntegrityError: the lot ledger and product stock disagree. Never
  auto-corrected; an operator has to reconcile.
- CostingConfigurationError: the costing policy setting is corrupt. Fail
  closed, never fall back to another policy.
"""


class CostingError(Exception):
    """Base class for every inventory costing failure."""

    code = 'costing_error'

    def __init__(self, message=None, **context):
        self.context = context
        super().__init__(message or self.default_message())

    def default_message(self):
        return self.__class__.__name__


# ============================================
# VALIDATION ERRORS
# ============================================

class CostingValidationError(CostingError):
    code = 'validation_error'


class InvalidQuantity(CostingValidationError):
    code = 'invalid_quantity'

    def __init__(self, quantity, message=None):
        self.quantity = quantity
        super().__init__(
            message or f"Quantity must be a positive integer, got {quantity!r}",
            quantity=quantity,
        )


class InvalidCost(CostingValidationError):
    code = 'invalid_cost'

    def __init__(self, unit_cost, message=None):
        self.unit_cost = unit_cost
        super().__init__(
            message or f"Unit cost must be a non-negative amount, got {unit_cost!r}",
            unit_cost=unit_cost,
        )


class InsufficientStock(CostingValidationError):
    """Requested more units than the product currently has on hand."""

    code = 'insufficient_stock'

    def __init__(self, product_id, requested, available):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}. "
            f"Available: {available}, Required: {requested}",
            product_id=product_id, requested=requested, available=available,
        )


class ProductNotFound(CostingError):
    code = 'product_not_found'

    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product not found or inactive: {product_id}", product_id=product_id)


# ============================================
# INTEGRITY ERRORS
# ============================================

class CostingIntegrityError(CostingError):
    code = 'integrity_error'


class InsufficientInventoryHistory(CostingIntegrityError):
    """
    The ledger holds fewer unconsumed units than the allocation needs.

    This means product stock and the lot ledger drifted apart somewhere.
    """

    code = 'insufficient_inventory_history'

    def __init__(self, product_id, requested, available):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient inventory to allocate for product {product_id}. "
            f"Missing: {requested - available} units "
            f"(requested {requested}, ledger holds {available})",
            product_id=product_id, requested=requested, available=available,
        )


class InsufficientLotQuantity(CostingIntegrityError):
    code = 'insufficient_lot_quantity'

    def __init__(self, lot_id, amount):
        self.lot_id = lot_id
        self.amount = amount
        super().__init__(
            f"Lot {lot_id} does not have {amount} units remaining",
            lot_id=lot_id, amount=amount,
        )


# ============================================
# CONFIGURATION ERRORS
# ============================================

class CostingConfigurationError(CostingError):
    code = 'configuration_error'


class UnknownPolicy(CostingConfigurationError):
    code = 'unknown_policy'

    def __init__(self, value):
        self.value = value
        super().__init__(
            f"Unknown costing policy {value!r}; expected one of FIFO, LIFO, AVERAGE",
            value=value,
        )
