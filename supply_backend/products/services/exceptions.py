# products/services/exceptions.py

"""
INVENTORY SERVICE ERRORS

Centralized domain errors for batch ledger, variant and stock-sync services.

Propagation:
- Validation errors (insufficient stock, not found) are typed failures the
  HTTP layer translates into 4xx responses.
- BatchExhaustionError is an integrity failure: logged loudly, never retried,
  and it rolls back the whole surrounding transaction.
"""


class InventoryServiceError(Exception):
    """Base exception for all inventory service failures."""


class InvalidQuantityError(InventoryServiceError):
    """Raised when a quantity is not a positive whole number."""


class InventoryNotFoundError(InventoryServiceError):
    """Raised when a product has no inventory record."""


class InsufficientStockError(InventoryServiceError):
    """Raised when the requested quantity exceeds available aggregate stock."""


class BatchExhaustionError(InventoryServiceError):
    """Raised when a FIFO walk runs out of batches after a passed availability check."""


class BatchNotFoundError(InventoryServiceError):
    """Raised when a targeted batch does not exist for the product."""


class BatchQuantityExceededError(InventoryServiceError):
    """Raised in strict mode when a targeted consumption exceeds the batch remainder."""


class VariantNotFoundError(InventoryServiceError):
    """Raised when a (size, color) cell does not exist for the product."""


class InsufficientVariantStockError(InventoryServiceError):
    """Raised when a (size, color) cell cannot satisfy the requested quantity."""


class UnsupportedReconciliationDirectionError(InventoryServiceError):
    """Raised when reconciliation is requested in a direction that cannot be applied."""
