# purchases/services/exceptions.py

"""
Purchases domain errors.

All subclass ValueError so API views can map them to HTTP 400 the same way
(409 for confirmation conflicts is decided in the view).
"""


class PurchasesServiceError(ValueError):
    pass


class DispatchOrderNotFoundError(PurchasesServiceError):
    pass


class DispatchOrderConfirmationError(PurchasesServiceError):
    """
    Raised when confirmation cannot complete.
    `failures` lists per-line problems: [{"line_number", "product_code", "error"}].
    """

    def __init__(self, message: str, *, failures: list | None = None):
        super().__init__(message)
        self.failures = failures or []


class SupplierReturnError(PurchasesServiceError):
    pass


class PaymentDistributionError(PurchasesServiceError):
    pass


class CreditApplicationError(PurchasesServiceError):
    pass
