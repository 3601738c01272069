# accounting/services/exceptions.py

"""
ACCOUNTING SERVICE ERRORS

Centralized domain errors for accounting services.
"""


class AccountingServiceError(ValueError):
    """Base exception for all accounting service failures."""


class InvalidLedgerEntryError(AccountingServiceError):
    """Raised when an entry has both sides nonzero, a negative side, or no entity reference."""


class BalanceServiceError(AccountingServiceError):
    """Raised when a balance or order aggregation cannot be computed."""
