# accounting/services/exceptions.py

"""
ACCOUNTING SERVICE ERRORS

Centralized domain errors for ledger and balance services.
"""


class AccountingServiceError(Exception):
    """Base exception for all accounting service failures."""


class CounterpartyNotFound(AccountingServiceError):
    """Raised when a ledger is requested for a customer/supplier that does not exist."""


class LedgerWindowError(AccountingServiceError):
    """Raised when a ledger date window is inverted or unparsable."""
