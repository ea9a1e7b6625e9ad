"""
Domain exceptions for the banking service.
Each exception carries a stable error kind and the HTTP status it maps to.
"""

import enum
from decimal import Decimal
from typing import Dict, Optional


class ErrorKind(str, enum.Enum):
    """Stable, machine-readable error codes."""
    INVALID_INPUT = "INVALID_INPUT"
    DUPLICATE_ACCOUNT = "DUPLICATE_ACCOUNT"
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    INTERNAL_FAILURE = "INTERNAL_FAILURE"


class BankingError(Exception):
    """Base exception for all business-rule failures."""

    kind: ErrorKind = ErrorKind.INTERNAL_FAILURE
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def details(self) -> Optional[dict]:
        """Extra structured data for the caller, if any."""
        return None


class InvalidInputError(BankingError):
    """Raised when request data is malformed or semantically illegal."""

    kind = ErrorKind.INVALID_INPUT
    status_code = 400

    def __init__(self, message: str, field_errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.field_errors = field_errors


class DuplicateAccountError(BankingError):
    """Raised when an account number is already taken."""

    kind = ErrorKind.DUPLICATE_ACCOUNT
    status_code = 409

    def __init__(self, account_number: str):
        super().__init__(f"An account with number {account_number} already exists")
        self.account_number = account_number

    @property
    def details(self) -> dict:
        return {"account_number": self.account_number}


class AccountNotFoundError(BankingError):
    """Raised when a referenced account does not exist."""

    kind = ErrorKind.NOT_FOUND
    status_code = 404

    @classmethod
    def by_id(cls, account_id: int) -> "AccountNotFoundError":
        return cls(f"Account not found with id: {account_id}")

    @classmethod
    def by_number(cls, account_number: str) -> "AccountNotFoundError":
        return cls(f"Account not found with number: {account_number}")


class InsufficientFundsError(BankingError):
    """Raised when a debit exceeds the available balance."""

    kind = ErrorKind.INSUFFICIENT_FUNDS
    status_code = 400

    def __init__(self, balance: Decimal, amount: Decimal):
        super().__init__(
            f"Insufficient funds. Balance: {balance:.2f}, Required: {amount:.2f}"
        )
        self.balance = balance
        self.amount = amount

    @property
    def details(self) -> dict:
        return {
            "balance": str(self.balance),
            "requested_amount": str(self.amount),
        }


class InternalFailureError(BankingError):
    """Raised for unexpected failures, e.g. a persistence error."""

    kind = ErrorKind.INTERNAL_FAILURE
    status_code = 500
