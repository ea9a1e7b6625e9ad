"""
Account database model.
Represents bank accounts and their balance rules.
"""

import enum
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, Enum as SQLEnum, Integer, Numeric, String

from app.core.exceptions import InsufficientFundsError, InvalidInputError
from app.database import Base

DEFAULT_CURRENCY = "EUR"


def utcnow() -> datetime:
    """Naive UTC timestamp, as stored by the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AccountType(str, enum.Enum):
    """Account products offered by the bank."""
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    PAYROLL = "PAYROLL"
    BUSINESS = "BUSINESS"
    STUDENT = "STUDENT"

    @property
    def label(self) -> str:
        return _ACCOUNT_TYPE_INFO[self][0]

    @property
    def detail(self) -> str:
        return _ACCOUNT_TYPE_INFO[self][1]

    @property
    def monthly_fee(self) -> Decimal:
        return _ACCOUNT_TYPE_INFO[self][2]

    @property
    def allows_overdraft(self) -> bool:
        return self in (AccountType.CHECKING, AccountType.BUSINESS)


# label, detail, monthly maintenance fee
_ACCOUNT_TYPE_INFO = {
    AccountType.CHECKING: (
        "Checking Account",
        "Account for everyday personal and commercial operations",
        Decimal("5.00"),
    ),
    AccountType.SAVINGS: (
        "Savings Account",
        "Personal savings account with returns",
        Decimal("2.00"),
    ),
    AccountType.PAYROLL: (
        "Payroll Account",
        "Account for receiving salary payments",
        Decimal("0.00"),
    ),
    AccountType.BUSINESS: (
        "Business Account",
        "Account for company commercial operations",
        Decimal("15.00"),
    ),
    AccountType.STUDENT: (
        "Student Account",
        "Special account for students with benefits",
        Decimal("0.00"),
    ),
}


class Account(Base):
    """
    Account table - stores bank account information.
    """
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    account_number = Column(String(20), unique=True, index=True, nullable=False)
    holder_name = Column(String(100), nullable=False)
    balance = Column(Numeric(precision=15, scale=2), nullable=False, default=Decimal("0.00"))
    account_type = Column(SQLEnum(AccountType), nullable=False)
    currency = Column(String(3), nullable=False, default=DEFAULT_CURRENCY)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    @classmethod
    def open(
        cls,
        account_number: str,
        holder_name: str,
        account_type: AccountType,
        balance: Optional[Decimal] = None,
        currency: Optional[str] = None,
    ) -> "Account":
        """
        Build a new, active account.
        Both timestamps are set here and never taken from the caller.
        """
        if not account_number or not account_number.strip():
            raise InvalidInputError("Account number is required")
        if not holder_name or not holder_name.strip():
            raise InvalidInputError("Holder name is required")
        if account_type is None:
            raise InvalidInputError("Account type is required")
        if balance is not None and balance < 0:
            raise InvalidInputError("Balance must not be negative")

        now = utcnow()
        return cls(
            account_number=account_number,
            holder_name=holder_name.strip(),
            balance=balance if balance is not None else Decimal("0.00"),
            account_type=account_type,
            currency=currency or DEFAULT_CURRENCY,
            created_at=now,
            updated_at=now,
            active=True,
        )

    def _touch(self):
        self.updated_at = utcnow()

    def rename_holder(self, holder_name: str):
        if not holder_name or not holder_name.strip():
            raise InvalidInputError("Holder name must not be blank")
        self.holder_name = holder_name.strip()
        self._touch()

    def set_balance(self, amount: Decimal):
        if amount is None or amount < 0:
            raise InvalidInputError("Balance must not be negative")
        self.balance = amount
        self._touch()

    def debit(self, amount: Decimal):
        if amount is None or amount <= 0:
            raise InvalidInputError("Debit amount must be positive")
        if self.balance < amount:
            raise InsufficientFundsError(self.balance, amount)
        self.balance = self.balance - amount
        self._touch()

    def credit(self, amount: Decimal):
        if amount is None or amount <= 0:
            raise InvalidInputError("Credit amount must be positive")
        self.balance = self.balance + amount
        self._touch()

    def activate(self):
        self.active = True
        self._touch()

    def deactivate(self):
        self.active = False
        self._touch()

    @property
    def account_type_label(self) -> str:
        return self.account_type.label

    @property
    def monthly_fee(self) -> Decimal:
        return self.account_type.monthly_fee

    @property
    def allows_overdraft(self) -> bool:
        return self.account_type.allows_overdraft

    def __repr__(self):
        return f"<Account(account_number={self.account_number}, holder={self.holder_name}, balance={self.balance})>"
