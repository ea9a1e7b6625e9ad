"""
Pydantic schemas for Account API requests and responses.
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from decimal import Decimal
from datetime import datetime
from typing import Dict, List, Optional

from app.core import validation
from app.models.account import AccountType


class AccountRequest(BaseModel):
    """Schema for creating or updating an account."""
    account_number: str = Field(..., description="Unique account number, 10-20 digits")
    holder_name: str = Field(..., description="Account holder name")
    balance: Optional[Decimal] = Field(default=None, description="Balance (default: 0.00)")
    account_type: AccountType = Field(..., description="Account type")
    currency: Optional[str] = Field(default=None, description="ISO 4217 currency code (default: EUR)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "account_number": "1234567890",
                "holder_name": "Juan Perez",
                "balance": 1000.00,
                "account_type": "CHECKING",
                "currency": "EUR"
            }
        }
    )

    @field_validator("account_number")
    @classmethod
    def check_account_number(cls, value: str) -> str:
        return validation.validate_account_number(value)

    @field_validator("holder_name")
    @classmethod
    def check_holder_name(cls, value: str) -> str:
        return validation.validate_holder_name(value)

    @field_validator("balance")
    @classmethod
    def check_balance(cls, value: Optional[Decimal]) -> Optional[Decimal]:
        return validation.validate_balance(value)

    @field_validator("currency")
    @classmethod
    def check_currency(cls, value: Optional[str]) -> Optional[str]:
        return validation.validate_currency(value)


class AccountResponse(BaseModel):
    """Schema for account response."""
    id: int
    account_number: str
    holder_name: str
    balance: Decimal
    account_type: AccountType
    account_type_label: str
    currency: str
    monthly_fee: Decimal
    active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AccountPage(BaseModel):
    """One page of accounts."""
    items: List[AccountResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int


class AccountStatistics(BaseModel):
    """Aggregate figures over all accounts."""
    total_accounts: int
    active_accounts: int
    inactive_accounts: int
    total_active_balance: Decimal
    average_balance: Decimal


class AccountTypeStatistics(BaseModel):
    """Aggregate figures for one account type (active accounts only)."""
    count: int
    total_balance: Decimal
    average_balance: Decimal
    label: str


AccountTypeStatisticsMap = Dict[AccountType, AccountTypeStatistics]
