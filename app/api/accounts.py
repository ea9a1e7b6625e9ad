"""
Account API endpoints.
Handles account CRUD, balance operations, searches and statistics.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from decimal import Decimal

from app.core.config import settings
from app.database import get_db
from app.models.account import AccountType
from app.schemas.account import (
    AccountRequest,
    AccountResponse,
    AccountPage,
    AccountStatistics,
    AccountTypeStatisticsMap,
)
from app.services.account_service import AccountService

router = APIRouter(prefix="/accounts", tags=["Accounts"])


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    """Dependency building the account service for the request's session."""
    return AccountService(db, default_currency=settings.DEFAULT_CURRENCY)


# ==================== CREATE / LIST ====================

@router.post("/", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    account_data: AccountRequest,
    service: AccountService = Depends(get_account_service)
):
    """
    Create a new account.

    - **account_number**: Unique account number (10-20 digits)
    - **holder_name**: Name of the account holder
    - **balance**: Opening balance (default: 0.00)
    - **account_type**: CHECKING, SAVINGS, PAYROLL, BUSINESS or STUDENT
    - **currency**: ISO 4217 code (default: EUR)
    """
    return service.create(account_data)


@router.get("/", response_model=AccountPage)
def list_accounts(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1),
    sort_by: str = "created_at",
    sort_dir: str = "desc",
    service: AccountService = Depends(get_account_service)
):
    """
    List all accounts with pagination.

    - **page**: Zero-based page number (default: 0)
    - **size**: Page size (default: 10)
    - **sort_by**: Field to sort by (default: created_at)
    - **sort_dir**: asc or desc (default: desc)
    """
    return service.list_accounts(page=page, size=size, sort_by=sort_by, sort_dir=sort_dir)


# ==================== QUERIES ====================

@router.get("/active", response_model=List[AccountResponse])
def list_active_accounts(service: AccountService = Depends(get_account_service)):
    """
    List active accounts.
    """
    return service.list_active()


@router.get("/statistics", response_model=AccountStatistics)
def get_statistics(service: AccountService = Depends(get_account_service)):
    """
    Account counts plus total and average balance of active accounts.
    """
    return service.statistics()


@router.get("/statistics/by-type", response_model=AccountTypeStatisticsMap)
def get_statistics_by_type(service: AccountService = Depends(get_account_service)):
    """
    Count, total and average balance per account type (active accounts).
    """
    return service.statistics_by_type()


@router.get("/search", response_model=List[AccountResponse])
def search_accounts(
    holder_name: Optional[str] = None,
    account_type: Optional[AccountType] = None,
    min_balance: Optional[Decimal] = Query(None, ge=0),
    active: Optional[bool] = None,
    service: AccountService = Depends(get_account_service)
):
    """
    Search accounts by several criteria. Omitted criteria are not applied.

    - **holder_name**: Part of the holder name (case-insensitive)
    - **account_type**: Exact account type
    - **min_balance**: Minimum balance (inclusive)
    - **active**: Active flag
    """
    return service.search_by_criteria(
        holder_name=holder_name,
        account_type=account_type,
        min_balance=min_balance,
        active=active,
    )


@router.get("/search/holder", response_model=List[AccountResponse])
def search_by_holder(
    holder_name: str = Query(..., min_length=1),
    service: AccountService = Depends(get_account_service)
):
    """
    Search accounts whose holder name contains the given text.
    """
    return service.search_by_holder(holder_name)


@router.get("/search/type", response_model=List[AccountResponse])
def search_by_type(
    account_type: AccountType,
    service: AccountService = Depends(get_account_service)
):
    """
    List accounts of one type.
    """
    return service.search_by_type(account_type)


@router.get("/exists/{account_number}", response_model=bool)
def account_number_exists(
    account_number: str,
    service: AccountService = Depends(get_account_service)
):
    """
    Check whether an account number is already in use.
    """
    return service.exists_by_number(account_number)


@router.get("/duplicate-holders", response_model=List[str])
def holders_with_duplicate_accounts(service: AccountService = Depends(get_account_service)):
    """
    Holder names that own more than one account.
    """
    return service.holders_with_duplicate_accounts()


@router.get("/number/{account_number}", response_model=AccountResponse)
def get_account_by_number(
    account_number: str,
    service: AccountService = Depends(get_account_service)
):
    """
    Get account details by account number.
    """
    return service.get_by_number(account_number)


@router.get("/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    service: AccountService = Depends(get_account_service)
):
    """
    Get account details by ID.
    """
    return service.get_by_id(account_id)


# ==================== MUTATIONS ====================

@router.put("/{account_id}", response_model=AccountResponse)
def update_account(
    account_id: int,
    account_data: AccountRequest,
    service: AccountService = Depends(get_account_service)
):
    """
    Update an account.

    Only **holder_name** and **balance** are applied. Account number and
    account type cannot be changed.
    """
    return service.update(account_id, account_data)


@router.patch("/{account_id}/balance", response_model=AccountResponse)
def set_balance(
    account_id: int,
    new_balance: Decimal,
    service: AccountService = Depends(get_account_service)
):
    """
    Set the balance of an account directly.
    """
    return service.set_balance(account_id, new_balance)


@router.post("/{account_id}/debit", response_model=AccountResponse)
def debit_account(
    account_id: int,
    amount: Decimal,
    service: AccountService = Depends(get_account_service)
):
    """
    Withdraw an amount from an account.

    - **amount**: Amount to debit (must be positive and not exceed the balance)
    """
    return service.debit(account_id, amount)


@router.post("/{account_id}/credit", response_model=AccountResponse)
def credit_account(
    account_id: int,
    amount: Decimal,
    service: AccountService = Depends(get_account_service)
):
    """
    Deposit an amount into an account.

    - **amount**: Amount to credit (must be positive)
    """
    return service.credit(account_id, amount)


@router.patch("/{account_id}/activate", response_model=AccountResponse)
def activate_account(
    account_id: int,
    service: AccountService = Depends(get_account_service)
):
    """
    Activate an account.
    """
    return service.activate(account_id)


@router.patch("/{account_id}/deactivate", response_model=AccountResponse)
def deactivate_account(
    account_id: int,
    service: AccountService = Depends(get_account_service)
):
    """
    Deactivate an account.
    """
    return service.deactivate(account_id)


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: int,
    service: AccountService = Depends(get_account_service)
):
    """
    Delete an account permanently.
    """
    service.delete(account_id)
    return None
