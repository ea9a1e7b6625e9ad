"""
Account service.
Business rules for account creation, queries, balance operations and statistics.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core import validation
from app.core.exceptions import (
    AccountNotFoundError,
    DuplicateAccountError,
    InsufficientFundsError,
    InternalFailureError,
    InvalidInputError,
)
from app.models.account import Account, AccountType, DEFAULT_CURRENCY
from app.repositories.account_repository import AccountRepository
from app.schemas.account import (
    AccountPage,
    AccountRequest,
    AccountResponse,
    AccountStatistics,
    AccountTypeStatistics,
)

logger = structlog.get_logger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Sortable fields exposed to callers
SORT_FIELDS = {
    "id": Account.id,
    "account_number": Account.account_number,
    "holder_name": Account.holder_name,
    "balance": Account.balance,
    "account_type": Account.account_type,
    "created_at": Account.created_at,
    "updated_at": Account.updated_at,
}
SORT_DIRECTIONS = ("asc", "desc")


def _average(total: Decimal, count: int) -> Decimal:
    if count == 0:
        return ZERO
    return (total / count).quantize(CENT, rounding=ROUND_HALF_UP)


class AccountService:
    """
    Orchestrates validation, duplicate checks, persistence and balance
    operations for accounts. One instance per database session.
    """

    def __init__(self, db: Session, default_currency: str = DEFAULT_CURRENCY):
        self.db = db
        self.repository = AccountRepository(db)
        self.default_currency = default_currency

    # ==================== HELPERS ====================

    def _get_or_raise(self, account_id: int, for_update: bool = False) -> Account:
        if for_update:
            account = self.repository.get_for_update(account_id)
        else:
            account = self.repository.get(account_id)

        if not account:
            logger.warning("account_not_found", account_id=account_id)
            raise AccountNotFoundError.by_id(account_id)
        return account

    def _check_money_digits(self, field: str, label: str, value: Decimal, account_id: int):
        """Reject amounts the balance column would round."""
        if not validation.fits_money_digits(value):
            logger.warning("account_amount_too_precise", account_id=account_id, field=field, value=str(value))
            message = validation.money_digits_message(label)
            raise InvalidInputError(message, field_errors={field: message})

    def _commit(self, operation: str, account: Optional[Account] = None):
        """Commit the unit of work; persistence errors become InternalFailureError."""
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("account_write_failed", operation=operation, error=str(e))
            raise InternalFailureError(f"Internal error while trying to {operation}") from e

        if account is not None:
            self.db.refresh(account)

    # ==================== CREATE ====================

    def create(self, payload: AccountRequest) -> Account:
        """
        Create a new account.

        Fails with InvalidInputError when the payload lacks an account number,
        holder name or type, and with DuplicateAccountError when the account
        number is taken.
        """
        if not validation.is_structurally_valid(payload):
            logger.warning("account_create_invalid_payload")
            raise InvalidInputError("The provided data is not valid")

        logger.info("account_create_started", holder_name=payload.holder_name)

        if self.repository.exists_by_number(payload.account_number):
            logger.warning("account_create_duplicate", account_number=payload.account_number)
            raise DuplicateAccountError(payload.account_number)

        account = Account.open(
            account_number=payload.account_number,
            holder_name=payload.holder_name,
            account_type=payload.account_type,
            balance=payload.balance,
            currency=payload.currency or self.default_currency,
        )
        self.repository.add(account)

        try:
            self.db.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent create with the same number
            self.db.rollback()
            logger.warning("account_create_duplicate", account_number=payload.account_number)
            raise DuplicateAccountError(payload.account_number) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("account_write_failed", operation="create", error=str(e))
            raise InternalFailureError("Internal error while trying to create the account") from e

        self.db.refresh(account)
        logger.info("account_created", account_id=account.id, holder_name=account.holder_name)
        return account

    # ==================== READ ====================

    def get_by_id(self, account_id: int) -> Account:
        logger.debug("account_lookup", account_id=account_id)
        return self._get_or_raise(account_id)

    def get_by_number(self, account_number: str) -> Account:
        logger.debug("account_lookup", account_number=account_number)
        account = self.repository.get_by_number(account_number)
        if not account:
            logger.warning("account_not_found", account_number=account_number)
            raise AccountNotFoundError.by_number(account_number)
        return account

    def list_accounts(
        self,
        page: int = 0,
        size: int = 10,
        sort_by: str = "created_at",
        sort_dir: str = "desc",
    ) -> AccountPage:
        """
        List accounts one page at a time.

        - **page**: zero-based page number
        - **size**: page size
        - **sort_by**: one of SORT_FIELDS (default: created_at)
        - **sort_dir**: asc or desc (default: desc)
        """
        if page < 0 or size < 1:
            raise InvalidInputError("Page must be >= 0 and size must be >= 1")
        if sort_by not in SORT_FIELDS:
            raise InvalidInputError(
                f"Cannot sort by '{sort_by}'",
                field_errors={"sort_by": f"Must be one of: {', '.join(SORT_FIELDS)}"},
            )
        direction = sort_dir.lower()
        if direction not in SORT_DIRECTIONS:
            raise InvalidInputError(
                f"Unknown sort direction '{sort_dir}'",
                field_errors={"sort_dir": "Must be 'asc' or 'desc'"},
            )

        column = SORT_FIELDS[sort_by]
        order_by = column.asc() if direction == "asc" else column.desc()

        total = self.repository.count()
        accounts = self.repository.page(offset=page * size, limit=size, order_by=order_by)

        logger.debug("accounts_listed", page=page, size=size, returned=len(accounts), total=total)

        return AccountPage(
            items=[AccountResponse.model_validate(account) for account in accounts],
            page=page,
            size=size,
            total_elements=total,
            total_pages=math.ceil(total / size),
        )

    def search_by_holder(self, holder_name: str) -> List[Account]:
        accounts = self.repository.search_by_holder(holder_name)
        logger.debug("accounts_search_holder", holder_name=holder_name, found=len(accounts))
        return accounts

    def search_by_type(self, account_type: AccountType) -> List[Account]:
        accounts = self.repository.find_by_type(account_type)
        logger.debug("accounts_search_type", account_type=account_type.value, found=len(accounts))
        return accounts

    def list_active(self) -> List[Account]:
        return self.repository.find_active()

    def search_by_criteria(
        self,
        holder_name: Optional[str] = None,
        account_type: Optional[AccountType] = None,
        min_balance: Optional[Decimal] = None,
        active: Optional[bool] = None,
    ) -> List[Account]:
        """Every criterion given narrows the result; omitted ones match anything."""
        accounts = self.repository.find_by_criteria(
            holder_name=holder_name,
            account_type=account_type,
            min_balance=min_balance,
            active=active,
        )
        logger.debug(
            "accounts_search_criteria",
            holder_name=holder_name,
            account_type=account_type.value if account_type else None,
            min_balance=str(min_balance) if min_balance is not None else None,
            active=active,
            found=len(accounts),
        )
        return accounts

    def exists_by_number(self, account_number: str) -> bool:
        return self.repository.exists_by_number(account_number)

    def holders_with_duplicate_accounts(self) -> List[str]:
        holders = self.repository.duplicate_holder_names()
        logger.debug("duplicate_holders_found", count=len(holders))
        return holders

    # ==================== UPDATE ====================

    def update(self, account_id: int, payload: AccountRequest) -> Account:
        """
        Update the mutable fields of an account.

        Only holder_name and balance are taken from the payload; account
        number, account type and creation date never change.
        """
        logger.info("account_update_started", account_id=account_id)
        account = self._get_or_raise(account_id, for_update=True)

        if payload.holder_name is not None:
            account.rename_holder(payload.holder_name)
        if payload.balance is not None:
            account.set_balance(payload.balance)

        self._commit("update the account", account)
        logger.info("account_updated", account_id=account_id)
        return account

    def set_balance(self, account_id: int, new_balance: Optional[Decimal]) -> Account:
        if not validation.is_valid_balance_amount(new_balance):
            logger.warning("account_balance_invalid", account_id=account_id, new_balance=str(new_balance))
            raise InvalidInputError("Balance must not be negative")
        self._check_money_digits("new_balance", "Balance", new_balance, account_id)

        account = self._get_or_raise(account_id, for_update=True)
        previous = account.balance
        account.set_balance(new_balance)
        self._commit("update the balance", account)

        logger.info(
            "account_balance_set",
            account_id=account_id,
            previous_balance=str(previous),
            balance=str(account.balance),
        )
        return account

    def debit(self, account_id: int, amount: Optional[Decimal]) -> Account:
        """
        Withdraw an amount. Fails with InsufficientFundsError when the
        amount exceeds the balance; the balance is left untouched.
        """
        if not validation.is_positive_amount(amount):
            logger.warning("account_debit_invalid_amount", account_id=account_id, amount=str(amount))
            raise InvalidInputError("Debit amount must be positive")
        self._check_money_digits("amount", "Amount", amount, account_id)

        account = self._get_or_raise(account_id, for_update=True)
        previous = account.balance
        if previous < amount:
            # Release the row lock before failing
            self.db.rollback()
            logger.warning(
                "account_debit_insufficient_funds",
                account_id=account_id,
                balance=str(previous),
                amount=str(amount),
            )
            raise InsufficientFundsError(previous, amount)

        account.debit(amount)
        self._commit("debit the account", account)
        logger.info(
            "account_debited",
            account_id=account_id,
            previous_balance=str(previous),
            amount=str(amount),
            balance=str(account.balance),
        )
        return account

    def credit(self, account_id: int, amount: Optional[Decimal]) -> Account:
        if not validation.is_positive_amount(amount):
            logger.warning("account_credit_invalid_amount", account_id=account_id, amount=str(amount))
            raise InvalidInputError("Credit amount must be positive")
        self._check_money_digits("amount", "Amount", amount, account_id)

        account = self._get_or_raise(account_id, for_update=True)
        previous = account.balance
        account.credit(amount)
        self._commit("credit the account", account)

        logger.info(
            "account_credited",
            account_id=account_id,
            previous_balance=str(previous),
            amount=str(amount),
            balance=str(account.balance),
        )
        return account

    def activate(self, account_id: int) -> Account:
        account = self._get_or_raise(account_id, for_update=True)
        account.activate()
        self._commit("activate the account", account)
        logger.info("account_activated", account_id=account_id)
        return account

    def deactivate(self, account_id: int) -> Account:
        account = self._get_or_raise(account_id, for_update=True)
        account.deactivate()
        self._commit("deactivate the account", account)
        logger.info("account_deactivated", account_id=account_id)
        return account

    # ==================== DELETE ====================

    def delete(self, account_id: int):
        account = self._get_or_raise(account_id, for_update=True)
        self.repository.delete(account)
        self._commit("delete the account")
        logger.info("account_deleted", account_id=account_id)

    # ==================== STATISTICS ====================

    def statistics(self) -> AccountStatistics:
        """
        Totals over all accounts. Balance figures cover active accounts only.
        """
        total = self.repository.count()
        active = self.repository.count_active()
        total_balance = self.repository.total_active_balance()

        logger.debug("account_statistics", total_accounts=total, active_accounts=active)

        return AccountStatistics(
            total_accounts=total,
            active_accounts=active,
            inactive_accounts=total - active,
            total_active_balance=total_balance.quantize(CENT),
            average_balance=_average(total_balance, active),
        )

    def statistics_by_type(self) -> Dict[AccountType, AccountTypeStatistics]:
        """
        Count and balance figures per account type, over active accounts.
        Types with no active accounts are reported with zeros.
        """
        totals = {
            account_type: (count, total)
            for account_type, count, total in self.repository.active_totals_by_type()
        }

        statistics = {}
        for account_type in AccountType:
            count, total = totals.get(account_type, (0, ZERO))
            statistics[account_type] = AccountTypeStatistics(
                count=count,
                total_balance=total.quantize(CENT),
                average_balance=_average(total, count),
                label=account_type.label,
            )

        logger.debug("account_statistics_by_type", types_with_accounts=len(totals))
        return statistics
