"""
Service tests for the Banking Account Service.
Exercise AccountService directly against an in-memory database.
"""

import pytest
from decimal import Decimal
from unittest.mock import patch
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.exceptions import (
    AccountNotFoundError,
    DuplicateAccountError,
    InsufficientFundsError,
    InternalFailureError,
    InvalidInputError,
)
from app.database import Base
from app.models.account import Account, AccountType
from app.schemas.account import AccountRequest
from app.services.account_service import AccountService

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    """Fresh schema and session per test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def service(db):
    return AccountService(db)


def make_request(account_number="1234567890", holder_name="Juan Perez",
                 balance="1000.00", account_type=AccountType.CHECKING, currency="EUR"):
    return AccountRequest(
        account_number=account_number,
        holder_name=holder_name,
        balance=Decimal(balance) if balance is not None else None,
        account_type=account_type,
        currency=currency
    )


# ==================== CREATE TESTS ====================

def test_create_then_get_returns_same_record(service):
    created = service.create(make_request())

    fetched = service.get_by_id(created.id)
    assert fetched.account_number == "1234567890"
    assert fetched.holder_name == "Juan Perez"
    assert fetched.balance == Decimal("1000.00")
    assert fetched.account_type == AccountType.CHECKING
    assert fetched.currency == "EUR"
    assert fetched.active is True
    assert fetched.created_at == fetched.updated_at


def test_create_uses_default_currency(db):
    service = AccountService(db, default_currency="USD")
    created = service.create(make_request(currency=None, balance=None))
    assert created.currency == "USD"
    assert created.balance == Decimal("0.00")


def test_create_structurally_invalid_payload(service):
    payload = AccountRequest.model_construct(
        account_number="1234567890",
        holder_name="   ",
        account_type=AccountType.SAVINGS
    )
    with pytest.raises(InvalidInputError) as exc_info:
        service.create(payload)
    assert exc_info.value.field_errors is None


def test_create_without_account_type_is_invalid(service):
    payload = AccountRequest.model_construct(
        account_number="1234567890",
        holder_name="Juan Perez",
        account_type=None
    )
    with pytest.raises(InvalidInputError):
        service.create(payload)


def test_create_duplicate_number(service):
    service.create(make_request())

    with pytest.raises(DuplicateAccountError) as exc_info:
        service.create(make_request(holder_name="Otro Titular", account_type=AccountType.SAVINGS))
    assert exc_info.value.account_number == "1234567890"


def test_create_duplicate_detected_at_commit(service):
    service.create(make_request())

    # Simulate a concurrent insert slipping past the existence check
    with patch.object(service.repository, "exists_by_number", return_value=False):
        with pytest.raises(DuplicateAccountError):
            service.create(make_request(holder_name="Otro Titular"))


def test_create_persistence_failure_is_internal(service, db):
    with patch.object(db, "commit", side_effect=OperationalError("INSERT", {}, Exception("disk full"))):
        with pytest.raises(InternalFailureError) as exc_info:
            service.create(make_request())
    assert "disk full" not in exc_info.value.message


# ==================== READ TESTS ====================

def test_get_missing_account(service):
    with pytest.raises(AccountNotFoundError):
        service.get_by_id(1)
    with pytest.raises(AccountNotFoundError):
        service.get_by_number("1234567890")


def test_list_defaults_to_newest_first(service, db):
    first = service.create(make_request(account_number="1000000001"))
    second = service.create(make_request(account_number="1000000002"))
    # Make the ordering independent of clock resolution
    first.created_at = second.created_at.replace(year=second.created_at.year - 1)
    db.commit()

    page = service.list_accounts()
    assert [a.account_number for a in page.items] == ["1000000002", "1000000001"]
    assert page.total_pages == 1


@pytest.mark.parametrize("kwargs", [
    {"page": -1},
    {"size": 0},
    {"sort_by": "secret"},
    {"sort_dir": "sideways"},
])
def test_list_rejects_bad_paging(service, kwargs):
    with pytest.raises(InvalidInputError):
        service.list_accounts(**kwargs)


def test_search_by_criteria_omitted_criteria_match_everything(service):
    service.create(make_request(account_number="1000000001", account_type=AccountType.SAVINGS))
    service.create(make_request(account_number="1000000002", balance="10.00"))

    assert len(service.search_by_criteria()) == 2
    assert len(service.search_by_criteria(account_type=AccountType.SAVINGS)) == 1
    assert len(service.search_by_criteria(min_balance=Decimal("1000.00"))) == 1
    assert len(service.search_by_criteria(active=False)) == 0


def test_search_by_holder_escapes_wildcards(service):
    service.create(make_request(holder_name="Juan Perez"))
    assert service.search_by_holder("%") == []
    assert len(service.search_by_holder("juan")) == 1


def test_exists_by_number(service):
    assert service.exists_by_number("1234567890") is False
    service.create(make_request())
    assert service.exists_by_number("1234567890") is True


# ==================== UPDATE TESTS ====================

def test_update_only_touches_mutable_fields(service):
    created = service.create(make_request())
    created_at = created.created_at

    updated = service.update(created.id, make_request(
        account_number="9999999999",
        holder_name="Juana Perez",
        balance="5.00",
        account_type=AccountType.STUDENT
    ))
    assert updated.holder_name == "Juana Perez"
    assert updated.balance == Decimal("5.00")
    assert updated.account_number == "1234567890"
    assert updated.account_type == AccountType.CHECKING
    assert updated.created_at == created_at
    assert updated.updated_at >= created_at


def test_update_without_balance_keeps_balance(service):
    created = service.create(make_request())
    updated = service.update(created.id, make_request(balance=None))
    assert updated.balance == Decimal("1000.00")


def test_update_missing_account(service):
    with pytest.raises(AccountNotFoundError):
        service.update(7, make_request())


@pytest.mark.parametrize("new_balance", [None, Decimal("-0.01")])
def test_set_balance_invalid_before_lookup(service, new_balance):
    with pytest.raises(InvalidInputError):
        service.set_balance(999, new_balance)


def test_set_balance_missing_account(service):
    with pytest.raises(AccountNotFoundError):
        service.set_balance(999, Decimal("1.00"))


def test_set_balance_with_too_many_decimals(service):
    created = service.create(make_request())

    with pytest.raises(InvalidInputError) as exc_info:
        service.set_balance(created.id, Decimal("12.345"))
    assert "new_balance" in exc_info.value.field_errors
    assert service.get_by_id(created.id).balance == Decimal("1000.00")


# ==================== BALANCE OPERATION TESTS ====================

def test_debit_insufficient_funds_leaves_balance(service):
    created = service.create(make_request())

    with pytest.raises(InsufficientFundsError) as exc_info:
        service.debit(created.id, Decimal("1200.00"))
    assert exc_info.value.balance == Decimal("1000.00")
    assert exc_info.value.amount == Decimal("1200.00")
    assert service.get_by_id(created.id).balance == Decimal("1000.00")


def test_debit_whole_balance(service):
    created = service.create(make_request())
    assert service.debit(created.id, Decimal("1000.00")).balance == Decimal("0.00")


def test_debit_then_credit_round_trip(service):
    created = service.create(make_request(balance="123.45"))

    service.debit(created.id, Decimal("23.40"))
    account = service.credit(created.id, Decimal("23.40"))
    assert account.balance == Decimal("123.45")


@pytest.mark.parametrize("amount", [None, Decimal("0"), Decimal("-1")])
def test_non_positive_amounts_checked_before_lookup(service, amount):
    with pytest.raises(InvalidInputError):
        service.debit(999, amount)
    with pytest.raises(InvalidInputError):
        service.credit(999, amount)


@pytest.mark.parametrize("amount", [Decimal("0.004"), Decimal("10000000000000.00")])
def test_amounts_the_balance_column_cannot_hold(service, amount):
    created = service.create(make_request())

    with pytest.raises(InvalidInputError) as exc_info:
        service.credit(created.id, amount)
    assert "amount" in exc_info.value.field_errors
    with pytest.raises(InvalidInputError):
        service.debit(created.id, amount)
    # Checked before the account lookup
    with pytest.raises(InvalidInputError):
        service.credit(999, amount)
    assert service.get_by_id(created.id).balance == Decimal("1000.00")


def test_balance_operations_refresh_updated_at(service):
    created = service.create(make_request())
    created_at = created.created_at

    account = service.credit(created.id, Decimal("1.00"))
    assert account.updated_at >= created_at
    assert account.created_at == created_at


# ==================== ACTIVATION / DELETE TESTS ====================

def test_deactivate_and_activate(service):
    created = service.create(make_request())
    assert service.deactivate(created.id).active is False
    assert service.activate(created.id).active is True


def test_delete_is_permanent(service, db):
    created = service.create(make_request())
    service.delete(created.id)

    with pytest.raises(AccountNotFoundError):
        service.get_by_id(created.id)
    assert db.query(Account).count() == 0

    with pytest.raises(AccountNotFoundError):
        service.delete(created.id)


# ==================== STATISTICS TESTS ====================

def test_statistics_with_no_accounts(service):
    statistics = service.statistics()
    assert statistics.total_accounts == 0
    assert statistics.inactive_accounts == 0
    assert statistics.total_active_balance == Decimal("0")
    assert statistics.average_balance == Decimal("0")


def test_statistics_only_counts_active_balances(service):
    service.create(make_request(account_number="1000000001", balance="10.00"))
    service.create(make_request(account_number="1000000002", balance="20.00"))
    service.create(make_request(account_number="1000000003", balance="0.01"))
    inactive = service.create(make_request(account_number="1000000004", balance="999.00"))
    service.deactivate(inactive.id)

    statistics = service.statistics()
    assert statistics.total_accounts == 4
    assert statistics.active_accounts == 3
    assert statistics.inactive_accounts == statistics.total_accounts - statistics.active_accounts
    assert statistics.total_active_balance == Decimal("30.01")
    # 30.01 / 3 = 10.0033...
    assert statistics.average_balance == Decimal("10.00")


def test_statistics_by_type(service):
    service.create(make_request(account_number="1000000001", account_type=AccountType.BUSINESS))
    inactive = service.create(make_request(account_number="1000000002", account_type=AccountType.PAYROLL))
    service.deactivate(inactive.id)

    statistics = service.statistics_by_type()
    assert set(statistics) == set(AccountType)
    assert statistics[AccountType.BUSINESS].count == 1
    assert statistics[AccountType.BUSINESS].total_balance == Decimal("1000.00")
    assert statistics[AccountType.BUSINESS].label == "Business Account"
    assert statistics[AccountType.PAYROLL].count == 0
    assert statistics[AccountType.PAYROLL].average_balance == Decimal("0")


def test_holders_with_duplicate_accounts(service):
    assert service.holders_with_duplicate_accounts() == []

    service.create(make_request(account_number="1000000001", holder_name="Ana Ruiz"))
    service.create(make_request(account_number="1000000002", holder_name="Ana Ruiz"))
    service.create(make_request(account_number="1000000003", holder_name="ana ruiz"))

    assert service.holders_with_duplicate_accounts() == ["Ana Ruiz"]
