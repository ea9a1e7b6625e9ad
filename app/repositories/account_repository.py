"""
Account repository.
Persistence layer for accounts over a SQLAlchemy session.
"""

from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.account import Account, AccountType


class AccountRepository:
    """Repository for account data persistence."""

    def __init__(self, db: Session):
        self.db = db

    # ==================== LOOKUPS ====================

    def get(self, account_id: int) -> Optional[Account]:
        return self.db.query(Account).filter(Account.id == account_id).first()

    def get_for_update(self, account_id: int) -> Optional[Account]:
        """
        Load an account with a row-level lock (SELECT FOR UPDATE).
        The lock is held until the session commits or rolls back.
        """
        return self.db.query(Account).filter(
            Account.id == account_id
        ).with_for_update().first()

    def get_by_number(self, account_number: str) -> Optional[Account]:
        return self.db.query(Account).filter(
            Account.account_number == account_number
        ).first()

    def exists_by_number(self, account_number: str) -> bool:
        return self.db.query(
            self.db.query(Account).filter(
                Account.account_number == account_number
            ).exists()
        ).scalar()

    # ==================== QUERIES ====================

    def page(self, offset: int, limit: int, order_by) -> List[Account]:
        return self.db.query(Account).order_by(order_by).offset(offset).limit(limit).all()

    def count(self) -> int:
        return self.db.query(func.count(Account.id)).scalar()

    def search_by_holder(self, holder_name: str) -> List[Account]:
        """Case-insensitive substring match on the holder name."""
        return self.db.query(Account).filter(
            func.lower(Account.holder_name).contains(holder_name.lower(), autoescape=True)
        ).all()

    def find_by_type(self, account_type: AccountType) -> List[Account]:
        return self.db.query(Account).filter(Account.account_type == account_type).all()

    def find_active(self) -> List[Account]:
        return self.db.query(Account).filter(Account.active.is_(True)).all()

    def find_by_criteria(
        self,
        holder_name: Optional[str] = None,
        account_type: Optional[AccountType] = None,
        min_balance: Optional[Decimal] = None,
        active: Optional[bool] = None,
    ) -> List[Account]:
        """Conjunctive filter; criteria left as None are not applied."""
        query = self.db.query(Account)
        if holder_name is not None:
            query = query.filter(
                func.lower(Account.holder_name).contains(holder_name.lower(), autoescape=True)
            )
        if account_type is not None:
            query = query.filter(Account.account_type == account_type)
        if min_balance is not None:
            query = query.filter(Account.balance >= min_balance)
        if active is not None:
            query = query.filter(Account.active.is_(active))
        return query.all()

    def duplicate_holder_names(self) -> List[str]:
        rows = self.db.query(Account.holder_name).group_by(
            Account.holder_name
        ).having(func.count(Account.id) > 1).all()
        return [holder_name for (holder_name,) in rows]

    # ==================== AGGREGATES ====================

    def count_active(self) -> int:
        return self.db.query(func.count(Account.id)).filter(Account.active.is_(True)).scalar()

    def total_active_balance(self) -> Decimal:
        total = self.db.query(
            func.coalesce(func.sum(Account.balance), 0)
        ).filter(Account.active.is_(True)).scalar()
        return Decimal(str(total))

    def active_totals_by_type(self) -> List[Tuple[AccountType, int, Decimal]]:
        """(account type, count, summed balance) over active accounts."""
        rows = self.db.query(
            Account.account_type,
            func.count(Account.id),
            func.coalesce(func.sum(Account.balance), 0),
        ).filter(Account.active.is_(True)).group_by(Account.account_type).all()
        return [(account_type, count, Decimal(str(total))) for account_type, count, total in rows]

    # ==================== WRITES ====================

    def add(self, account: Account):
        self.db.add(account)

    def delete(self, account: Account):
        self.db.delete(account)
