"""
Database models package.
"""

from app.models.account import Account, AccountType

__all__ = ["Account", "AccountType"]
