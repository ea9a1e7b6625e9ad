"""
Pydantic schemas package.
"""

from app.schemas.account import (
    AccountRequest,
    AccountResponse,
    AccountPage,
    AccountStatistics,
    AccountTypeStatistics,
    AccountTypeStatisticsMap,
)
from app.schemas.error import ErrorResponse

__all__ = [
    "AccountRequest",
    "AccountResponse",
    "AccountPage",
    "AccountStatistics",
    "AccountTypeStatistics",
    "AccountTypeStatisticsMap",
    "ErrorResponse"
]
