"""
Validation rules for account data.
Pure functions shared by the request schemas and the account service.
"""

import re
from decimal import Decimal
from typing import Optional

ACCOUNT_NUMBER_MIN_LENGTH = 10
ACCOUNT_NUMBER_MAX_LENGTH = 20
HOLDER_NAME_MIN_LENGTH = 2
HOLDER_NAME_MAX_LENGTH = 100
BALANCE_MAX_INTEGER_DIGITS = 13
BALANCE_MAX_FRACTION_DIGITS = 2

HOLDER_NAME_PATTERN = re.compile(r"[a-zA-ZáéíóúÁÉÍÓÚñÑ\s]+")
CURRENCY_PATTERN = re.compile(r"[A-Z]{3}")


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()


def validate_account_number(value: str) -> str:
    """Account numbers are 10-20 digits."""
    if _is_blank(value):
        raise ValueError("Account number must not be blank")
    if not ACCOUNT_NUMBER_MIN_LENGTH <= len(value) <= ACCOUNT_NUMBER_MAX_LENGTH:
        raise ValueError(
            f"Account number must be between {ACCOUNT_NUMBER_MIN_LENGTH} "
            f"and {ACCOUNT_NUMBER_MAX_LENGTH} characters"
        )
    # str.isdigit() also accepts superscripts and other unicode digits
    if not value.isascii() or not value.isdigit():
        raise ValueError("Account number may only contain digits")
    return value


def validate_holder_name(value: str) -> str:
    """Returns the trimmed holder name."""
    if _is_blank(value):
        raise ValueError("Holder name must not be blank")
    value = value.strip()
    if not HOLDER_NAME_MIN_LENGTH <= len(value) <= HOLDER_NAME_MAX_LENGTH:
        raise ValueError(
            f"Holder name must be between {HOLDER_NAME_MIN_LENGTH} "
            f"and {HOLDER_NAME_MAX_LENGTH} characters"
        )
    if not HOLDER_NAME_PATTERN.fullmatch(value):
        raise ValueError("Holder name may only contain letters and spaces")
    return value


def validate_balance(value: Optional[Decimal]) -> Optional[Decimal]:
    """None is allowed and means a zero opening balance."""
    if value is None:
        return None
    if value < 0:
        raise ValueError("Balance must not be negative")
    if not fits_money_digits(value):
        raise ValueError(money_digits_message("Balance"))
    return value


def fits_money_digits(value: Decimal) -> bool:
    """At most 13 integer digits and 2 decimals, as stored by the balance column."""
    _, digits, exponent = value.as_tuple()
    if not isinstance(exponent, int):
        # NaN and Infinity
        return False
    fraction_digits = max(-exponent, 0)
    integer_digits = max(len(digits) + exponent, 0)
    return (
        integer_digits <= BALANCE_MAX_INTEGER_DIGITS
        and fraction_digits <= BALANCE_MAX_FRACTION_DIGITS
    )


def money_digits_message(label: str) -> str:
    return (
        f"{label} may have at most {BALANCE_MAX_INTEGER_DIGITS} integer digits "
        f"and {BALANCE_MAX_FRACTION_DIGITS} decimals"
    )


def validate_currency(value: Optional[str]) -> Optional[str]:
    """None is allowed; the default currency is applied on creation."""
    if value is None:
        return None
    if not CURRENCY_PATTERN.fullmatch(value):
        raise ValueError("Currency must be a 3-letter uppercase ISO 4217 code")
    return value


def is_structurally_valid(payload) -> bool:
    """
    Minimal check run before any lookup on account creation:
    account number and holder name present, account type set.
    """
    return (
        payload is not None
        and not _is_blank(getattr(payload, "account_number", None))
        and not _is_blank(getattr(payload, "holder_name", None))
        and getattr(payload, "account_type", None) is not None
    )


def is_positive_amount(value: Optional[Decimal]) -> bool:
    return value is not None and value > 0


def is_valid_balance_amount(value: Optional[Decimal]) -> bool:
    return value is not None and value >= 0
