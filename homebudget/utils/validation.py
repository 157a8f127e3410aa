"""
Validation utilities
"""
import re
from decimal import Decimal, InvalidOperation

from homebudget.application.errors import InvalidAmount
from homebudget.utils.money import CENT

MAX_AMOUNT = Decimal("9999999.99")

_AMOUNT_RE = re.compile(r"^\d+(\.\d{1,2})?$")


def normalize_decimal_input(value: str) -> str:
    """
    Normalize an amount string: comma becomes a dot

    Example:
        >>> normalize_decimal_input("100,50")
        "100.50"
    """
    return value.strip().replace(",", ".")


def validate_amount(value, field: str = "amount") -> Decimal:
    """
    Validate a money amount: positive, at most 9,999,999.99, at most 2 decimals

    Args:
        value: Decimal / int / float / str
        field: Field name used in the error message

    Returns:
        Decimal value

    Raises:
        InvalidAmount: if the value fails any rule

    Example:
        >>> validate_amount("100,50")
        Decimal("100.50")
        >>> validate_amount("100.505")
        InvalidAmount: amount must have at most 2 decimal places
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"{field} must be a number")

    if isinstance(value, float):
        value = repr(value)
    text = normalize_decimal_input(str(value))

    try:
        amount = Decimal(text)
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"{field} must be a number")

    if not amount.is_finite():
        raise InvalidAmount(f"{field} must be a finite number")

    if amount <= 0:
        raise InvalidAmount(f"{field} must be greater than 0")

    if amount > MAX_AMOUNT:
        raise InvalidAmount(f"{field} cannot exceed 9,999,999.99")

    if not _AMOUNT_RE.match(format(amount.normalize(), "f")):
        raise InvalidAmount(f"{field} must have at most 2 decimal places")

    return amount.quantize(CENT)


def escape_like_pattern(value: str) -> str:
    """Escape LIKE wildcards (backslash first, then % and _)"""
    return (
        value.replace("\\", "\\\\")
        .replace("%", "\\%")
        .replace("_", "\\_")
    )


def partial_match_pattern(search_term: str) -> str:
    """Case-insensitive substring pattern for ILIKE ... ESCAPE '\\'"""
    return f"%{escape_like_pattern(search_term.strip())}%"
