"""
Module: ledger_kernel.db.types
Responsibility: Annotated column aliases and the money helpers every layer
    shares: storage precision, the balance tolerance and rounding.
Architecture position: Kernel > DB.  Imported by models/, domain/,
    services/ and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    - Monetary amounts are Decimal with two decimal places.
    - BALANCE_TOLERANCE is the single threshold for "balanced": two amounts
      are equal when they differ by strictly less than one cent.
    - round_money() is the only rounding function for financial values.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any

from sqlalchemy import Enum as SAEnum
from sqlalchemy import Numeric, String


def value_enum(enum_cls: type[Enum], length: int = 20) -> SAEnum:
    """
    Column type persisting a str-valued Enum by its value as VARCHAR.

    Loaded rows come back as enum members; no database-native enum type is
    created, so the schema stays portable.
    """
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda cls: [member.value for member in cls],
        validate_strings=True,
    )


# Monetary amount, 18 digits with 2 decimal places
Money = Annotated[Decimal, Numeric(18, 2)]

# Account codes such as "1.1.1.01"
AccountCode = Annotated[str, String(50)]

# Free-text descriptions
LongText = Annotated[str, String(1000)]

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")

# Debit/credit totals within this distance are considered equal
BALANCE_TOLERANCE = Decimal("0.01")


def round_money(value: Decimal, decimal_places: int = MONEY_DECIMAL_PLACES) -> Decimal:
    """
    Round a monetary value half-up to the given number of decimal places.

    Args:
        value: Amount to round.
        decimal_places: Number of decimal places in the result.

    Returns:
        Quantized Decimal.
    """
    quantizer = Decimal(10) ** -decimal_places
    return value.quantize(quantizer, rounding=DEFAULT_ROUNDING)


def to_money(value: Any) -> Decimal:
    """
    Coerce an int, str or Decimal amount to a rounded Decimal.

    None is treated as zero.  Floats are converted through their string
    form so that 0.1 stays 0.10.

    Raises:
        ValueError: If value is not numeric.
    """
    if value is None:
        return round_money(ZERO)
    if isinstance(value, float):
        value = repr(value)
    try:
        return round_money(Decimal(value))
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not a monetary amount: {value!r}") from exc


def amounts_equal(left: Decimal, right: Decimal) -> bool:
    """True when two amounts differ by less than BALANCE_TOLERANCE."""
    return abs(left - right) < BALANCE_TOLERANCE
