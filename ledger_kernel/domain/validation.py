"""
Entry validation rules (``ledger_kernel.domain.validation``).

Responsibility
--------------
Pure checks over requested lines and dates, split by consequence:

* **Hard validators** return a ``ValidationResult``.  A failing result is
  turned into the matching typed exception by ``raise_for_result``.
* **Soft validators** return a tuple of ``NatureWarning`` values.  They
  cannot fail an operation.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O.  Services load whatever the rules
need (account natures, fiscal year) and pass it in.

Invariants enforced
-------------------
* An entry has at least two lines and at least one non-zero amount.
* sum(debit) and sum(credit) differ by less than ``BALANCE_TOLERANCE``.
* Every line is non-negative and has exactly one side populated.
* The entry date lies inside the fiscal year, bounds inclusive.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from uuid import UUID

from ledger_kernel.db.types import ZERO, amounts_equal
from ledger_kernel.domain.dtos import (
    LineInput,
    NatureWarning,
    ValidationError,
    ValidationResult,
)
from ledger_kernel.domain.values import AccountNature
from ledger_kernel.exceptions import (
    DateOutsideFiscalYearError,
    InsufficientLinesError,
    InvalidLineAmountError,
    LedgerError,
    UnbalancedEntryError,
    ValidationFailedError,
    ZeroAmountEntryError,
)

MIN_LINES = 2


# =============================================================================
# Hard validators
# =============================================================================


def check_line_count(lines: Sequence[LineInput]) -> ValidationResult:
    if len(lines) < MIN_LINES:
        return ValidationResult.failure(ValidationError(
            code=InsufficientLinesError.code,
            message=f"Entry must have at least {MIN_LINES} lines",
            field="lines",
            details={"line_count": len(lines)},
        ))
    return ValidationResult.success()


def check_not_all_zero(lines: Sequence[LineInput]) -> ValidationResult:
    if all(line.debit == ZERO and line.credit == ZERO for line in lines):
        return ValidationResult.failure(ValidationError(
            code=ZeroAmountEntryError.code,
            message="Entry must carry at least one non-zero amount",
            field="lines",
        ))
    return ValidationResult.success()


def check_balance(lines: Iterable[LineInput]) -> ValidationResult:
    """Total debits must equal total credits within the tolerance."""
    debits = ZERO
    credits = ZERO
    for line in lines:
        debits += line.debit
        credits += line.credit
    if not amounts_equal(debits, credits):
        return ValidationResult.failure(ValidationError(
            code=UnbalancedEntryError.code,
            message=(
                f"Entry is not balanced: debits {debits}, credits {credits}, "
                f"difference {abs(debits - credits)}"
            ),
            field="lines",
            details={"debits": debits, "credits": credits},
        ))
    return ValidationResult.success()


def check_line_amounts(lines: Sequence[LineInput]) -> ValidationResult:
    """Each line: no negative amount, exactly one side populated."""
    errors = []
    for index, line in enumerate(lines):
        reason = None
        if line.debit < ZERO or line.credit < ZERO:
            reason = "amounts cannot be negative"
        elif line.debit > ZERO and line.credit > ZERO:
            reason = "a line cannot carry both a debit and a credit"
        elif line.debit == ZERO and line.credit == ZERO:
            reason = "a line must carry either a debit or a credit"
        if reason is not None:
            errors.append(ValidationError(
                code=InvalidLineAmountError.code,
                message=f"Line {index + 1}: {reason}",
                field=f"lines[{index}]",
                details={"line_index": index, "reason": reason},
            ))
    if errors:
        return ValidationResult.failure(*errors)
    return ValidationResult.success()


def validate_lines(lines: Sequence[LineInput]) -> ValidationResult:
    """
    Run the line rules in order and stop at the first failing rule.

    Order: line count, non-zero, balance, per-line amounts.
    """
    for check in (check_line_count, check_not_all_zero, check_balance, check_line_amounts):
        result = check(lines)
        if not result:
            return result
    return ValidationResult.success()


def check_entry_date(
    entry_date: date,
    fiscal_year_start: date,
    fiscal_year_end: date,
) -> ValidationResult:
    if not fiscal_year_start <= entry_date <= fiscal_year_end:
        return ValidationResult.failure(ValidationError(
            code=DateOutsideFiscalYearError.code,
            message=(
                f"Date {entry_date.isoformat()} is outside the fiscal year "
                f"{fiscal_year_start.isoformat()} to {fiscal_year_end.isoformat()}"
            ),
            field="entry_date",
            details={
                "entry_date": entry_date,
                "fiscal_year_start": fiscal_year_start,
                "fiscal_year_end": fiscal_year_end,
            },
        ))
    return ValidationResult.success()


_EXCEPTION_FACTORIES: dict[str, Callable[[dict], LedgerError]] = {
    InsufficientLinesError.code: lambda d: InsufficientLinesError(d["line_count"]),
    ZeroAmountEntryError.code: lambda d: ZeroAmountEntryError(),
    UnbalancedEntryError.code: lambda d: UnbalancedEntryError(d["debits"], d["credits"]),
    InvalidLineAmountError.code: lambda d: InvalidLineAmountError(d["line_index"], d["reason"]),
    DateOutsideFiscalYearError.code: lambda d: DateOutsideFiscalYearError(
        d["entry_date"], d["fiscal_year_start"], d["fiscal_year_end"]
    ),
}


def raise_for_result(result: ValidationResult) -> None:
    """
    Raise the typed exception for the first error of a failing result.

    Does nothing when the result is valid.

    Raises:
        ValidationFailedError: subclass matching the error code.
    """
    if result:
        return
    error = result.errors[0]
    factory = _EXCEPTION_FACTORIES.get(error.code)
    if factory is None:
        raise ValidationFailedError(error.message)
    raise factory(error.details or {})


# =============================================================================
# Soft validators
# =============================================================================


def check_nature_consistency(
    lines: Iterable[LineInput],
    accounts: Mapping[UUID, tuple[str, AccountNature]],
) -> tuple[NatureWarning, ...]:
    """
    Flag accounts whose net movement in the entry runs against their nature.

    A debit-natured account credited on net, or a credit-natured account
    debited on net, yields one NatureWarning.  Accounts missing from
    ``accounts`` are skipped.

    Args:
        lines: The entry lines.
        accounts: account_id -> (code, nature).

    Returns:
        Warnings in first-appearance order of the accounts.
    """
    totals: dict[UUID, list[Decimal]] = {}
    for line in lines:
        debit_credit = totals.setdefault(line.account_id, [ZERO, ZERO])
        debit_credit[0] += line.debit
        debit_credit[1] += line.credit

    warnings = []
    for account_id, (debit, credit) in totals.items():
        if account_id not in accounts:
            continue
        code, nature = accounts[account_id]
        nature = AccountNature(nature)
        against = (
            credit > debit if nature == AccountNature.DEBIT else debit > credit
        )
        if against:
            warnings.append(NatureWarning(
                account_id=account_id,
                account_code=code,
                nature=nature,
                debit=debit,
                credit=credit,
            ))
    return tuple(warnings)
