"""
Unit tests for the entry validation rules.

Verifies:
- Line count, zero-amount, balance and per-line checks
- Rule order in validate_lines
- Fiscal year date check (inclusive bounds)
- raise_for_result maps error codes to typed exceptions
- Nature warnings are advisory values, never exceptions
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_kernel.domain.dtos import LineInput, ValidationResult
from ledger_kernel.domain.validation import (
    check_balance,
    check_entry_date,
    check_line_amounts,
    check_line_count,
    check_nature_consistency,
    check_not_all_zero,
    raise_for_result,
    validate_lines,
)
from ledger_kernel.domain.values import AccountNature
from ledger_kernel.exceptions import (
    DateOutsideFiscalYearError,
    InsufficientLinesError,
    InvalidLineAmountError,
    UnbalancedEntryError,
    ValidationFailedError,
    ZeroAmountEntryError,
)

CASH = uuid4()
SALES = uuid4()
RENT = uuid4()


def _line(account_id, debit="0", credit="0"):
    return LineInput(account_id=account_id, debit=Decimal(debit), credit=Decimal(credit))


class TestLineInput:
    def test_amounts_rounded_to_cents(self):
        line = LineInput(account_id=CASH, debit=Decimal("10.005"))
        assert line.debit == Decimal("10.01")
        assert line.credit == Decimal("0.00")

    def test_accepts_strings_and_ints(self):
        line = LineInput(account_id=CASH, debit="12.5", credit=0)
        assert line.debit == Decimal("12.50")

    def test_rejects_garbage(self):
        with pytest.raises(ValueError):
            LineInput(account_id=CASH, debit="ten")


class TestLineCount:
    def test_single_line_fails(self):
        result = check_line_count([_line(CASH, debit="10")])
        assert not result
        assert result.errors[0].code == InsufficientLinesError.code

    def test_two_lines_pass(self):
        assert check_line_count([_line(CASH, debit="10"), _line(SALES, credit="10")])


class TestNotAllZero:
    def test_all_zero_fails(self):
        result = check_not_all_zero([_line(CASH), _line(SALES)])
        assert not result
        assert result.errors[0].code == ZeroAmountEntryError.code


class TestBalance:
    def test_balanced(self):
        assert check_balance([_line(CASH, debit="100"), _line(SALES, credit="100")])

    def test_within_tolerance(self):
        # Sub-cent drift never survives rounding, so equal cents balance
        assert check_balance([_line(CASH, debit="100.004"), _line(SALES, credit="100")])

    def test_one_cent_off_fails(self):
        result = check_balance([_line(CASH, debit="100.00"), _line(SALES, credit="99.99")])
        assert not result
        assert result.errors[0].code == UnbalancedEntryError.code
        assert result.errors[0].details["debits"] == Decimal("100.00")

    def test_multi_line_balanced(self):
        assert check_balance([
            _line(CASH, debit="60"),
            _line(RENT, debit="40"),
            _line(SALES, credit="100"),
        ])


class TestLineAmounts:
    @pytest.mark.parametrize(
        "debit,credit,reason",
        [
            ("-5", "0", "amounts cannot be negative"),
            ("0", "-5", "amounts cannot be negative"),
            ("5", "5", "a line cannot carry both a debit and a credit"),
            ("0", "0", "a line must carry either a debit or a credit"),
        ],
    )
    def test_invalid_line(self, debit, credit, reason):
        result = check_line_amounts([_line(CASH, debit="5"), _line(SALES, debit, credit)])
        assert not result
        error = result.errors[0]
        assert error.code == InvalidLineAmountError.code
        assert error.details == {"line_index": 1, "reason": reason}
        assert error.field == "lines[1]"

    def test_reports_every_bad_line(self):
        result = check_line_amounts([_line(CASH, "-1"), _line(SALES, "1", "1")])
        assert len(result.errors) == 2


class TestValidateLines:
    def test_valid_entry(self):
        result = validate_lines([_line(CASH, debit="100"), _line(SALES, credit="100")])
        assert result.is_valid
        assert result.errors == ()

    def test_line_count_checked_first(self):
        result = validate_lines([_line(CASH)])
        assert result.errors[0].code == InsufficientLinesError.code

    def test_balance_checked_before_line_amounts(self):
        # Both sides on one line and unbalanced: balance error wins
        result = validate_lines([_line(CASH, "100", "10"), _line(SALES, credit="50")])
        assert result.errors[0].code == UnbalancedEntryError.code

    def test_both_sides_on_balanced_lines(self):
        result = validate_lines([_line(CASH, "100", "100"), _line(SALES, "50", "50")])
        assert result.errors[0].code == InvalidLineAmountError.code


class TestEntryDate:
    FY_START = date(2024, 1, 1)
    FY_END = date(2024, 12, 31)

    @pytest.mark.parametrize("value", [date(2024, 1, 1), date(2024, 6, 15), date(2024, 12, 31)])
    def test_inside_inclusive(self, value):
        assert check_entry_date(value, self.FY_START, self.FY_END)

    @pytest.mark.parametrize("value", [date(2023, 12, 31), date(2025, 1, 1)])
    def test_outside(self, value):
        result = check_entry_date(value, self.FY_START, self.FY_END)
        assert not result
        assert result.errors[0].code == DateOutsideFiscalYearError.code


class TestRaiseForResult:
    def test_success_is_noop(self):
        raise_for_result(ValidationResult.success())

    def test_unbalanced(self):
        result = check_balance([_line(CASH, debit="100"), _line(SALES, credit="90")])
        with pytest.raises(UnbalancedEntryError) as exc_info:
            raise_for_result(result)
        assert exc_info.value.difference == Decimal("10.00")

    def test_insufficient_lines(self):
        with pytest.raises(InsufficientLinesError) as exc_info:
            raise_for_result(check_line_count([]))
        assert exc_info.value.line_count == 0

    def test_line_amount(self):
        result = check_line_amounts([_line(CASH, "5", "5"), _line(SALES, credit="5")])
        with pytest.raises(InvalidLineAmountError) as exc_info:
            raise_for_result(result)
        assert exc_info.value.line_index == 0

    def test_date(self):
        result = check_entry_date(date(2025, 2, 1), date(2024, 1, 1), date(2024, 12, 31))
        with pytest.raises(DateOutsideFiscalYearError):
            raise_for_result(result)

    def test_all_are_validation_failures(self):
        with pytest.raises(ValidationFailedError):
            raise_for_result(check_not_all_zero([_line(CASH), _line(SALES)]))


class TestNatureConsistency:
    ACCOUNTS = {
        CASH: ("1.1.01", AccountNature.DEBIT),
        SALES: ("4.1.01", AccountNature.CREDIT),
        RENT: ("5.1.03", AccountNature.DEBIT),
    }

    def test_natural_movements_have_no_warning(self):
        warnings = check_nature_consistency(
            [_line(CASH, debit="100"), _line(SALES, credit="100")], self.ACCOUNTS
        )
        assert warnings == ()

    def test_credit_natured_account_debited(self):
        warnings = check_nature_consistency(
            [_line(SALES, debit="30"), _line(CASH, credit="30")], self.ACCOUNTS
        )
        codes = [w.account_code for w in warnings]
        assert codes == ["4.1.01", "1.1.01"]
        assert "debits it by 30.00" in warnings[0].message
        assert "credits it by 30.00" in warnings[1].message

    def test_net_movement_is_what_counts(self):
        warnings = check_nature_consistency(
            [
                _line(CASH, debit="100"),
                _line(CASH, credit="40"),
                _line(SALES, credit="60"),
            ],
            self.ACCOUNTS,
        )
        assert warnings == ()

    def test_unknown_accounts_skipped(self):
        stranger = uuid4()
        warnings = check_nature_consistency(
            [_line(stranger, credit="10"), _line(CASH, debit="10")], self.ACCOUNTS
        )
        assert warnings == ()
