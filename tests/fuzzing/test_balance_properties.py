"""
Property-based tests for the balance rules.

Pure properties run against ``validate_lines`` with generated lines.  The
ledger properties post generated entries through the real services and
check that the trial balance and the accounting equation stay balanced.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from ledger_kernel.domain.dtos import EntryInput, LineInput
from ledger_kernel.domain.validation import check_line_amounts, validate_lines
from ledger_kernel.exceptions import InvalidLineAmountError, UnbalancedEntryError
from ledger_kernel.selectors.report_selector import ReportSelector
from ledger_kernel.services.equation_service import EquationService

ACTOR = "fuzz"

amounts = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("999999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)

fiscal_dates = st.dates(min_value=date(2024, 1, 1), max_value=date(2024, 12, 31))


def _balanced_lines(pair_amounts):
    lines = []
    for amount in pair_amounts:
        lines.append(LineInput(account_id=uuid4(), debit=amount))
        lines.append(LineInput(account_id=uuid4(), credit=amount))
    return lines


@given(st.lists(amounts, min_size=1, max_size=20))
def test_balanced_lines_validate(pair_amounts):
    assert validate_lines(_balanced_lines(pair_amounts))


@given(st.lists(amounts, min_size=1, max_size=20), amounts)
def test_extra_debit_unbalances(pair_amounts, extra):
    lines = _balanced_lines(pair_amounts)
    lines.append(LineInput(account_id=uuid4(), debit=extra))

    result = validate_lines(lines)
    assert not result
    assert result.errors[0].code == UnbalancedEntryError.code


@given(amounts, amounts)
def test_two_sided_line_rejected(debit, credit):
    lines = [
        LineInput(account_id=uuid4(), debit=debit, credit=credit),
        LineInput(account_id=uuid4(), debit=credit),
        LineInput(account_id=uuid4(), credit=debit),
    ]
    result = check_line_amounts(lines)
    assert not result
    assert [e.code for e in result.errors] == [InvalidLineAmountError.code]


@given(st.lists(amounts, min_size=1, max_size=20))
def test_split_credit_side_still_balances(pair_amounts):
    total = sum(pair_amounts, Decimal("0"))
    lines = [LineInput(account_id=uuid4(), debit=total)]
    lines.extend(LineInput(account_id=uuid4(), credit=a) for a in pair_amounts)
    assert validate_lines(lines)


@settings(
    max_examples=25,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
@given(st.lists(st.tuples(amounts, fiscal_dates, st.booleans()), min_size=1, max_size=6))
def test_posted_entries_keep_ledger_balanced(
    session, journal_service, company_id, standard_accounts, accounting_settings, movements
):
    a = standard_accounts
    for amount, entry_date, is_sale in movements:
        if is_sale:
            lines = (
                LineInput(account_id=a["cash"].id, debit=amount),
                LineInput(account_id=a["sales"].id, credit=amount),
            )
        else:
            lines = (
                LineInput(account_id=a["rent"].id, debit=amount),
                LineInput(account_id=a["bank"].id, credit=amount),
            )
        created = journal_service.create_entry(
            company_id,
            EntryInput(entry_date=entry_date, description="Generated", lines=lines),
            ACTOR,
        )
        journal_service.post_entry(company_id, created.entry.id, ACTOR)

    tb = ReportSelector(session).trial_balance(company_id, date(2024, 1, 1), date(2024, 12, 31))
    assert tb.is_balanced
    assert tb.total_debit == tb.total_credit

    assert EquationService(session).verify_equation(company_id).is_balanced
