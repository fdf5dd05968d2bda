"""
Reversal tests.

A reversal is a new POSTED entry with every line's sides swapped, dated
today, and linked both ways to the entry it undoes.
"""

from datetime import date
from decimal import Decimal

import pytest

from ledger_kernel.domain.values import JournalEntryStatus
from ledger_kernel.exceptions import EntryNotFoundError, EntryNotPostedError
from ledger_kernel.selectors.balance_selector import BalanceSelector
from ledger_kernel.selectors.journal_selector import JournalSelector

ACTOR = "test-user"


@pytest.fixture
def sale(create_entry, standard_accounts, make_line):
    return create_entry(
        [
            make_line(standard_accounts["cash"], debit="60", description="cash part"),
            make_line(standard_accounts["receivables"], debit="40"),
            make_line(standard_accounts["sales"], credit="100"),
        ],
        entry_date=date(2024, 3, 10),
        description="Invoice 17",
    )


class TestReverseEntry:
    def test_swaps_every_line(self, journal_service, company_id, sale):
        result = journal_service.reverse_entry(company_id, sale.id, ACTOR)
        reversal = result.reversal

        assert reversal.status == JournalEntryStatus.POSTED
        assert reversal.number == sale.number + 1
        assert [(l.account_id, l.debit, l.credit) for l in reversal.lines] == [
            (l.account_id, l.credit, l.debit) for l in sale.lines
        ]
        assert reversal.lines[0].description == "cash part"

    def test_dated_today_with_reference_description(self, journal_service, company_id, sale):
        reversal = journal_service.reverse_entry(company_id, sale.id, ACTOR).reversal
        assert reversal.entry_date == date(2024, 6, 15)
        assert reversal.description == f"Reversal of entry N{sale.number}"
        assert reversal.post_date is not None

    def test_links_both_ways(self, session, journal_service, company_id, sale):
        result = journal_service.reverse_entry(company_id, sale.id, ACTOR)

        original = JournalSelector(session).get_entry(company_id, sale.id)
        assert original.status == JournalEntryStatus.REVERSED
        assert original.reversal_entry_id == result.reversal.id
        assert original.reversed_by == ACTOR
        assert original.reversed_at is not None
        assert result.reversal.original_entry_id == sale.id

    def test_original_lines_untouched(self, session, journal_service, company_id, sale):
        journal_service.reverse_entry(company_id, sale.id, ACTOR)
        original = JournalSelector(session).get_entry(company_id, sale.id)
        assert original.lines == sale.lines
        assert original.description == "Invoice 17"

    def test_only_reversal_counts_in_balances(self, session, journal_service, company_id, standard_accounts, sale):
        journal_service.reverse_entry(company_id, sale.id, ACTOR)
        balances = BalanceSelector(session)

        cash = balances.account_balance(standard_accounts["cash"].id, company_id)
        assert (cash.debit, cash.credit) == (Decimal("0.00"), Decimal("60.00"))
        receivables = balances.account_balance(standard_accounts["receivables"].id, company_id)
        assert receivables.balance == Decimal("-40.00")
        sales = balances.account_balance(standard_accounts["sales"].id, company_id)
        assert (sales.debit, sales.credit) == (Decimal("100.00"), Decimal("0.00"))

    def test_reverse_twice(self, journal_service, company_id, sale):
        journal_service.reverse_entry(company_id, sale.id, ACTOR)
        with pytest.raises(EntryNotPostedError) as exc_info:
            journal_service.reverse_entry(company_id, sale.id, ACTOR)
        assert exc_info.value.current_status == "reversed"

    def test_reverse_draft(self, journal_service, company_id, create_entry, standard_accounts, make_line):
        draft = create_entry(
            [make_line(standard_accounts["cash"], debit="5"), make_line(standard_accounts["sales"], credit="5")],
            post=False,
        )
        with pytest.raises(EntryNotPostedError):
            journal_service.reverse_entry(company_id, draft.id, ACTOR)

    def test_reversal_can_itself_be_reversed(self, journal_service, company_id, sale):
        reversal = journal_service.reverse_entry(company_id, sale.id, ACTOR).reversal
        second = journal_service.reverse_entry(company_id, reversal.id, ACTOR)
        assert second.reversal.description == f"Reversal of entry N{reversal.number}"

    def test_other_company(self, journal_service, other_company_id, sale):
        with pytest.raises(EntryNotFoundError):
            journal_service.reverse_entry(other_company_id, sale.id, ACTOR)

    def test_logged(self, journal_service, company_id, sale, captured_logs):
        result = journal_service.reverse_entry(company_id, sale.id, ACTOR)
        records = [r for r in captured_logs() if r["message"] == "entry_reversed"]
        assert records[0]["reversal_entry_id"] == str(result.reversal.id)
        assert records[0]["entry_number"] == sale.number
