"""
Recurring schedule arithmetic (``ledger_kernel.domain.recurrence``).

Pure calendar math for recurring templates.  Month steps use
``dateutil.relativedelta``, which clamps to the last day of shorter months
(2024-01-31 + 1 month = 2024-02-29).
"""

from __future__ import annotations

from datetime import date

from dateutil.relativedelta import relativedelta

from ledger_kernel.domain.values import RecurrenceFrequency

MONTHS_BY_FREQUENCY: dict[RecurrenceFrequency, int] = {
    RecurrenceFrequency.MONTHLY: 1,
    RecurrenceFrequency.BIMONTHLY: 2,
    RecurrenceFrequency.QUARTERLY: 3,
    RecurrenceFrequency.SEMIANNUAL: 6,
    RecurrenceFrequency.ANNUAL: 12,
}

FREQUENCY_LABELS: dict[RecurrenceFrequency, str] = {
    RecurrenceFrequency.MONTHLY: "Monthly",
    RecurrenceFrequency.BIMONTHLY: "Every two months",
    RecurrenceFrequency.QUARTERLY: "Quarterly",
    RecurrenceFrequency.SEMIANNUAL: "Every six months",
    RecurrenceFrequency.ANNUAL: "Yearly",
}


def next_due_date(current: date, frequency: RecurrenceFrequency | str) -> date:
    """Date one frequency step after ``current``."""
    months = MONTHS_BY_FREQUENCY[RecurrenceFrequency(frequency)]
    return current + relativedelta(months=months)


def is_pending(next_due: date, end_date: date | None, today: date) -> bool:
    """A template is due when its next date has arrived and it has not ended."""
    return next_due <= today and (end_date is None or end_date >= today)


def generated_description(template_name: str, due: date) -> str:
    """Description of an entry generated for ``due``: "{name} - MM/YYYY"."""
    return f"{template_name} - {due:%m/%Y}"


def frequency_label(frequency: RecurrenceFrequency | str) -> str:
    return FREQUENCY_LABELS[RecurrenceFrequency(frequency)]
