"""
Pytest fixtures for the ledger kernel test suite.

Provides:
- A session-scoped engine with tables created once
- Per-test sessions rolled back at teardown
- Account, settings and entry factories
- Log capture

Environment Variables:
- DATABASE_URL: SQLAlchemy URL of the test database.  Defaults to an
  in-memory SQLite database; set a postgresql+psycopg2:// URL to run the
  suite against PostgreSQL.
"""

import json
import logging
import os
from datetime import UTC, date, datetime
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import uuid4

import pytest
from sqlalchemy.orm import Session

from ledger_kernel.db.engine import create_ledger_engine, create_tables, drop_tables
from ledger_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.dtos import AccountInput, EntryInput, LineInput, SettingsInput
from ledger_kernel.domain.values import AccountType
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.services.account_service import AccountService
from ledger_kernel.services.journal_service import JournalEntryService
from ledger_kernel.services.settings_service import SettingsService

# Actor recorded on every write made by the tests
TEST_ACTOR = "test-user"

DEFAULT_DATABASE_URL = "sqlite://"


def get_database_url() -> str:
    """Get database URL from environment, or use in-memory SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True, scope="session")
def _json_logging():
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Collect ledger_kernel records emitted during the test as dicts.

        def test_post(captured_logs, journal_service):
            ...
            assert "entry_posted" in [r["message"] for r in captured_logs()]
    """
    buffer = StringIO()
    handler = logging.StreamHandler(buffer)
    handler.setFormatter(StructuredFormatter())
    kernel_logger = logging.getLogger("ledger_kernel")
    previous_level = kernel_logger.level
    kernel_logger.setLevel(logging.DEBUG)
    kernel_logger.addHandler(handler)

    def _records() -> list[dict]:
        return [json.loads(line) for line in buffer.getvalue().splitlines() if line]

    yield _records

    kernel_logger.removeHandler(handler)
    kernel_logger.setLevel(previous_level)


# -----------------------------------------------------------------------------
# Database: one engine per run, one rolled-back transaction per test
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def db_engine():
    """Engine for the whole run, with fresh tables and the immutability guards on."""
    engine = create_ledger_engine(get_database_url(), pool_size=30, max_overflow=20)
    drop_tables(engine)
    create_tables(engine)
    register_immutability_listeners()
    yield engine
    unregister_immutability_listeners()
    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """
    Session bound to a connection whose outer transaction is rolled back
    after the test.

    The session joins that transaction in ``create_savepoint`` mode, so a
    ``session.commit()`` or ``begin_nested()`` inside a service or test only
    touches savepoints and nothing reaches the database.
    """
    connection = db_engine.connect()
    outer = connection.begin()
    test_session = Session(
        bind=connection,
        join_transaction_mode="create_savepoint",
        expire_on_commit=False,
    )
    try:
        yield test_session
    finally:
        test_session.close()
        outer.rollback()
        connection.close()


# -----------------------------------------------------------------------------
# Clock, company and services
# -----------------------------------------------------------------------------


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Clock fixed at 2024-06-15 12:00 UTC, inside the test fiscal year."""
    return DeterministicClock(datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC))


@pytest.fixture
def company_id():
    return uuid4()


@pytest.fixture
def other_company_id():
    return uuid4()


@pytest.fixture
def actor() -> str:
    return TEST_ACTOR


@pytest.fixture
def account_service(session, deterministic_clock) -> AccountService:
    return AccountService(session, deterministic_clock)


@pytest.fixture
def settings_service(session, deterministic_clock) -> SettingsService:
    return SettingsService(session, deterministic_clock)


@pytest.fixture
def journal_service(session, deterministic_clock) -> JournalEntryService:
    return JournalEntryService(session, deterministic_clock)


# -----------------------------------------------------------------------------
# Factories
# -----------------------------------------------------------------------------


@pytest.fixture
def create_account(account_service, company_id):
    """Factory creating an account in the test company (or another one)."""

    def _create(code, name, account_type, parent_id=None, company=None, nature=None):
        return account_service.create_account(
            company or company_id,
            AccountInput(
                code=code,
                name=name,
                account_type=account_type,
                nature=nature,
                parent_id=parent_id,
            ),
            TEST_ACTOR,
        )

    return _create


@pytest.fixture
def standard_accounts(create_account) -> dict:
    """A small flat chart covering every account type."""
    return {
        "cash": create_account("1.1.01", "Cash", AccountType.ASSET),
        "bank": create_account("1.1.02", "Bank", AccountType.ASSET),
        "receivables": create_account("1.1.03", "Accounts Receivable", AccountType.ASSET),
        "payables": create_account("2.1.01", "Accounts Payable", AccountType.LIABILITY),
        "loans": create_account("2.2.01", "Long-term Loans", AccountType.LIABILITY),
        "capital": create_account("3.1.01", "Share Capital", AccountType.EQUITY),
        "result": create_account("3.1.03", "Result of the Year", AccountType.EQUITY),
        "sales": create_account("4.1.01", "Sales", AccountType.REVENUE),
        "services": create_account("4.1.02", "Services", AccountType.REVENUE),
        "salaries": create_account("5.1.02", "Salaries", AccountType.EXPENSE),
        "rent": create_account("5.1.03", "Rent", AccountType.EXPENSE),
    }


@pytest.fixture
def accounting_settings(settings_service, company_id, standard_accounts):
    """Fiscal year 2024 with the result account configured."""
    return settings_service.save_settings(
        company_id,
        SettingsInput(
            fiscal_year_start=date(2024, 1, 1),
            fiscal_year_end=date(2024, 12, 31),
            result_account_id=standard_accounts["result"].id,
        ),
        TEST_ACTOR,
    )


def line(account, debit="0", credit="0", description=None) -> LineInput:
    """LineInput for an AccountInfo (or a bare account id)."""
    account_id = getattr(account, "id", account)
    return LineInput(
        account_id=account_id,
        debit=Decimal(debit),
        credit=Decimal(credit),
        description=description,
    )


@pytest.fixture
def make_line():
    return line


@pytest.fixture
def create_entry(journal_service, company_id, accounting_settings):
    """
    Factory creating a journal entry, posted by default.

    Usage::

        entry = create_entry([
            make_line(cash, debit="100"),
            make_line(sales, credit="100"),
        ])
    """

    def _create(lines, entry_date=date(2024, 6, 1), description="Test entry", post=True):
        result = journal_service.create_entry(
            company_id,
            EntryInput(entry_date=entry_date, description=description, lines=tuple(lines)),
            TEST_ACTOR,
        )
        if not post:
            return result.entry
        return journal_service.post_entry(company_id, result.entry.id, TEST_ACTOR)

    return _create
