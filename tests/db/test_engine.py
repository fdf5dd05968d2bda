"""
Engine factory, process-wide session handling and session_scope.
"""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import select
from sqlalchemy.pool import QueuePool, StaticPool

from ledger_kernel.db.engine import (
    create_ledger_engine,
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.dtos import SettingsInput
from ledger_kernel.models.settings import AccountingSettings
from ledger_kernel.services.settings_service import SettingsService


@pytest.fixture
def global_engine():
    engine = init_engine_from_url("sqlite://")
    create_tables(engine)
    yield engine
    reset_engine()


def _fy_2024():
    return SettingsInput(fiscal_year_start=date(2024, 1, 1), fiscal_year_end=date(2024, 12, 31))


class TestCreateLedgerEngine:
    def test_memory_sqlite_shares_one_connection(self):
        engine = create_ledger_engine("sqlite://")
        try:
            assert isinstance(engine.pool, StaticPool)
        finally:
            engine.dispose()

    def test_file_sqlite_pooled(self, tmp_path):
        engine = create_ledger_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
        try:
            assert isinstance(engine.pool, QueuePool)
        finally:
            engine.dispose()

    def test_sqlite_foreign_keys_enabled(self):
        engine = create_ledger_engine("sqlite://")
        try:
            with engine.connect() as conn:
                assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1
        finally:
            engine.dispose()

    def test_postgres_url_builds_without_connecting(self):
        engine = create_ledger_engine("postgresql+psycopg2://ledger@localhost/ledger", pool_size=3)
        try:
            assert engine.dialect.name == "postgresql"
            assert engine.pool.size() == 3
        finally:
            engine.dispose()


class TestProcessWideEngine:
    def test_uninitialized(self):
        reset_engine()
        with pytest.raises(RuntimeError):
            get_engine()
        with pytest.raises(RuntimeError):
            get_session()
        with pytest.raises(RuntimeError):
            get_session_factory()

    def test_initialized(self, global_engine):
        assert get_engine() is global_engine
        with get_session_factory()() as session:
            assert session.get_bind() is global_engine

    def test_init_logged(self, captured_logs):
        try:
            init_engine_from_url("sqlite://", echo=False)
        finally:
            reset_engine()
        [record] = [r for r in captured_logs() if r["message"] == "engine_initialized"]
        assert record["dialect"] == "sqlite"


class TestSessionScope:
    def test_commits_on_success(self, global_engine):
        company_id = uuid4()
        clock = DeterministicClock()
        with session_scope() as session:
            SettingsService(session, clock).save_settings(company_id, _fy_2024(), "setup")

        with session_scope() as session:
            stored = session.execute(
                select(AccountingSettings).where(AccountingSettings.company_id == company_id)
            ).scalar_one()
            assert stored.fiscal_year_end == date(2024, 12, 31)

    def test_rolls_back_on_error(self, global_engine, captured_logs):
        company_id = uuid4()
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                SettingsService(session, DeterministicClock()).save_settings(company_id, _fy_2024(), "setup")
                raise RuntimeError("abort")

        with session_scope() as session:
            assert session.execute(
                select(AccountingSettings).where(AccountingSettings.company_id == company_id)
            ).scalar_one_or_none() is None
        assert any(r["message"] == "transaction_rolled_back" for r in captured_logs())
