"""
SettingsService and EntryNumberService tests.
"""

from datetime import date
from uuid import uuid4

import pytest

from ledger_kernel.domain.dtos import SettingsInput
from ledger_kernel.domain.values import AccountType
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    InvalidFiscalYearError,
    SettingsNotFoundError,
    ValidationFailedError,
)
from ledger_kernel.services.sequence_service import EntryNumberService
from ledger_kernel.services.settings_service import validate_fiscal_year

ACTOR = "test-user"

FY_2024 = dict(fiscal_year_start=date(2024, 1, 1), fiscal_year_end=date(2024, 12, 31))


class TestFiscalYearBounds:
    def test_calendar_year(self):
        validate_fiscal_year(date(2024, 1, 1), date(2024, 12, 31))

    def test_leap_span_of_366_days(self):
        validate_fiscal_year(date(2024, 1, 1), date(2025, 1, 1))

    def test_too_long(self):
        with pytest.raises(InvalidFiscalYearError):
            validate_fiscal_year(date(2024, 1, 1), date(2025, 1, 2))

    @pytest.mark.parametrize("end", [date(2024, 1, 1), date(2023, 12, 31)])
    def test_end_not_after_start(self, end):
        with pytest.raises(InvalidFiscalYearError) as exc_info:
            validate_fiscal_year(date(2024, 1, 1), end)
        assert isinstance(exc_info.value, ValidationFailedError)


class TestSaveSettings:
    def test_create(self, settings_service, company_id, captured_logs):
        info = settings_service.save_settings(company_id, SettingsInput(**FY_2024), ACTOR)

        assert info.fiscal_year_start == date(2024, 1, 1)
        assert info.last_entry_number == 0
        assert info.result_account_id is None
        assert set(info.integration_accounts.values()) == {None}

        saved = [r for r in captured_logs() if r["message"] == "settings_saved"]
        assert saved[0]["settings_created"] is True

    def test_update_in_place(self, settings_service, company_id, standard_accounts):
        settings_service.save_settings(company_id, SettingsInput(**FY_2024), ACTOR)
        info = settings_service.save_settings(
            company_id,
            SettingsInput(
                fiscal_year_start=date(2025, 1, 1),
                fiscal_year_end=date(2025, 12, 31),
                result_account_id=standard_accounts["result"].id,
            ),
            ACTOR,
        )
        assert info.fiscal_year_start == date(2025, 1, 1)
        assert info.result_account_id == standard_accounts["result"].id

    def test_integration_links(self, settings_service, company_id, standard_accounts):
        sales = standard_accounts["sales"].id
        cash = standard_accounts["cash"].id
        settings_service.save_settings(
            company_id,
            SettingsInput(**FY_2024, integration_accounts={"sales_account_id": sales}),
            ACTOR,
        )
        info = settings_service.save_settings(
            company_id,
            SettingsInput(**FY_2024, integration_accounts={"default_cash_account_id": cash}),
            ACTOR,
        )
        # Links absent from the second save are kept
        assert info.integration_accounts["sales_account_id"] == sales
        assert info.integration_accounts["default_cash_account_id"] == cash

    def test_clear_link(self, settings_service, company_id, standard_accounts):
        settings_service.save_settings(
            company_id,
            SettingsInput(**FY_2024, integration_accounts={"sales_account_id": standard_accounts["sales"].id}),
            ACTOR,
        )
        info = settings_service.save_settings(
            company_id,
            SettingsInput(**FY_2024, integration_accounts={"sales_account_id": None}),
            ACTOR,
        )
        assert info.integration_accounts["sales_account_id"] is None

    def test_unknown_link_name(self, settings_service, company_id):
        with pytest.raises(ValueError):
            settings_service.save_settings(
                company_id, SettingsInput(**FY_2024, integration_accounts={"petty_cash": uuid4()}), ACTOR
            )

    def test_foreign_result_account(self, settings_service, company_id, other_company_id, create_account):
        foreign = create_account("3.1.03", "Result", AccountType.EQUITY, company=other_company_id)
        with pytest.raises(AccountNotFoundError):
            settings_service.save_settings(
                company_id, SettingsInput(**FY_2024, result_account_id=foreign.id), ACTOR
            )

    def test_invalid_year_rejected(self, settings_service, company_id):
        with pytest.raises(InvalidFiscalYearError):
            settings_service.save_settings(
                company_id,
                SettingsInput(fiscal_year_start=date(2024, 12, 31), fiscal_year_end=date(2024, 1, 1)),
                ACTOR,
            )

    def test_missing(self, settings_service, company_id):
        with pytest.raises(SettingsNotFoundError):
            settings_service.get_settings(company_id)


class TestEntryNumbers:
    def test_next_number_increments(self, session, settings_service, company_id):
        settings_service.save_settings(company_id, SettingsInput(**FY_2024), ACTOR)
        numbers = EntryNumberService(session)

        assert numbers.current_number(company_id) == 0
        assert [numbers.next_number(company_id) for _ in range(3)] == [1, 2, 3]
        assert numbers.current_number(company_id) == 3
        assert settings_service.get_settings(company_id).last_entry_number == 3

    def test_requires_settings(self, session, company_id):
        with pytest.raises(SettingsNotFoundError):
            EntryNumberService(session).next_number(company_id)
