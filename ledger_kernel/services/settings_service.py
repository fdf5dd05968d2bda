"""
SettingsService -- per-company accounting settings.

Responsibility:
    Reads and upserts the fiscal year, the result account used by fiscal
    close and the integration account links.

Architecture position:
    Kernel > Services -- imperative shell.

Invariants enforced:
    - fiscal_year_end > fiscal_year_start, span at most 366 days.
    - Every linked account exists in the same company.
    - last_entry_number is never written here (EntryNumberService owns it).

Failure modes:
    - SettingsNotFoundError from get_settings.
    - InvalidFiscalYearError, AccountNotFoundError from save_settings.
"""

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.dtos import SettingsInput
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    InvalidFiscalYearError,
    SettingsNotFoundError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.settings import INTEGRATION_LINK_FIELDS, AccountingSettings
from ledger_kernel.services.base import BaseService

logger = get_logger("services.settings")

MAX_FISCAL_YEAR_DAYS = 366


@dataclass(frozen=True)
class SettingsInfo:
    """Read-only view of a company's accounting settings."""

    company_id: UUID
    fiscal_year_start: date
    fiscal_year_end: date
    last_entry_number: int
    result_account_id: UUID | None
    integration_accounts: dict[str, UUID | None]

    @classmethod
    def from_model(cls, model: AccountingSettings) -> "SettingsInfo":
        return cls(
            company_id=model.company_id,
            fiscal_year_start=model.fiscal_year_start,
            fiscal_year_end=model.fiscal_year_end,
            last_entry_number=model.last_entry_number,
            result_account_id=model.result_account_id,
            integration_accounts={
                name: getattr(model, name) for name in INTEGRATION_LINK_FIELDS
            },
        )


def validate_fiscal_year(start: date, end: date) -> None:
    """
    Raises:
        InvalidFiscalYearError: end not after start, or span over 366 days.
    """
    if end <= start:
        raise InvalidFiscalYearError(start, end, "fiscal year end must be after its start")
    if (end - start).days > MAX_FISCAL_YEAR_DAYS:
        raise InvalidFiscalYearError(
            start, end, f"fiscal year cannot exceed {MAX_FISCAL_YEAR_DAYS} days"
        )


class SettingsService(BaseService):
    """Accounting settings upsert and lookup."""

    def load(self, company_id: UUID) -> AccountingSettings:
        """The settings row itself, for other services.

        Raises:
            SettingsNotFoundError: the company has no settings yet.
        """
        settings = self.session.execute(
            select(AccountingSettings).where(AccountingSettings.company_id == company_id)
        ).scalar_one_or_none()
        if settings is None:
            raise SettingsNotFoundError(str(company_id))
        return settings

    def get_settings(self, company_id: UUID) -> SettingsInfo:
        return SettingsInfo.from_model(self.load(company_id))

    def _check_link(self, company_id: UUID, account_id: UUID | None) -> None:
        if account_id is None:
            return
        found = self.session.execute(
            select(Account.id).where(
                Account.id == account_id,
                Account.company_id == company_id,
            )
        ).first()
        if found is None:
            raise AccountNotFoundError(str(account_id))

    def save_settings(self, company_id: UUID, data: SettingsInput, actor: str) -> SettingsInfo:
        """
        Create or update the company's settings.

        Links absent from ``data.integration_accounts`` are left unchanged;
        a link present with None is cleared.

        Raises:
            InvalidFiscalYearError: bad fiscal year bounds.
            AccountNotFoundError: a linked account is unknown or foreign.
            ValueError: unknown integration link name.
        """
        validate_fiscal_year(data.fiscal_year_start, data.fiscal_year_end)

        unknown = set(data.integration_accounts) - set(INTEGRATION_LINK_FIELDS)
        if unknown:
            raise ValueError(f"Unknown integration account links: {', '.join(sorted(unknown))}")

        self._check_link(company_id, data.result_account_id)
        for account_id in data.integration_accounts.values():
            self._check_link(company_id, account_id)

        settings = self.session.execute(
            select(AccountingSettings).where(AccountingSettings.company_id == company_id)
        ).scalar_one_or_none()
        created = settings is None
        if created:
            settings = AccountingSettings(
                company_id=company_id,
                last_entry_number=0,
                created_by=actor,
            )
            self.session.add(settings)
        else:
            settings.updated_by = actor

        settings.fiscal_year_start = data.fiscal_year_start
        settings.fiscal_year_end = data.fiscal_year_end
        settings.result_account_id = data.result_account_id
        for name, account_id in data.integration_accounts.items():
            setattr(settings, name, account_id)
        self.session.flush()

        logger.info(
            "settings_saved",
            extra={
                "company_id": str(company_id),
                "settings_created": created,
                "fiscal_year_start": data.fiscal_year_start,
                "fiscal_year_end": data.fiscal_year_end,
            },
        )
        return SettingsInfo.from_model(settings)
