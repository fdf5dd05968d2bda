"""
AccountService -- write side of the chart of accounts.

Responsibility:
    Creates, updates, deactivates and bulk-imports accounts while keeping the
    chart's invariants: unique codes per company, same-company parents, no
    parent cycles, and a nature that matches the account type.

Architecture position:
    Kernel > Services -- imperative shell.  Reads through AccountSelector;
    pure rules come from ``ledger_kernel.domain.chart``.

Invariants enforced:
    - (company_id, code) is unique.
    - nature == NATURE_BY_TYPE[account_type].
    - A parent exists in the same company, is active, and is neither the
      account itself nor one of its descendants.
    - An account with journal lines keeps its type and nature.
    - An account with active children or journal lines is never deactivated.

Failure modes:
    - AccountNotFoundError, DuplicateAccountCodeError, InvalidNatureError,
      InvalidParentError, AccountHasActiveChildrenError,
      AccountHasMovementsError.

Audit relevance:
    Accounts are never deleted.  Every change records the acting user in
    created_by / updated_by.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.chart import is_descendant, is_valid_account_code
from ledger_kernel.domain.dtos import (
    AccountInfo,
    AccountInput,
    AccountUpdate,
    ChartImportResult,
    ChartImportRow,
)
from ledger_kernel.domain.values import AccountNature, AccountType, expected_nature
from ledger_kernel.exceptions import (
    AccountHasActiveChildrenError,
    AccountHasMovementsError,
    AccountNotFoundError,
    DuplicateAccountCodeError,
    InvalidNatureError,
    InvalidParentError,
    LedgerError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.services.base import BaseService

logger = get_logger("services.accounts")


class AccountService(BaseService):
    """
    Chart-of-accounts mutations.

    Contract:
        Every method is company-scoped and returns AccountInfo DTOs.  Writes
        are flushed; the caller commits.
    """

    def __init__(self, session, clock=None):
        super().__init__(session, clock)
        self._selector = AccountSelector(session)

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _get(self, company_id: UUID, account_id: UUID) -> Account:
        account = self.session.execute(
            select(Account).where(
                Account.id == account_id,
                Account.company_id == company_id,
            )
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    def _check_code_free(self, company_id: UUID, code: str, exclude_id: UUID | None = None) -> None:
        query = select(Account.id).where(
            Account.company_id == company_id,
            Account.code == code,
        )
        if exclude_id is not None:
            query = query.where(Account.id != exclude_id)
        if self.session.execute(query).first() is not None:
            raise DuplicateAccountCodeError(code)

    @staticmethod
    def _check_nature(account_type: AccountType, nature: AccountNature) -> None:
        expected = expected_nature(account_type)
        if AccountNature(nature) != expected:
            raise InvalidNatureError(
                AccountType(account_type).value,
                AccountNature(nature).value,
                expected.value,
            )

    def _check_parent(self, company_id: UUID, parent_id: UUID) -> Account:
        parent = self.session.execute(
            select(Account).where(Account.id == parent_id)
        ).scalar_one_or_none()
        if parent is None or parent.company_id != company_id:
            raise InvalidParentError(str(parent_id), "parent account not found in company")
        if not parent.is_active:
            raise InvalidParentError(str(parent_id), "parent account is inactive")
        return parent

    @staticmethod
    def _warn_code_format(code: str) -> None:
        if not is_valid_account_code(code):
            logger.warning("account_code_nonstandard", extra={"account_code": code})

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create_account(self, company_id: UUID, data: AccountInput, actor: str) -> AccountInfo:
        """
        Create an account.

        Validation order: nature against type, code uniqueness, parent.

        Raises:
            InvalidNatureError: nature does not match the type.
            DuplicateAccountCodeError: code already used in the company.
            InvalidParentError: parent missing, foreign or inactive.
        """
        self._check_nature(data.account_type, data.nature)
        self._check_code_free(company_id, data.code)
        if data.parent_id is not None:
            self._check_parent(company_id, data.parent_id)
        self._warn_code_format(data.code)

        account = Account(
            company_id=company_id,
            code=data.code,
            name=data.name,
            account_type=data.account_type,
            nature=data.nature,
            parent_id=data.parent_id,
            description=data.description,
            is_active=True,
            created_by=actor,
        )
        self.session.add(account)
        self.session.flush()

        logger.info(
            "account_created",
            extra={
                "company_id": str(company_id),
                "account_id": str(account.id),
                "account_code": account.code,
                "account_type": data.account_type.value,
            },
        )
        return AccountInfo.from_model(account)

    def update_account(
        self,
        company_id: UUID,
        account_id: UUID,
        changes: AccountUpdate,
        actor: str,
    ) -> AccountInfo:
        """
        Apply a partial update, re-validating only what changes.

        A new type without an explicit nature takes the nature of that type.

        Raises:
            AccountNotFoundError: unknown id or another company's account.
            DuplicateAccountCodeError: new code taken by another account.
            InvalidNatureError: resulting type/nature pair mismatched.
            InvalidParentError: parent missing, inactive, self or descendant.
            AccountHasMovementsError: type/nature change on an account with lines.
        """
        account = self._get(company_id, account_id)

        if changes.code is not None and changes.code != account.code:
            self._check_code_free(company_id, changes.code, exclude_id=account.id)
            self._warn_code_format(changes.code)
            account.code = changes.code

        if changes.changes_structure:
            new_type = changes.account_type or AccountType(account.account_type)
            if changes.nature is not None:
                new_nature = changes.nature
            elif changes.account_type is not None:
                new_nature = expected_nature(new_type)
            else:
                new_nature = AccountNature(account.nature)
            self._check_nature(new_type, new_nature)

            if new_type != account.account_type or new_nature != account.nature:
                line_count = self._selector.movement_count(account.id)
                if line_count:
                    raise AccountHasMovementsError(str(account.id), line_count)
                account.account_type = new_type
                account.nature = new_nature

        if changes.changes_parent:
            if changes.clear_parent:
                account.parent_id = None
            else:
                self._check_parent(company_id, changes.parent_id)
                parent_of = self._selector.parent_map(company_id)
                if is_descendant(changes.parent_id, account.id, parent_of):
                    raise InvalidParentError(
                        str(changes.parent_id),
                        "parent cannot be the account itself or one of its descendants",
                    )
                account.parent_id = changes.parent_id

        if changes.name is not None:
            account.name = changes.name
        if changes.description is not None:
            account.description = changes.description

        account.updated_by = actor
        self.session.flush()

        logger.info(
            "account_updated",
            extra={"company_id": str(company_id), "account_id": str(account.id)},
        )
        return AccountInfo.from_model(account)

    def deactivate_account(self, company_id: UUID, account_id: UUID, actor: str) -> AccountInfo:
        """
        Soft-delete an account.

        Raises:
            AccountNotFoundError: unknown id or another company's account.
            AccountHasActiveChildrenError: active sub-accounts exist.
            AccountHasMovementsError: journal lines reference the account.
        """
        account = self._get(company_id, account_id)

        child_count = self._selector.active_child_count(account.id)
        if child_count:
            raise AccountHasActiveChildrenError(str(account.id), child_count)

        line_count = self._selector.movement_count(account.id)
        if line_count:
            raise AccountHasMovementsError(str(account.id), line_count)

        account.is_active = False
        account.updated_by = actor
        self.session.flush()

        logger.info(
            "account_deactivated",
            extra={
                "company_id": str(company_id),
                "account_id": str(account.id),
                "account_code": account.code,
            },
        )
        return AccountInfo.from_model(account)

    def import_chart(
        self,
        company_id: UUID,
        rows: Iterable[ChartImportRow],
        actor: str,
    ) -> ChartImportResult:
        """
        Create a batch of accounts, resolving ``parent_code`` to ids.

        Rows are processed in order, so a parent must come before its
        children.  Existing codes are skipped.  Each row runs in a savepoint;
        a failing row is reported and does not undo the others.

        Raises:
            DuplicateAccountCodeError: the same code appears twice in the batch.
        """
        rows = list(rows)
        seen: set[str] = set()
        for row in rows:
            if row.code in seen:
                raise DuplicateAccountCodeError(row.code)
            seen.add(row.code)

        id_by_code = {
            code: account_id
            for account_id, code in self.session.execute(
                select(Account.id, Account.code).where(Account.company_id == company_id)
            )
        }

        imported = 0
        skipped = 0
        errors: list[str] = []
        for row in rows:
            if row.code in id_by_code:
                skipped += 1
                continue

            parent_id = None
            if row.parent_code:
                parent_id = id_by_code.get(row.parent_code)
                if parent_id is None:
                    errors.append(f"{row.code}: parent account {row.parent_code} not found")
                    continue

            savepoint = self.session.begin_nested()
            try:
                created = self.create_account(
                    company_id,
                    AccountInput(
                        code=row.code,
                        name=row.name,
                        account_type=row.account_type,
                        nature=row.nature,
                        parent_id=parent_id,
                        description=row.description,
                    ),
                    actor,
                )
            except LedgerError as exc:
                savepoint.rollback()
                errors.append(f"{row.code}: {exc}")
                continue
            savepoint.commit()
            id_by_code[created.code] = created.id
            imported += 1

        logger.info(
            "chart_imported",
            extra={
                "company_id": str(company_id),
                "imported": imported,
                "skipped": skipped,
                "error_count": len(errors),
            },
        )
        return ChartImportResult(imported=imported, skipped=skipped, errors=tuple(errors))
