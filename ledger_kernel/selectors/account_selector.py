"""
Module: ledger_kernel.selectors.account_selector
Responsibility: Read-only queries over the chart of accounts: flat lists,
    single-account detail, the account forest and next-code suggestion.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/ and selectors/base.py.  MUST NOT import from services/.

Invariants enforced:
    - Every query is scoped to one company.
    - Lists are ordered by code; the tree keeps that order among siblings.

Failure modes:
    - AccountNotFoundError from get_account when the id is unknown or owned
      by another company.  List queries return empty results instead.
"""

from uuid import UUID

from sqlalchemy import func, select

from ledger_kernel.domain.chart import ROOT_DIGIT_BY_TYPE, build_tree, next_account_code
from ledger_kernel.domain.dtos import AccountDetail, AccountInfo, AccountNode
from ledger_kernel.domain.values import AccountType
from ledger_kernel.exceptions import AccountNotFoundError
from ledger_kernel.models.account import Account
from ledger_kernel.models.journal import JournalEntryLine
from ledger_kernel.selectors.base import BaseSelector


def _code_sort_key(code: str) -> tuple:
    # "1.1.10" sorts after "1.1.9"
    return tuple(int(part) if part.isdigit() else -1 for part in code.split("."))


class AccountSelector(BaseSelector):
    """
    Chart-of-accounts queries.

    Contract:
        Returns AccountInfo / AccountDetail / AccountNode DTOs, never ORM rows.
    """

    def list_accounts(
        self,
        company_id: UUID,
        include_inactive: bool = False,
    ) -> list[AccountInfo]:
        query = select(Account).where(Account.company_id == company_id)
        if not include_inactive:
            query = query.where(Account.is_active.is_(True))
        query = query.order_by(Account.code)
        accounts = self.session.execute(query).scalars().all()
        return [AccountInfo.from_model(a) for a in accounts]

    def get_account(self, company_id: UUID, account_id: UUID) -> AccountDetail:
        """
        One account with its active direct children.

        Raises:
            AccountNotFoundError: unknown id or another company's account.
        """
        account = self.session.execute(
            select(Account).where(
                Account.id == account_id,
                Account.company_id == company_id,
            )
        ).scalar_one_or_none()
        if account is None:
            raise AccountNotFoundError(str(account_id))

        children = self.session.execute(
            select(Account)
            .where(
                Account.parent_id == account_id,
                Account.is_active.is_(True),
            )
            .order_by(Account.code)
        ).scalars().all()

        return AccountDetail(
            account=AccountInfo.from_model(account),
            children=tuple(AccountInfo.from_model(c) for c in children),
        )

    def account_tree(self, company_id: UUID) -> list[AccountNode]:
        """Forest of the company's active accounts."""
        return build_tree(self.list_accounts(company_id))

    def suggest_next_code(self, company_id: UUID, account_type: AccountType) -> str:
        """
        Next free-looking code under the type's root digit.

        Considers inactive accounts too, so a suggestion never repeats a
        retired code.
        """
        root = str(ROOT_DIGIT_BY_TYPE[AccountType(account_type)])
        codes = self.session.execute(
            select(Account.code).where(
                Account.company_id == company_id,
                Account.code.startswith(f"{root}."),
            )
        ).scalars().all()
        last_code = max(codes, key=_code_sort_key) if codes else None
        return next_account_code(account_type, last_code)

    def active_child_count(self, account_id: UUID) -> int:
        return self.session.execute(
            select(func.count(Account.id)).where(
                Account.parent_id == account_id,
                Account.is_active.is_(True),
            )
        ).scalar_one()

    def movement_count(self, account_id: UUID) -> int:
        """Number of journal lines referencing the account, in any status."""
        return self.session.execute(
            select(func.count(JournalEntryLine.id)).where(
                JournalEntryLine.account_id == account_id,
            )
        ).scalar_one()

    def parent_map(self, company_id: UUID) -> dict[UUID, UUID | None]:
        """account id -> parent id for every account of the company."""
        rows = self.session.execute(
            select(Account.id, Account.parent_id).where(Account.company_id == company_id)
        )
        return {row.id: row.parent_id for row in rows}
