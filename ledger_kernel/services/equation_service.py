"""
EquationService -- Assets = Liabilities + Equity check.

Uses the raw (debit - credit) balance per account type.  Liabilities and
equity are credit-natured, so their raw balances are negated before the
comparison.  Revenue and expense balances of an unclosed year sit outside
the three classes; they are reported as ``current_result`` and compared
next to equity (assets == liabilities + equity + current_result), so a
ledger of balanced entries always verifies.

An unbalanced result is returned and logged as ``equation_unbalanced``;
it is never raised.
"""

from datetime import date
from uuid import UUID

from ledger_kernel.db.types import amounts_equal, round_money
from ledger_kernel.domain.dtos import EquationResult
from ledger_kernel.domain.values import AccountType
from ledger_kernel.logging_config import get_logger
from ledger_kernel.selectors.balance_selector import BalanceSelector
from ledger_kernel.services.base import BaseService

logger = get_logger("services.equation")


class EquationService(BaseService):
    """Accounting equation verifier."""

    def verify_equation(self, company_id: UUID, upto_date: date | None = None) -> EquationResult:
        by_type = BalanceSelector(self.session).balance_by_type(company_id, upto_date)

        assets = by_type[AccountType.ASSET]
        liabilities = -by_type[AccountType.LIABILITY]
        equity = -by_type[AccountType.EQUITY]
        # Net income to date: revenue credit minus expense debit
        current_result = -(by_type[AccountType.REVENUE] + by_type[AccountType.EXPENSE])

        claims = liabilities + equity + current_result
        difference = round_money(assets - claims)
        is_balanced = amounts_equal(assets, claims)

        result = EquationResult(
            assets=assets,
            liabilities=liabilities,
            equity=equity,
            current_result=current_result,
            difference=difference,
            is_balanced=is_balanced,
            as_of=upto_date,
        )

        if not is_balanced:
            logger.warning(
                "equation_unbalanced",
                extra={
                    "company_id": str(company_id),
                    "assets": assets,
                    "liabilities": liabilities,
                    "equity": equity,
                    "current_result": current_result,
                    "difference": difference,
                    "as_of": upto_date,
                },
            )
        return result
