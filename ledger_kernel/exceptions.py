"""
Typed exception hierarchy for the ledger kernel.

Every failure a caller can observe is a subclass of ``LedgerError`` with a
machine-readable ``code`` class attribute and structured attributes.
Callers catch by type or category, never by parsing messages:

    try:
        service.post_entry(company_id, entry_id, actor_id)
    except EntryNotDraftError as e:
        api_response(code=e.code, status=e.current_status)
    except ValidationFailedError as e:
        api_response(code=e.code, message=str(e))

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerError (base)
    |
    +-- NotFoundError
    |   +-- AccountNotFoundError
    |   +-- EntryNotFoundError
    |   +-- RecurringEntryNotFoundError
    |
    +-- ValidationFailedError
    |   +-- UnbalancedEntryError
    |   +-- InsufficientLinesError
    |   +-- ZeroAmountEntryError
    |   +-- InvalidLineAmountError
    |   +-- InvalidNatureError
    |   +-- DuplicateAccountCodeError
    |   +-- InvalidParentError
    |   +-- AccountInactiveError
    |   +-- DateOutsideFiscalYearError
    |   +-- InvalidFiscalYearError
    |   +-- InvalidRecurringTemplateError
    |   +-- NothingToCloseError
    |
    +-- InvalidStateTransitionError
    |   +-- EntryNotDraftError
    |   +-- EntryNotPostedError
    |   +-- FiscalYearAlreadyClosedError
    |   +-- RecurringEntryInactiveError
    |
    +-- DependencyConflictError
    |   +-- AccountHasActiveChildrenError
    |   +-- AccountHasMovementsError
    |
    +-- ConfigurationMissingError
    |   +-- SettingsNotFoundError
    |   +-- ResultAccountNotConfiguredError
    |
    +-- ImmutabilityViolationError

Category        | Code                           | When Raised
----------------|--------------------------------|------------------------------------
Not found       | ACCOUNT_NOT_FOUND              | Account missing or other company
                | ENTRY_NOT_FOUND                | Entry missing or other company
                | RECURRING_ENTRY_NOT_FOUND      | Template missing or other company
----------------|--------------------------------|------------------------------------
Validation      | UNBALANCED_ENTRY               | |debits - credits| >= 0.01
                | INSUFFICIENT_LINES             | Fewer than two lines
                | ZERO_AMOUNT_ENTRY              | Every amount is zero
                | INVALID_LINE_AMOUNT            | Negative, both sides or no side
                | INVALID_NATURE                 | Nature does not match type
                | DUPLICATE_ACCOUNT_CODE         | Code already used in company
                | INVALID_PARENT                 | Missing parent or would cycle
                | ACCOUNT_INACTIVE               | Line references inactive account
                | DATE_OUTSIDE_FISCAL_YEAR       | Entry date outside fiscal year
                | INVALID_FISCAL_YEAR            | end <= start or span > 366 days
                | INVALID_RECURRING_TEMPLATE     | Template lines malformed
                | NOTHING_TO_CLOSE               | No revenue/expense balances
----------------|--------------------------------|------------------------------------
State           | ENTRY_NOT_DRAFT                | Post/edit/delete a non-draft
                | ENTRY_NOT_POSTED               | Reverse a non-posted entry
                | FISCAL_YEAR_ALREADY_CLOSED     | Closing entry already exists
                | RECURRING_ENTRY_INACTIVE       | Generate from inactive template
----------------|--------------------------------|------------------------------------
Dependency      | ACCOUNT_HAS_ACTIVE_CHILDREN    | Deactivate account with children
                | ACCOUNT_HAS_MOVEMENTS          | Deactivate/retype referenced account
----------------|--------------------------------|------------------------------------
Configuration   | SETTINGS_NOT_FOUND             | Company has no accounting settings
                | RESULT_ACCOUNT_NOT_CONFIGURED  | Fiscal close without result account
----------------|--------------------------------|------------------------------------
Immutability    | IMMUTABILITY_VIOLATION         | Modifying a posted/reversed record

Nature mismatches and accounting-equation drift are NOT exceptions: they are
reported as data alongside successful results.
"""

from datetime import date
from decimal import Decimal


class LedgerError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses carry a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_ERROR"


# Not found


class NotFoundError(LedgerError):
    """A referenced record does not exist for the requesting company."""

    code: str = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    """Account does not exist or belongs to another company."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: str):
        self.account_id = str(account_id)
        super().__init__(f"Account not found: {account_id}")


class EntryNotFoundError(NotFoundError):
    """Journal entry does not exist or belongs to another company."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = str(entry_id)
        super().__init__(f"Journal entry not found: {entry_id}")


class RecurringEntryNotFoundError(NotFoundError):
    """Recurring entry template does not exist or belongs to another company."""

    code: str = "RECURRING_ENTRY_NOT_FOUND"

    def __init__(self, template_id: str):
        self.template_id = str(template_id)
        super().__init__(f"Recurring entry not found: {template_id}")


# Validation


class ValidationFailedError(LedgerError):
    """Input was rejected by a hard validation rule."""

    code: str = "VALIDATION_FAILED"


class UnbalancedEntryError(ValidationFailedError):
    """Total debits and total credits differ by at least the tolerance."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, debits: Decimal, credits: Decimal):
        self.debits = debits
        self.credits = credits
        self.difference = abs(debits - credits)
        super().__init__(
            f"Entry is not balanced: debits {debits}, credits {credits}, "
            f"difference {self.difference}"
        )


class InsufficientLinesError(ValidationFailedError):
    """An entry needs at least two lines."""

    code: str = "INSUFFICIENT_LINES"

    def __init__(self, line_count: int):
        self.line_count = line_count
        super().__init__(f"Entry must have at least 2 lines, got {line_count}")


class ZeroAmountEntryError(ValidationFailedError):
    """Every line amount is zero."""

    code: str = "ZERO_AMOUNT_ENTRY"

    def __init__(self):
        super().__init__("Entry must carry at least one non-zero amount")


class InvalidLineAmountError(ValidationFailedError):
    """A line is negative, has both sides populated, or has neither."""

    code: str = "INVALID_LINE_AMOUNT"

    def __init__(self, line_index: int, reason: str):
        self.line_index = line_index
        self.reason = reason
        super().__init__(f"Line {line_index + 1}: {reason}")


class InvalidNatureError(ValidationFailedError):
    """Account nature does not match the nature required by its type."""

    code: str = "INVALID_NATURE"

    def __init__(self, account_type: str, nature: str, expected: str):
        self.account_type = str(account_type)
        self.nature = str(nature)
        self.expected = str(expected)
        super().__init__(
            f"Nature {nature} is not valid for {account_type} accounts "
            f"(expected {expected})"
        )


class DuplicateAccountCodeError(ValidationFailedError):
    """Account code already exists in the company."""

    code: str = "DUPLICATE_ACCOUNT_CODE"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account code already exists: {account_code}")


class InvalidParentError(ValidationFailedError):
    """Parent account is missing, foreign, or a descendant of the account."""

    code: str = "INVALID_PARENT"

    def __init__(self, parent_id: str, reason: str):
        self.parent_id = str(parent_id)
        self.reason = reason
        super().__init__(f"Invalid parent account {parent_id}: {reason}")


class AccountInactiveError(ValidationFailedError):
    """A line references a deactivated account."""

    code: str = "ACCOUNT_INACTIVE"

    def __init__(self, account_id: str, account_code: str | None = None):
        self.account_id = str(account_id)
        self.account_code = account_code
        super().__init__(f"Account is inactive: {account_code or account_id}")


class DateOutsideFiscalYearError(ValidationFailedError):
    """Entry date falls outside the configured fiscal year."""

    code: str = "DATE_OUTSIDE_FISCAL_YEAR"

    def __init__(self, entry_date: date, fiscal_year_start: date, fiscal_year_end: date):
        self.entry_date = entry_date
        self.fiscal_year_start = fiscal_year_start
        self.fiscal_year_end = fiscal_year_end
        super().__init__(
            f"Date {entry_date.isoformat()} is outside the fiscal year "
            f"{fiscal_year_start.isoformat()} to {fiscal_year_end.isoformat()}"
        )


class InvalidFiscalYearError(ValidationFailedError):
    """Fiscal year bounds are inverted or span more than 366 days."""

    code: str = "INVALID_FISCAL_YEAR"

    def __init__(self, fiscal_year_start: date, fiscal_year_end: date, reason: str):
        self.fiscal_year_start = fiscal_year_start
        self.fiscal_year_end = fiscal_year_end
        self.reason = reason
        super().__init__(f"Invalid fiscal year: {reason}")


class InvalidRecurringTemplateError(ValidationFailedError):
    """Recurring template lines do not form a valid entry."""

    code: str = "INVALID_RECURRING_TEMPLATE"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid recurring entry: {reason}")


class NothingToCloseError(ValidationFailedError):
    """No revenue or expense account carries a balance in the fiscal year."""

    code: str = "NOTHING_TO_CLOSE"

    def __init__(self, fiscal_year_start: date, fiscal_year_end: date):
        self.fiscal_year_start = fiscal_year_start
        self.fiscal_year_end = fiscal_year_end
        super().__init__(
            "No revenue or expense balances to close between "
            f"{fiscal_year_start.isoformat()} and {fiscal_year_end.isoformat()}"
        )


# State transitions


class InvalidStateTransitionError(LedgerError):
    """An operation is not legal in the record's current state."""

    code: str = "INVALID_STATE_TRANSITION"

    def __init__(self, entity_id: str, current_status: str, action: str):
        self.entity_id = str(entity_id)
        self.current_status = str(current_status)
        self.action = action
        super().__init__(
            f"Cannot {action} {entity_id}: status is {current_status}"
        )


class EntryNotDraftError(InvalidStateTransitionError):
    """Post, edit or delete attempted on an entry that is not a draft."""

    code: str = "ENTRY_NOT_DRAFT"


class EntryNotPostedError(InvalidStateTransitionError):
    """Reversal attempted on an entry that is not posted."""

    code: str = "ENTRY_NOT_POSTED"


class FiscalYearAlreadyClosedError(InvalidStateTransitionError):
    """A closing entry already exists for the fiscal year."""

    code: str = "FISCAL_YEAR_ALREADY_CLOSED"

    def __init__(self, closing_entry_id: str, closing_entry_number: int):
        self.closing_entry_id = str(closing_entry_id)
        self.closing_entry_number = closing_entry_number
        super().__init__(closing_entry_id, "closed", "close fiscal year of")


class RecurringEntryInactiveError(InvalidStateTransitionError):
    """Generation attempted from a deactivated template."""

    code: str = "RECURRING_ENTRY_INACTIVE"

    def __init__(self, template_id: str):
        super().__init__(template_id, "inactive", "generate from")


# Dependency conflicts


class DependencyConflictError(LedgerError):
    """Operation blocked by records that depend on the target."""

    code: str = "DEPENDENCY_CONFLICT"


class AccountHasActiveChildrenError(DependencyConflictError):
    """Account still has active child accounts."""

    code: str = "ACCOUNT_HAS_ACTIVE_CHILDREN"

    def __init__(self, account_id: str, child_count: int):
        self.account_id = str(account_id)
        self.child_count = child_count
        super().__init__(
            f"Account {account_id} has {child_count} active child account(s)"
        )


class AccountHasMovementsError(DependencyConflictError):
    """Account is referenced by journal lines."""

    code: str = "ACCOUNT_HAS_MOVEMENTS"

    def __init__(self, account_id: str, line_count: int):
        self.account_id = str(account_id)
        self.line_count = line_count
        super().__init__(
            f"Account {account_id} is referenced by {line_count} journal line(s)"
        )


# Configuration


class ConfigurationMissingError(LedgerError):
    """Required accounting configuration has not been set up."""

    code: str = "CONFIGURATION_MISSING"


class SettingsNotFoundError(ConfigurationMissingError):
    """Company has no accounting settings."""

    code: str = "SETTINGS_NOT_FOUND"

    def __init__(self, company_id: str):
        self.company_id = str(company_id)
        super().__init__(f"Accounting settings not configured for company {company_id}")


class ResultAccountNotConfiguredError(ConfigurationMissingError):
    """Fiscal close needs a result account in the settings."""

    code: str = "RESULT_ACCOUNT_NOT_CONFIGURED"

    def __init__(self, company_id: str):
        self.company_id = str(company_id)
        super().__init__(f"No result account configured for company {company_id}")


class InvalidResultAccountError(ConfigurationMissingError):
    """Configured result account is inactive or a revenue/expense account."""

    code: str = "INVALID_RESULT_ACCOUNT"

    def __init__(self, account_id: str, reason: str):
        self.account_id = str(account_id)
        self.reason = reason
        super().__init__(f"Result account {account_id} cannot take the close: {reason}")


# Immutability


class ImmutabilityViolationError(LedgerError):
    """Attempted to modify or delete an immutable record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
