"""
Ledger configuration schema.

Frozen dataclasses the loader parses YAML into.  A ``LedgerConfig`` holds
the database and logging settings of a deployment plus the chart-of-accounts
templates new companies can be seeded from.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """Engine settings passed to ``ledger_kernel.db.engine``."""

    url: str = "sqlite:///:memory:"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


# ---------------------------------------------------------------------------
# Chart of accounts templates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChartAccountDef:
    """One account of a chart template.

    ``nature`` may be omitted; it then follows the account type.
    """

    code: str
    name: str
    account_type: str
    nature: str | None = None
    parent_code: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class ChartTemplate:
    """A named, ordered list of accounts.  Parents precede their children."""

    name: str
    accounts: tuple[ChartAccountDef, ...] = ()


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    """A complete, parsed configuration file."""

    config_id: str
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    charts: tuple[ChartTemplate, ...] = ()

    def chart(self, name: str) -> ChartTemplate:
        """Look up a chart template by name.

        Raises:
            KeyError: no template with that name.
        """
        for template in self.charts:
            if template.name == name:
                return template
        raise KeyError(f"Chart template not found: {name!r}")
