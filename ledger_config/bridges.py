"""
Config → Kernel Bridges.

Functions that turn a LedgerConfig into kernel inputs and a running
engine.  These live in ledger_config (the producer) because the kernel
must NEVER import ledger_config.

Usage:
    from ledger_config import get_active_config
    from ledger_config.bridges import bootstrap, seed_chart

    config = get_active_config()
    engine = bootstrap(config)
    with session_scope() as session:
        seed_chart(session, company_id, config, "default", actor="setup")
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from ledger_config.schema import ChartTemplate, LedgerConfig
from ledger_kernel.db.engine import create_tables, init_engine_from_url
from ledger_kernel.db.immutability import register_immutability_listeners
from ledger_kernel.domain.dtos import ChartImportResult, ChartImportRow
from ledger_kernel.logging_config import configure_logging
from ledger_kernel.services.account_service import AccountService


def chart_template_to_inputs(template: ChartTemplate) -> tuple[ChartImportRow, ...]:
    """Convert a chart template into import rows, keeping its parent-first order."""
    return tuple(
        ChartImportRow(
            code=account.code,
            name=account.name,
            account_type=account.account_type,
            nature=account.nature,
            description=account.description,
            parent_code=account.parent_code,
        )
        for account in template.accounts
    )


def bootstrap(config: LedgerConfig, create_schema: bool = False) -> Engine:
    """
    Wire the kernel from configuration.

    Configures logging at the configured level, initializes the module-level
    engine and session factory, and registers the immutability listeners.
    With ``create_schema`` the tables are created as well.
    """
    configure_logging(level=config.logging.level)
    engine = init_engine_from_url(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
    )
    register_immutability_listeners()
    if create_schema:
        create_tables(engine)
    return engine


def seed_chart(
    session: Session,
    company_id: UUID,
    config: LedgerConfig,
    chart_name: str,
    actor: str,
) -> ChartImportResult:
    """Import a configured chart template into a company.

    Raises:
        KeyError: no template named ``chart_name``.
    """
    rows = chart_template_to_inputs(config.chart(chart_name))
    return AccountService(session).import_chart(company_id, rows, actor)
