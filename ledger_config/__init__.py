"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.  Returns a frozen ``LedgerConfig``.

Architecture position:
    Configuration -- YAML-driven deployment settings and chart templates.
    This package sits above ``ledger_kernel``.  The kernel MUST NEVER
    import from ``ledger_config``; bridges in this package translate
    configuration into kernel inputs.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Environment overrides (LEDGER_DATABASE_URL, LEDGER_LOG_LEVEL,
      LEDGER_SQL_ECHO) are applied after parsing and win over the file.
    - Chart templates are validated at load time: known account types,
      unique codes, parents before children.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``KeyError`` / ``ValueError`` -- schema or structural validation failures.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``LEDGER_CONFIG_TRACE`` log entry with the config_id, the database
    dialect and the chart template names.  The database URL itself is not
    logged.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ledger_config.loader import apply_env_overrides, load_yaml_file, parse_config
from ledger_config.schema import (
    ChartAccountDef,
    ChartTemplate,
    DatabaseConfig,
    LedgerConfig,
    LoggingConfig,
)

_logger = logging.getLogger("ledger_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
DEFAULT_CONFIG_PATH = _DEFAULT_CONFIG_DIR / "default.yaml"


def get_active_config(path: Path | str | None = None) -> LedgerConfig:
    """The ONLY public configuration entrypoint.

    Contract:
        No other component may read configuration files or environment
        variables.  All configuration flows through this function.

    Guarantees:
        - The returned ``LedgerConfig`` is frozen and has passed chart
          template validation.
        - Environment overrides have been applied.
        - A ``LEDGER_CONFIG_TRACE`` log entry is emitted on every
          successful call.

    Non-goals:
        - This function does NOT cache configurations across calls.

    Args:
        path: Configuration file.  Defaults to ledger_config/sets/default.yaml.

    Returns:
        LedgerConfig.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        KeyError: If a required key is missing.
        ValueError: If a value fails validation.
    """
    config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH

    config = apply_env_overrides(parse_config(load_yaml_file(config_path)))

    _logger.info(
        "LEDGER_CONFIG_TRACE",
        extra={
            "trace_type": "LEDGER_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_path": str(config_path),
            "dialect": config.database.url.split(":", 1)[0],
            "log_level": config.logging.level,
            "charts": [c.name for c in config.charts],
        },
    )
    return config


__all__ = [
    "ChartAccountDef",
    "ChartTemplate",
    "DEFAULT_CONFIG_PATH",
    "DatabaseConfig",
    "LedgerConfig",
    "LoggingConfig",
    "get_active_config",
]
