"""
Configuration Loader (``ledger_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``ledger_config.schema`` dataclasses, then applies environment overrides.
Runtime callers go through ``ledger_config.get_active_config()``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  No dependency on the kernel.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` or ``KeyError`` with descriptive
  messages; required fields have no silent defaults.
* Every parsed object is a frozen dataclass from ``schema.py``.
* Chart templates list parents before children and never repeat a code.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Bad value (unknown account type, misordered parent)  -> ``ValueError``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from ledger_config.schema import (
    ChartAccountDef,
    ChartTemplate,
    DatabaseConfig,
    LedgerConfig,
    LoggingConfig,
)

ACCOUNT_TYPES = frozenset({"asset", "liability", "equity", "revenue", "expense"})
NATURES = frozenset({"debit", "credit"})

ENV_DATABASE_URL = "LEDGER_DATABASE_URL"
ENV_LOG_LEVEL = "LEDGER_LOG_LEVEL"
ENV_SQL_ECHO = "LEDGER_SQL_ECHO"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_bool(value: Any) -> bool:
    """Parse a YAML or environment boolean.

    Raises:
        ValueError: if ``value`` is not a recognisable boolean.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ValueError(f"Cannot parse boolean from {value!r}")


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    defaults = DatabaseConfig()
    return DatabaseConfig(
        url=data.get("url", defaults.url),
        echo=parse_bool(data.get("echo", defaults.echo)),
        pool_size=int(data.get("pool_size", defaults.pool_size)),
        max_overflow=int(data.get("max_overflow", defaults.max_overflow)),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    return LoggingConfig(level=str(data.get("level", LoggingConfig.level)).upper())


def parse_chart_account(data: dict[str, Any]) -> ChartAccountDef:
    """Parse one chart account.

    Raises:
        KeyError: code, name or type missing.
        ValueError: unknown account type or nature.
    """
    account_type = str(data["type"]).lower()
    if account_type not in ACCOUNT_TYPES:
        raise ValueError(f"Unknown account type {data['type']!r} for account {data['code']}")

    nature = data.get("nature")
    if nature is not None:
        nature = str(nature).lower()
        if nature not in NATURES:
            raise ValueError(f"Unknown nature {data['nature']!r} for account {data['code']}")

    return ChartAccountDef(
        code=str(data["code"]),
        name=data["name"],
        account_type=account_type,
        nature=nature,
        parent_code=str(data["parent"]) if data.get("parent") is not None else None,
        description=data.get("description"),
    )


def parse_chart(data: dict[str, Any]) -> ChartTemplate:
    """Parse a chart template and check its ordering.

    Raises:
        ValueError: duplicate code, or a parent that does not precede its child.
    """
    accounts = tuple(parse_chart_account(a) for a in data.get("accounts", []))

    seen: set[str] = set()
    for account in accounts:
        if account.code in seen:
            raise ValueError(f"Duplicate account code {account.code} in chart {data['name']!r}")
        if account.parent_code is not None and account.parent_code not in seen:
            raise ValueError(
                f"Account {account.code} in chart {data['name']!r} references parent "
                f"{account.parent_code} before it is defined"
            )
        seen.add(account.code)

    return ChartTemplate(name=data["name"], accounts=accounts)


def parse_config(data: dict[str, Any]) -> LedgerConfig:
    """Parse a whole configuration document.

    Raises:
        KeyError: config_id missing.
    """
    return LedgerConfig(
        config_id=data["config_id"],
        database=parse_database(data.get("database") or {}),
        logging=parse_logging(data.get("logging") or {}),
        charts=tuple(parse_chart(c) for c in data.get("charts") or []),
    )


def apply_env_overrides(config: LedgerConfig, environ: Mapping[str, str] | None = None) -> LedgerConfig:
    """Overlay LEDGER_DATABASE_URL, LEDGER_LOG_LEVEL and LEDGER_SQL_ECHO."""
    env = os.environ if environ is None else environ

    database = config.database
    if env.get(ENV_DATABASE_URL):
        database = replace(database, url=env[ENV_DATABASE_URL])
    if ENV_SQL_ECHO in env:
        database = replace(database, echo=parse_bool(env[ENV_SQL_ECHO]))

    logging_config = config.logging
    if env.get(ENV_LOG_LEVEL):
        logging_config = replace(logging_config, level=env[ENV_LOG_LEVEL].upper())

    return replace(config, database=database, logging=logging_config)
