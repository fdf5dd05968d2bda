"""
Configuration loading tests.

Covers the YAML loader, environment overrides, chart template validation
and the bridges that turn configuration into kernel inputs.
"""

from textwrap import dedent
from uuid import uuid4

import pytest
import yaml

from ledger_config import DEFAULT_CONFIG_PATH, get_active_config
from ledger_config.bridges import bootstrap, chart_template_to_inputs, seed_chart
from ledger_config.loader import (
    ENV_DATABASE_URL,
    ENV_LOG_LEVEL,
    ENV_SQL_ECHO,
    apply_env_overrides,
    parse_bool,
    parse_chart,
    parse_config,
)
from ledger_kernel.db.engine import get_session_factory, reset_engine
from ledger_kernel.domain.values import AccountNature, AccountType
from ledger_kernel.selectors.account_selector import AccountSelector


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in (ENV_DATABASE_URL, ENV_LOG_LEVEL, ENV_SQL_ECHO):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def write_config(tmp_path):
    def _write(text):
        path = tmp_path / "ledger.yaml"
        path.write_text(dedent(text))
        return path

    return _write


class TestDefaultConfig:
    def test_loads(self):
        config = get_active_config()
        assert config.config_id == "default"
        assert config.database.url == "sqlite:///ledger.db"
        assert config.logging.level == "INFO"
        assert [c.name for c in config.charts] == ["default"]

    def test_default_chart_shape(self):
        chart = get_active_config().chart("default")
        codes = [a.code for a in chart.accounts]
        assert len(codes) == 30
        assert len(set(codes)) == 30
        assert {a.account_type for a in chart.accounts} == {
            "asset",
            "liability",
            "equity",
            "revenue",
            "expense",
        }

    def test_unknown_chart(self):
        with pytest.raises(KeyError):
            get_active_config().chart("missing")

    def test_file_is_valid_yaml(self):
        with open(DEFAULT_CONFIG_PATH) as f:
            assert yaml.safe_load(f)["config_id"] == "default"

    def test_trace_logged(self, captured_logs):
        get_active_config()
        traces = [r for r in captured_logs() if r["message"] == "LEDGER_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["config_id"] == "default"
        assert traces[0]["dialect"] == "sqlite"
        assert traces[0]["charts"] == ["default"]
        assert "ledger.db" not in str(traces[0])


class TestParsing:
    def test_minimal_document(self, write_config):
        config = get_active_config(write_config("config_id: minimal\n"))
        assert config.database.url == "sqlite:///:memory:"
        assert config.database.pool_size == 20
        assert config.charts == ()

    def test_missing_config_id(self):
        with pytest.raises(KeyError):
            parse_config({"database": {"url": "sqlite://"}})

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config(tmp_path / "nope.yaml")

    def test_database_and_logging(self, write_config):
        config = get_active_config(write_config("""
            config_id: prod
            database:
              url: postgresql+psycopg2://ledger@db/ledger
              echo: "yes"
              pool_size: 5
              max_overflow: 2
            logging:
              level: warning
        """))
        assert config.database.echo is True
        assert config.database.pool_size == 5
        assert config.database.max_overflow == 2
        assert config.logging.level == "WARNING"

    @pytest.mark.parametrize("value,expected", [(True, True), ("on", True), ("0", False), ("", False)])
    def test_parse_bool(self, value, expected):
        assert parse_bool(value) is expected

    def test_parse_bool_rejects_junk(self):
        with pytest.raises(ValueError):
            parse_bool("maybe")


class TestChartValidation:
    def test_parent_before_child(self):
        chart = parse_chart({
            "name": "tiny",
            "accounts": [
                {"code": "1.0.0", "name": "Assets", "type": "asset"},
                {"code": "1.1.01", "name": "Cash", "type": "Asset", "parent": "1.0.0"},
            ],
        })
        assert chart.accounts[1].parent_code == "1.0.0"
        assert chart.accounts[1].account_type == "asset"

    def test_misordered_parent(self):
        with pytest.raises(ValueError, match="before it is defined"):
            parse_chart({
                "name": "tiny",
                "accounts": [
                    {"code": "1.1.01", "name": "Cash", "type": "asset", "parent": "1.0.0"},
                    {"code": "1.0.0", "name": "Assets", "type": "asset"},
                ],
            })

    def test_duplicate_code(self):
        with pytest.raises(ValueError, match="Duplicate"):
            parse_chart({
                "name": "tiny",
                "accounts": [
                    {"code": "1.0.0", "name": "Assets", "type": "asset"},
                    {"code": "1.0.0", "name": "Again", "type": "asset"},
                ],
            })

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown account type"):
            parse_chart({"name": "tiny", "accounts": [{"code": "9.0.0", "name": "Memo", "type": "memo"}]})

    def test_unknown_nature(self):
        with pytest.raises(ValueError, match="Unknown nature"):
            parse_chart({
                "name": "tiny",
                "accounts": [{"code": "1.0.0", "name": "Assets", "type": "asset", "nature": "both"}],
            })

    def test_missing_name(self):
        with pytest.raises(KeyError):
            parse_chart({"name": "tiny", "accounts": [{"code": "1.0.0", "type": "asset"}]})


class TestEnvironmentOverrides:
    def test_env_wins_over_file(self, monkeypatch):
        monkeypatch.setenv(ENV_DATABASE_URL, "postgresql+psycopg2://ci@localhost/ledger_test")
        monkeypatch.setenv(ENV_LOG_LEVEL, "debug")
        monkeypatch.setenv(ENV_SQL_ECHO, "true")

        config = get_active_config()
        assert config.database.url == "postgresql+psycopg2://ci@localhost/ledger_test"
        assert config.database.echo is True
        assert config.logging.level == "DEBUG"

    def test_explicit_environ(self):
        config = parse_config({"config_id": "x"})
        overridden = apply_env_overrides(config, {ENV_DATABASE_URL: "sqlite:///other.db"})
        assert overridden.database.url == "sqlite:///other.db"
        assert config.database.url == "sqlite:///:memory:"

    def test_empty_url_ignored(self):
        config = parse_config({"config_id": "x"})
        assert apply_env_overrides(config, {ENV_DATABASE_URL: ""}).database.url == "sqlite:///:memory:"


class TestBridges:
    def test_chart_rows(self):
        rows = chart_template_to_inputs(get_active_config().chart("default"))
        by_code = {r.code: r for r in rows}

        assert rows[0].code == "1.0.0"
        assert by_code["1.1.01"].parent_code == "1.1.0"
        assert by_code["1.1.01"].account_type == AccountType.ASSET
        assert by_code["1.2.02"].nature == AccountNature.DEBIT
        assert by_code["1.2.02"].description == "Contra-asset"

    def test_seed_chart(self, session, company_id):
        config = get_active_config()

        first = seed_chart(session, company_id, config, "default", actor="setup")
        assert first.imported == 30
        assert first.errors == ()

        second = seed_chart(session, company_id, config, "default", actor="setup")
        assert second.imported == 0
        assert second.skipped == 30

        tree = AccountSelector(session).account_tree(company_id)
        assert [node.account.code for node in tree] == ["1.0.0", "2.0.0", "3.0.0", "4.0.0", "5.0.0"]

    def test_seed_unknown_chart(self, session):
        with pytest.raises(KeyError):
            seed_chart(session, uuid4(), get_active_config(), "missing", actor="setup")

    def test_bootstrap(self, write_config):
        config = get_active_config(write_config("""
            config_id: boot
            database:
              url: "sqlite://"
            logging:
              level: DEBUG
        """))
        try:
            engine = bootstrap(config, create_schema=True)
            assert engine.dialect.name == "sqlite"
            assert get_session_factory() is not None
        finally:
            reset_engine()
