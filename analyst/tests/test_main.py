from unittest.mock import MagicMock, patch

import pytest

from config import Settings
from conftest import FakeTerminal
from core.console import Key
from core.errors import ConfigurationError, DatabaseConnectionError, SchemaExtractionError
from main import main, run_assistant

BASE = "Driver={ODBC Driver 18 for SQL Server};Server=localhost;UID=sa;PWD=x"


def _settings(tmp_path, **overrides):
    values = {
        "SQLSERVER_CONNECTION_STRING": BASE,
        "OPENAI_API_KEY": "test-key",
        "SCHEMA_CACHE_PATH": str(tmp_path / "cache.json"),
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_require_credentials(tmp_path):
    _settings(tmp_path).require_credentials()
    with pytest.raises(ConfigurationError, match="SQLSERVER_CONNECTION_STRING"):
        _settings(tmp_path, SQLSERVER_CONNECTION_STRING="").require_credentials()
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        _settings(tmp_path, OPENAI_API_KEY=" ").require_credentials()


def test_missing_credentials_is_fatal(tmp_path):
    terminal = FakeTerminal()
    with patch("main.list_databases") as list_dbs:
        assert main(_settings(tmp_path, OPENAI_API_KEY=""), terminal) == 1
    list_dbs.assert_not_called()
    assert "OPENAI_API_KEY is not set" in terminal.output


def test_no_databases_is_fatal(tmp_path):
    terminal = FakeTerminal()
    with patch("main.list_databases", return_value=[]):
        assert main(_settings(tmp_path), terminal) == 1
    assert "No databases found" in terminal.output


def test_server_unreachable_is_fatal(tmp_path):
    terminal = FakeTerminal()
    with patch("main.list_databases", side_effect=DatabaseConnectionError("timeout")):
        assert main(_settings(tmp_path), terminal) == 1
    assert "❌ Error: timeout" in terminal.output


def test_selected_database_is_passed_on(tmp_path):
    terminal = FakeTerminal(keys=[Key.DOWN, Key.ENTER])
    with patch("main.list_databases", return_value=["Crm", "Shop"]), \
         patch("main.run_assistant") as run:
        assert main(_settings(tmp_path), terminal) == 0

    connection_string = run.call_args.args[0]
    assert connection_string == BASE + ";Database=Shop;"
    assert "Selected database: Shop" in terminal.output


def test_extraction_failure_is_fatal(tmp_path):
    terminal = FakeTerminal()
    with patch("main.list_databases", return_value=["Shop"]), \
         patch("main.SchemaExtractor") as extractor_cls:
        extractor_cls.return_value.connection_string = BASE + ";Database=Shop;"
        extractor_cls.return_value.extract.side_effect = SchemaExtractionError("Error extracting schema: denied")
        assert main(_settings(tmp_path), terminal) == 1
    assert "Error extracting schema: denied" in terminal.output


def test_run_assistant_wires_session(tmp_path, orders_schema):
    cfg = _settings(tmp_path)
    terminal = FakeTerminal(lines=["exit"])
    extractor = MagicMock(connection_string=BASE + ";Database=Shop;", warnings=[])
    extractor.extract.return_value = orders_schema

    with patch("main.SchemaExtractor", return_value=extractor), \
         patch("main.OpenAIClient") as client_cls:
        run_assistant(BASE + ";Database=Shop;", cfg, terminal)

    client_cls.assert_called_once_with(cfg)
    assert "Successfully extracted schema for database: Shop" in terminal.output
    assert "Found 2 tables" in terminal.output
    assert (tmp_path / "cache.json").exists()
