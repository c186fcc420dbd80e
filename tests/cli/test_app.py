"""
Tests for the recordproxy CLI.
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from recordproxy import __version__
from recordproxy.cli.app import app
from recordproxy.data.operation import Operation
from recordproxy.proxy.local import LocalStoreProxy

runner = CliRunner()


@pytest.fixture(autouse=True)
def configure_logging_spy():
    """Keep CLI invocations from reconfiguring structlog for the whole session."""
    with patch("recordproxy.cli.app.configure_logging") as spy:
        yield spy


@pytest.fixture
def seeded(data_dir, search_model):
    """A ``twitter`` database with three searches, written through the proxy."""

    async def _seed():
        async with LocalStoreProxy(
            search_model, db_name="twitter", object_store_name="searches", data_dir=data_dir
        ) as proxy:
            records = [search_model.create({"query": q}) for q in ("charlie", "alpha", "bravo")]
            await proxy.create(Operation("create", records=records))

    asyncio.run(_seed())
    return data_dir


def invoke(*args, data_dir=None, input=None):
    argv = list(args)
    if data_dir is not None:
        argv += ["--data-dir", str(data_dir)]
    return runner.invoke(app, argv, input=input)


class TestRootApp:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "dump" in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"recordproxy {__version__}" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code in (0, 2)


class TestLoggingSetup:
    def test_uses_settings_log_level(self, seeded, monkeypatch, configure_logging_spy):
        monkeypatch.setenv("RECORDPROXY_LOG_LEVEL", "WARNING")
        result = invoke("ids", "searches", "--db", "twitter", data_dir=seeded)
        assert result.exit_code == 0
        configure_logging_spy.assert_called_once_with(level="WARNING")

    def test_debug_forces_debug_level(self, seeded, monkeypatch, configure_logging_spy):
        monkeypatch.setenv("RECORDPROXY_DEBUG", "true")
        result = invoke("ids", "searches", "--db", "twitter", data_dir=seeded)
        assert result.exit_code == 0
        configure_logging_spy.assert_called_once_with(level="DEBUG")


class TestInfo:
    def test_json(self, seeded):
        result = invoke("info", "--db", "twitter", "--json", data_dir=seeded)
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {
            "database": "twitter",
            "version": 1,
            "stores": {"searches": 3},
        }

    def test_plain(self, seeded):
        result = invoke("info", "-d", "twitter", data_dir=seeded)
        assert result.exit_code == 0
        assert "searches" in result.output

    def test_missing_database(self, data_dir):
        result = invoke("info", "--db", "nope", data_dir=data_dir)
        assert result.exit_code == 1
        assert "not found" in result.output


class TestIds:
    def test_lists_keys(self, seeded):
        result = invoke("ids", "searches", "--db", "twitter", data_dir=seeded)
        assert result.exit_code == 0
        assert result.output.split() == ["1", "2", "3"]


class TestDump:
    def test_all_records(self, seeded):
        result = invoke("dump", "searches", "--db", "twitter", "--json", data_dir=seeded)
        assert result.exit_code == 0
        rows = json.loads(result.output)
        assert [r["query"] for r in rows] == ["charlie", "alpha", "bravo"]

    def test_sorted_page(self, seeded):
        result = invoke(
            "dump", "searches", "--db", "twitter", "--sort", "query", "--desc",
            "--start", "1", "--limit", "1", "--json",
            data_dir=seeded,
        )
        assert result.exit_code == 0
        assert [r["query"] for r in json.loads(result.output)] == ["bravo"]

    def test_table(self, seeded):
        result = invoke("dump", "searches", "--db", "twitter", data_dir=seeded)
        assert result.exit_code == 0
        assert "alpha" in result.output

    def test_missing_store(self, seeded):
        result = invoke("dump", "nope", "--db", "twitter", data_dir=seeded)
        assert result.exit_code == 1
        assert "Object store not found" in result.output


class TestClear:
    def test_force(self, seeded):
        result = invoke("clear", "searches", "--db", "twitter", "--force", data_dir=seeded)
        assert result.exit_code == 0
        assert "Cleared" in result.output

        ids = invoke("ids", "searches", "--db", "twitter", data_dir=seeded)
        assert ids.output.strip() == ""

    def test_confirm_declined(self, seeded):
        result = invoke("clear", "searches", "--db", "twitter", data_dir=seeded, input="n\n")
        assert result.exit_code == 1

        ids = invoke("ids", "searches", "--db", "twitter", data_dir=seeded)
        assert ids.output.split() == ["1", "2", "3"]

    def test_confirm_accepted(self, seeded):
        result = invoke("clear", "searches", "--db", "twitter", data_dir=seeded, input="y\n")
        assert result.exit_code == 0
