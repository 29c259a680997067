"""Tests for the admin CLI, driven through main() with a patched argv."""

import json
import sys

import pytest

from coordinator import cli
from coordinator.config import Settings
from coordinator.database import create_db_and_tables, make_engine
from coordinator.engine.sql_registry import SqlTradeRegistry
from coordinator.utils.clock import utc_now

from conftest import make_trade


def _run(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["coordinator.cli", *args])
    cli.main()


@pytest.fixture
def sql_settings(tmp_path, monkeypatch):
    app_settings = Settings(
        registry_backend="sql",
        database_url=f"sqlite:///{tmp_path / 'trades.db'}",
        _env_file=None,
    )
    monkeypatch.setattr(cli, "settings", app_settings)
    return app_settings


@pytest.fixture
def memory_settings(monkeypatch):
    app_settings = Settings(registry_backend="memory", _env_file=None)
    monkeypatch.setattr(cli, "settings", app_settings)
    return app_settings


def _seed(database_url: str):
    engine = make_engine(database_url)
    create_db_and_tables(engine)
    registry = SqlTradeRegistry(engine)
    registry.insert(make_trade("stale"))
    registry.insert(make_trade("fresh", now=utc_now()))
    engine.dispose()


# ---------------------------------------------------------------------------
# 1. dispatch
# ---------------------------------------------------------------------------

def test_no_command_prints_usage(monkeypatch, capsys):
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch)
    assert exc.value.code == 1
    assert "Usage" in capsys.readouterr().out


def test_unknown_command(monkeypatch, capsys, memory_settings):
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, "migrate")
    assert exc.value.code == 1
    assert "Unknown command: migrate" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# 2. sweep / stats
# ---------------------------------------------------------------------------

def test_sweep_then_stats_against_sql(monkeypatch, capsys, sql_settings):
    _seed(sql_settings.database_url)

    _run(monkeypatch, "sweep")
    assert "Expired 1 trade(s)." in capsys.readouterr().out

    _run(monkeypatch, "stats")
    counters = json.loads(capsys.readouterr().out)
    assert counters == {"total": 2, "pending": 1, "completed": 0, "failed": 0, "expired": 1}

    _run(monkeypatch, "sweep")
    assert "Expired 0 trade(s)." in capsys.readouterr().out


@pytest.mark.parametrize("command", ["sweep", "stats"])
def test_memory_backend_refused(monkeypatch, capsys, memory_settings, command):
    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, command)
    assert exc.value.code == 1
    assert "SC_REGISTRY_BACKEND=sql" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# 3. serve
# ---------------------------------------------------------------------------

def test_serve_passes_port_to_uvicorn(monkeypatch, capsys, memory_settings):
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))

    _run(monkeypatch, "serve", "--port", "5001")

    assert calls == [("coordinator.main:app", {"host": memory_settings.host, "port": 5001})]
    assert f"http://{memory_settings.host}:5001" in capsys.readouterr().out


def test_serve_defaults_to_configured_port(monkeypatch, memory_settings):
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append(kwargs["port"]))
    _run(monkeypatch, "serve")
    assert calls == [4000]


@pytest.mark.parametrize("args", [["--port"], ["--port", "abc"]])
def test_serve_rejects_bad_port(monkeypatch, capsys, memory_settings, args):
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append(kwargs))

    with pytest.raises(SystemExit) as exc:
        _run(monkeypatch, "serve", *args)

    assert exc.value.code == 1
    assert "--port needs an integer value." in capsys.readouterr().out
    assert calls == []
