"""Tests for the memory-graph CLI commands."""

import asyncio
import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from memory_graph.cli import app
from memory_graph.database import database as database_module
from memory_graph.database.database import DatabaseManager
from memory_graph.database.repository import KnowledgeGraphManager
from memory_graph.models.graph import Entity, Relation


@pytest.fixture
def runner():
    """Create a CLI runner for testing."""
    return CliRunner()


@pytest.fixture
def db_url(monkeypatch, tmp_path):
    """Point the CLI at a temporary database and log directory."""
    monkeypatch.setattr(database_module, "_db_manager", None)
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))
    url = f"sqlite:///{tmp_path / 'cli.db'}"
    monkeypatch.setenv("MEMORY_GRAPH_DB_URL", url)
    return url


def _seed(url):
    async def seed():
        async with DatabaseManager(db_url=url) as db_manager:
            graph_manager = KnowledgeGraphManager(db_manager)
            await graph_manager.init()
            await graph_manager.create_entities(
                [
                    Entity(name="Alice", entity_type="Person", observations=["likes tea"]),
                    Entity(name="Bob", entity_type="Person"),
                    Entity(name="Tea", entity_type="Drink"),
                ]
            )
            await graph_manager.create_relations(
                [
                    Relation(from_entity="Alice", to_entity="Bob", relation_type="knows"),
                    Relation(from_entity="Alice", to_entity="Tea", relation_type="likes"),
                ]
            )

    asyncio.run(seed())


def _json_output(result):
    start = result.stdout.index("{")
    return json.loads(result.stdout[start:])


def test_help_lists_commands(runner):
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    for command in ("serve", "db", "graph"):
        assert command in result.output


def test_db_init_creates_schema(runner, db_url, tmp_path):
    result = runner.invoke(app, ["db", "init"])
    again = runner.invoke(app, ["db", "init"])

    assert result.exit_code == 0
    assert again.exit_code == 0
    assert (tmp_path / "cli.db").exists()
    assert database_module._db_manager is None


def test_graph_read(runner, db_url):
    _seed(db_url)

    result = runner.invoke(app, ["graph", "read"])

    assert result.exit_code == 0
    payload = _json_output(result)
    assert [e["name"] for e in payload["entities"]] == ["Alice", "Bob", "Tea"]
    assert payload["entities"][0]["observations"] == ["likes tea"]
    assert len(payload["relations"]) == 2


def test_graph_read_empty_database(runner, db_url):
    result = runner.invoke(app, ["graph", "read"])

    assert result.exit_code == 0
    assert _json_output(result) == {"entities": [], "relations": []}


def test_graph_search(runner, db_url):
    _seed(db_url)

    result = runner.invoke(app, ["graph", "search", "TEA"])

    assert result.exit_code == 0
    payload = _json_output(result)
    assert [e["name"] for e in payload["entities"]] == ["Alice", "Tea"]
    assert payload["relations"] == [
        {"from": "Alice", "to": "Tea", "relationType": "likes"}
    ]


def test_graph_open_with_explicit_url(runner, db_url, monkeypatch):
    _seed(db_url)
    monkeypatch.delenv("MEMORY_GRAPH_DB_URL")

    result = runner.invoke(app, ["graph", "open", "Alice", "Bob", "--db-url", db_url])

    assert result.exit_code == 0
    payload = _json_output(result)
    assert [e["name"] for e in payload["entities"]] == ["Alice", "Bob"]
    assert payload["relations"] == [
        {"from": "Alice", "to": "Bob", "relationType": "knows"}
    ]


def test_serve_passes_transport(runner, db_url):
    with patch("memory_graph.cli.server.run_server") as run_server:
        result = runner.invoke(
            app, ["serve", "--transport", "streamable-http", "--port", "9100"]
        )

    assert result.exit_code == 0
    run_server.assert_called_once_with(
        transport="streamable-http", host="127.0.0.1", port=9100
    )


def test_serve_rejects_unknown_transport(runner, db_url):
    result = runner.invoke(app, ["serve", "--transport", "carrier-pigeon"])

    assert result.exit_code != 0
