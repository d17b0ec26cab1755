"""Read-only graph inspection commands for the memory-graph CLI."""

import asyncio
from typing import List, Optional

import typer
from sqlalchemy.exc import SQLAlchemyError

from memory_graph.cli.common import (
    DB_URL_OPTION,
    logger,
    print_json,
    with_graph_manager,
)

graph = typer.Typer(name="graph", help="Inspect the knowledge graph")


def _show(db_url: Optional[str], operation) -> None:
    try:
        result = asyncio.run(with_graph_manager(db_url, operation))
    except SQLAlchemyError as e:
        logger.error(f"Error reading knowledge graph: {e}")
        raise typer.Exit(1)
    print_json(result.to_dict())


@graph.command("read")
def read_graph(db_url: Optional[str] = DB_URL_OPTION):
    """Print the entire knowledge graph as JSON."""
    _show(db_url, lambda manager: manager.read_graph())


@graph.command("search")
def search_nodes(
    query: str = typer.Argument(
        ..., help="Text to match in names, types and observations"
    ),
    db_url: Optional[str] = DB_URL_OPTION,
):
    """Print entities matching QUERY and the relations among them."""
    _show(db_url, lambda manager: manager.search_nodes(query))


@graph.command("open")
def open_nodes(
    names: List[str] = typer.Argument(..., help="Entity names to open"),
    db_url: Optional[str] = DB_URL_OPTION,
):
    """Print the named entities and the relations among them."""
    _show(db_url, lambda manager: manager.open_nodes(names))
