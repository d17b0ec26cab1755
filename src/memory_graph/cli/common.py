"""Shared utilities and helpers for the memory-graph CLI."""

import json
import logging
from typing import Any, Awaitable, Callable, Optional

import typer
from rich.console import Console

from memory_graph.database.database import close_database, initialize_database
from memory_graph.database.repository import KnowledgeGraphManager

# Shared console and logger
console = Console()
logger = logging.getLogger(__name__)

DB_URL_OPTION = typer.Option(
    None,
    "--db-url",
    help="Database URL. Defaults to MEMORY_GRAPH_DB_URL, then DATABASE_PATH.",
)


async def with_graph_manager(
    db_url: Optional[str],
    operation: Callable[[KnowledgeGraphManager], Awaitable[Any]],
) -> Any:
    """Open the graph, run one manager operation and close the connection."""
    db_manager = await initialize_database(db_url=db_url)
    try:
        return await operation(KnowledgeGraphManager(db_manager))
    finally:
        await close_database()


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, ensure_ascii=False))
