"""Database commands for the memory-graph CLI."""

import asyncio
from typing import Optional

import typer
from sqlalchemy.exc import SQLAlchemyError

from memory_graph.cli.common import DB_URL_OPTION, logger
from memory_graph.database.database import close_database, initialize_database

db = typer.Typer(name="db", help="Database commands")


async def _init_schema(db_url: Optional[str]) -> str:
    db_manager = await initialize_database(db_url=db_url)
    try:
        return db_manager.engine.url.render_as_string()
    finally:
        await close_database()


@db.command("init")
def init_schema(db_url: Optional[str] = DB_URL_OPTION):
    """Create the knowledge graph tables if they do not exist."""
    try:
        url = asyncio.run(_init_schema(db_url))
    except SQLAlchemyError as e:
        logger.error(f"Schema initialization failed: {e}")
        raise typer.Exit(1)
    logger.info(f"✓ Knowledge graph schema ready at {url}")
