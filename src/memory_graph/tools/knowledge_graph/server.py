"""MCP Server for the persistent knowledge graph memory.

This server exposes the knowledge graph manager as MCP tools:
- create_entities / create_relations: create-or-skip
- add_observations: append new observations (fails on unknown entities)
- delete_entities / delete_observations / delete_relations: idempotent deletes
- read_graph / search_nodes / open_nodes: graph snapshots

RESOURCES (direct data access):
- memory://graph - The whole knowledge graph as JSON
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from mcp.server.fastmcp import FastMCP
from sqlalchemy.exc import SQLAlchemyError

from memory_graph.constants import SERVER_NAME
from memory_graph.database.database import (
    DatabaseManager,
    close_database,
    initialize_database,
)
from memory_graph.database.exceptions import EntityNotFoundError
from memory_graph.database.repository import KnowledgeGraphManager
from memory_graph.models import (
    Entity,
    MCPResponse,
    ObservationAddition,
    ObservationDeletion,
    Relation,
)

logger = logging.getLogger(__name__)

# Global state
_db_manager: Optional[DatabaseManager] = None
_manager: Optional[KnowledgeGraphManager] = None


async def _load_graph() -> KnowledgeGraphManager:
    """Connect to the database and make sure the schema exists.

    Runs once per process; later calls return the loaded manager.
    """
    global _db_manager, _manager  # pylint: disable=global-statement

    if _manager is not None:
        return _manager

    _db_manager = await initialize_database()
    _manager = KnowledgeGraphManager(_db_manager)
    logger.info("Knowledge graph loaded")
    return _manager


async def _cleanup_graph(close_connections: bool = True) -> None:
    """Close database connection and clean up resources."""
    global _db_manager, _manager  # pylint: disable=global-statement
    if _manager:
        logger.debug("Closing database connection...")
        await close_database(close_connections=close_connections)
        _db_manager = None
        _manager = None
        logger.debug("Database connection closed")


@asynccontextmanager
async def graph_lifespan(server: FastMCP) -> AsyncIterator[None]:
    """Load the knowledge graph before the server handles requests."""
    await _load_graph()
    yield


mcp = FastMCP(SERVER_NAME, lifespan=graph_lifespan)


def _storage_error(action: str, error: SQLAlchemyError) -> dict:
    logger.error("Error %s: %s", action, error, exc_info=True)
    return MCPResponse.error(f"Failed {action}: {error}").to_dict()


# ============================================================================
# MUTATION TOOLS
# ============================================================================


@mcp.tool()
async def create_entities(entities: List[Entity]) -> dict:
    """Create multiple new entities in the knowledge graph.

    Entities whose name already exists are skipped and left unchanged.

    Args:
        entities: Entities to create, each with name, entityType and observations

    Returns:
        The entities that were actually created
    """
    if not _manager:
        return MCPResponse.error("Database not initialized").to_dict()

    try:
        created = await _manager.create_entities(entities)
    except SQLAlchemyError as e:
        return _storage_error("creating entities", e)

    return MCPResponse.success(
        result=[entity.to_dict() for entity in created],
        message=f"Created {len(created)} of {len(entities)} entities",
        content_type="json",
    ).to_dict()


@mcp.tool()
async def create_relations(relations: List[Relation]) -> dict:
    """Create multiple new relations between entities in the knowledge graph.

    Relations should be in active voice. Relations that already exist are
    skipped.

    Args:
        relations: Relations to create, each with from, to and relationType

    Returns:
        The relations that were actually created
    """
    if not _manager:
        return MCPResponse.error("Database not initialized").to_dict()

    try:
        created = await _manager.create_relations(relations)
    except SQLAlchemyError as e:
        return _storage_error("creating relations", e)

    return MCPResponse.success(
        result=[relation.to_dict() for relation in created],
        message=f"Created {len(created)} of {len(relations)} relations",
        content_type="json",
    ).to_dict()


@mcp.tool()
async def add_observations(observations: List[ObservationAddition]) -> dict:
    """Add new observations to existing entities in the knowledge graph.

    Fails if an entity does not exist; requests processed before the missing
    entity stay applied.

    Args:
        observations: Per-entity lists of observation contents to add

    Returns:
        The observations actually added to each entity
    """
    if not _manager:
        return MCPResponse.error("Database not initialized").to_dict()

    try:
        added = await _manager.add_observations(observations)
    except EntityNotFoundError as e:
        return MCPResponse.error(str(e)).to_dict()
    except SQLAlchemyError as e:
        return _storage_error("adding observations", e)

    return MCPResponse.success(
        result=[item.to_dict() for item in added], content_type="json"
    ).to_dict()


@mcp.tool()
async def delete_entities(entityNames: List[str]) -> dict:
    """Delete multiple entities and their associated relations from the knowledge graph.

    Args:
        entityNames: Names of the entities to delete
    """
    if not _manager:
        return MCPResponse.error("Database not initialized").to_dict()

    try:
        await _manager.delete_entities(entityNames)
    except SQLAlchemyError as e:
        return _storage_error("deleting entities", e)

    return MCPResponse.success(message="Entities deleted successfully").to_dict()


@mcp.tool()
async def delete_observations(deletions: List[ObservationDeletion]) -> dict:
    """Delete specific observations from entities in the knowledge graph.

    Args:
        deletions: Per-entity lists of observations to remove
    """
    if not _manager:
        return MCPResponse.error("Database not initialized").to_dict()

    try:
        await _manager.delete_observations(deletions)
    except SQLAlchemyError as e:
        return _storage_error("deleting observations", e)

    return MCPResponse.success(message="Observations deleted successfully").to_dict()


@mcp.tool()
async def delete_relations(relations: List[Relation]) -> dict:
    """Delete multiple relations from the knowledge graph.

    Args:
        relations: Relations to delete, matched on from, to and relationType
    """
    if not _manager:
        return MCPResponse.error("Database not initialized").to_dict()

    try:
        await _manager.delete_relations(relations)
    except SQLAlchemyError as e:
        return _storage_error("deleting relations", e)

    return MCPResponse.success(message="Relations deleted successfully").to_dict()


# ============================================================================
# QUERY TOOLS
# ============================================================================


@mcp.tool()
async def read_graph() -> dict:
    """Read the entire knowledge graph."""
    if not _manager:
        return MCPResponse.error("Database not initialized").to_dict()

    try:
        graph = await _manager.read_graph()
    except SQLAlchemyError as e:
        return _storage_error("reading graph", e)

    return MCPResponse.success(result=graph.to_dict(), content_type="json").to_dict()


@mcp.tool()
async def search_nodes(query: str) -> dict:
    """Search for nodes in the knowledge graph based on a query.

    Matches entity names, types and observation content, case-insensitively.

    Args:
        query: Text to look for
    """
    if not _manager:
        return MCPResponse.error("Database not initialized").to_dict()

    try:
        graph = await _manager.search_nodes(query)
    except SQLAlchemyError as e:
        return _storage_error("searching nodes", e)

    return MCPResponse.success(
        result=graph.to_dict(),
        message=f"Found {len(graph.entities)} matching entities",
        content_type="json",
    ).to_dict()


@mcp.tool()
async def open_nodes(names: List[str]) -> dict:
    """Open specific nodes in the knowledge graph by their names.

    Args:
        names: Entity names to retrieve
    """
    if not _manager:
        return MCPResponse.error("Database not initialized").to_dict()

    try:
        graph = await _manager.open_nodes(names)
    except SQLAlchemyError as e:
        return _storage_error("opening nodes", e)

    return MCPResponse.success(result=graph.to_dict(), content_type="json").to_dict()


# ============================================================================
# RESOURCES
# ============================================================================


@mcp.resource("memory://graph")
async def graph_resource() -> str:
    """The whole knowledge graph as JSON."""
    manager = await _load_graph()
    graph = await manager.read_graph()
    return json.dumps(graph.to_dict(), indent=2, ensure_ascii=False)


# ============================================================================
# SERVER ENTRY POINT
# ============================================================================


def run_server(
    transport: str = "stdio", host: Optional[str] = None, port: Optional[int] = None
):
    """Run the FastMCP server over the given transport."""
    if host is not None:
        mcp.settings.host = host
    if port is not None:
        mcp.settings.port = port

    try:
        mcp.run(transport=transport)
    finally:
        # mcp.run owns the loop the pooled connections were opened on, and it
        # has finished by now, so only drop the pool here.
        asyncio.run(_cleanup_graph(close_connections=False))


def main():
    """Run the FastMCP server on stdio."""
    run_server()


if __name__ == "__main__":
    main()
