"""Centralized Pydantic models for memory-graph."""

# Enums
from memory_graph.models.enums import ResponseStatus

# Graph value types
from memory_graph.models.graph import (
    AddedObservations,
    Entity,
    KnowledgeGraph,
    ObservationAddition,
    ObservationDeletion,
    Relation,
)

# MCP models
from memory_graph.models.mcp import MCPResponse

__all__ = [
    # Enums
    "ResponseStatus",
    # Graph value types
    "Entity",
    "Relation",
    "KnowledgeGraph",
    "ObservationAddition",
    "AddedObservations",
    "ObservationDeletion",
    # MCP models
    "MCPResponse",
]
