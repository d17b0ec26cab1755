"""Knowledge graph storage.

SQLAlchemy-based persistence for entities and relations, and the
``KnowledgeGraphManager`` that implements the graph operations on top of it.
"""

from .database import DatabaseManager, close_database, get_database_manager
from .exceptions import EntityNotFoundError, KnowledgeGraphError
from .models import EntityRecord, RelationRecord
from .repository import KnowledgeGraphManager

__all__ = [
    "DatabaseManager",
    "get_database_manager",
    "close_database",
    "EntityRecord",
    "RelationRecord",
    "KnowledgeGraphManager",
    "KnowledgeGraphError",
    "EntityNotFoundError",
]
