"""Errors raised by the knowledge graph manager."""


class KnowledgeGraphError(Exception):
    """Base exception for knowledge graph operations.

    Storage failures are not wrapped in this type; they surface as the
    underlying ``sqlalchemy.exc.SQLAlchemyError``.
    """


class EntityNotFoundError(KnowledgeGraphError, LookupError):
    """Raised when an operation requires an entity that does not exist."""

    def __init__(self, entity_name: str):
        self.entity_name = entity_name
        super().__init__(f"Entity with name {entity_name} not found")
