"""SQLAlchemy models for the knowledge graph."""

import json

from sqlalchemy import Column, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

from memory_graph.models.graph import Entity, Relation

Base = declarative_base()


class ObservationList(TypeDecorator):
    """Ordered list of observation strings stored as a JSON array in a TEXT column.

    This is the only place where the serialized form exists; rows loaded from
    the database always expose a plain ``list`` of strings.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return json.dumps(list(value), ensure_ascii=False)

    def process_result_value(self, value, dialect):
        if value is None:
            return []
        return json.loads(value)


class EntityRecord(Base):
    """A stored entity row.

    The surrogate ``id`` only orders rows; every graph operation addresses
    entities by their unique ``name``.
    """

    __tablename__ = "entities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)
    entity_type = Column(String, nullable=False)
    observations = Column(ObservationList, nullable=False, default=list)

    __table_args__ = {"sqlite_autoincrement": True}

    def __repr__(self) -> str:
        return f"<EntityRecord(name='{self.name}', type='{self.entity_type}')>"

    def to_entity(self) -> Entity:
        return Entity(
            name=self.name,
            entity_type=self.entity_type,
            observations=list(self.observations or []),
        )


class RelationRecord(Base):
    """A stored relation row.

    Endpoints are plain names, not foreign keys: a relation may mention an
    entity that was never created.
    """

    __tablename__ = "relations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    from_entity = Column(String, nullable=False)
    to_entity = Column(String, nullable=False)
    relation_type = Column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "from_entity", "to_entity", "relation_type", name="uq_relation_triple"
        ),
        Index("idx_relations_from", "from_entity"),
        Index("idx_relations_to", "to_entity"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return (
            f"<RelationRecord(from='{self.from_entity}', to='{self.to_entity}', "
            f"type='{self.relation_type}')>"
        )

    def to_relation(self) -> Relation:
        return Relation(
            from_entity=self.from_entity,
            to_entity=self.to_entity,
            relation_type=self.relation_type,
        )
