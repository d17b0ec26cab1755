"""Knowledge graph manager.

Maps graph operations (create, append, delete, search, project) onto the
``entities`` and ``relations`` tables. Each row-level change runs in its own
short session, so a failure part-way through a batch leaves the earlier items
committed and aborts the rest.
"""

import logging
from typing import Callable, Iterable, List

from sqlalchemy import delete, or_, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from memory_graph.models.graph import (
    AddedObservations,
    Entity,
    KnowledgeGraph,
    ObservationAddition,
    ObservationDeletion,
    Relation,
)

from .database import DatabaseManager
from .exceptions import EntityNotFoundError
from .models import EntityRecord, RelationRecord

logger = logging.getLogger(__name__)

# Dialects with a native INSERT ... ON CONFLICT DO NOTHING
_CONFLICT_INSERTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}

RELATION_KEY_COLUMNS = ["from_entity", "to_entity", "relation_type"]


def _unique(values: Iterable[str]) -> List[str]:
    """Drop repeated strings, keeping the first occurrence of each."""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


class KnowledgeGraphManager:
    """Create-or-skip mutations and snapshot queries over the knowledge graph.

    Uniqueness of entity names and relation triples is enforced with a single
    conditional insert on SQLite and PostgreSQL. On any other dialect the
    manager falls back to select-then-insert, which is only safe when a single
    writer accesses the graph at a time. Observation updates are
    read-modify-write and carry the same single-writer precondition.
    """

    def __init__(self, db_manager: DatabaseManager):
        """Initialize the manager.

        Args:
            db_manager: Connected database manager
        """
        self.db_manager = db_manager

    async def init(self) -> None:
        """Ensure the backing tables exist."""
        await self.db_manager.init_schema()

    async def _insert_if_absent(
        self,
        session: AsyncSession,
        model,
        values: dict,
        index_elements: List[str],
    ) -> bool:
        """Insert a row unless one with the same unique key exists.

        Returns:
            True if a row was inserted
        """
        insert = _CONFLICT_INSERTS.get(self.db_manager.dialect_name)
        if insert is not None:
            stmt = (
                insert(model)
                .values(**values)
                .on_conflict_do_nothing(index_elements=index_elements)
            )
            result = await session.execute(stmt)
            return result.rowcount > 0

        conditions = [
            getattr(model, column) == values[column] for column in index_elements
        ]
        existing = await session.execute(select(model.id).where(*conditions).limit(1))
        if existing.first() is not None:
            return False
        session.add(model(**values))
        return True

    async def create_entities(self, entities: List[Entity]) -> List[Entity]:
        """Store entities whose names are not taken yet.

        Existing entities are left untouched and left out of the result.

        Args:
            entities: Entities to create

        Returns:
            The newly created entities, in input order
        """
        created = []
        for entity in entities:
            stored = Entity(
                name=entity.name,
                entity_type=entity.entity_type,
                observations=_unique(entity.observations),
            )
            async with self.db_manager.get_session() as session:
                inserted = await self._insert_if_absent(
                    session,
                    EntityRecord,
                    {
                        "name": stored.name,
                        "entity_type": stored.entity_type,
                        "observations": stored.observations,
                    },
                    ["name"],
                )
            if inserted:
                created.append(stored)
                logger.info(f"Created entity {stored.name}")
            else:
                logger.debug(f"Entity {stored.name} already exists, skipping")
        return created

    async def create_relations(self, relations: List[Relation]) -> List[Relation]:
        """Store relations whose (from, to, relationType) triple is new.

        Endpoints are not required to exist as entities.

        Args:
            relations: Relations to create

        Returns:
            The newly created relations, in input order
        """
        created = []
        for relation in relations:
            async with self.db_manager.get_session() as session:
                inserted = await self._insert_if_absent(
                    session,
                    RelationRecord,
                    dict(zip(RELATION_KEY_COLUMNS, relation.key)),
                    RELATION_KEY_COLUMNS,
                )
            if inserted:
                created.append(relation)
                logger.info(
                    f"Created relation {relation.from_entity} "
                    f"-[{relation.relation_type}]-> {relation.to_entity}"
                )
            else:
                logger.debug(f"Relation {relation.key} already exists, skipping")
        return created

    async def add_observations(
        self, additions: List[ObservationAddition]
    ) -> List[AddedObservations]:
        """Append new observation strings to existing entities.

        Strings the entity already has, and repeats within ``contents``,
        are not added again.

        Args:
            additions: Observations to add, per entity

        Returns:
            The observations actually appended, per request

        Raises:
            EntityNotFoundError: If an entity does not exist. Requests before
                it in the batch stay applied; the ones after it are not run.
        """
        results = []
        for addition in additions:
            async with self.db_manager.get_session() as session:
                result = await session.execute(
                    select(EntityRecord.observations).where(
                        EntityRecord.name == addition.entity_name
                    )
                )
                current = result.scalar_one_or_none()
                if current is None:
                    raise EntityNotFoundError(addition.entity_name)

                existing = set(current)
                added = [
                    content
                    for content in _unique(addition.contents)
                    if content not in existing
                ]
                if added:
                    await session.execute(
                        update(EntityRecord)
                        .where(EntityRecord.name == addition.entity_name)
                        .values(observations=current + added)
                    )
                    logger.info(
                        f"Added {len(added)} observations to {addition.entity_name}"
                    )

            results.append(
                AddedObservations(
                    entity_name=addition.entity_name, added_observations=added
                )
            )
        return results

    async def delete_entities(self, entity_names: List[str]) -> None:
        """Delete entities and every relation that starts or ends at them.

        Relations are removed by name, so relations pointing at names that
        were never created as entities are removed as well. Unknown names
        are ignored.

        Args:
            entity_names: Names of the entities to delete
        """
        for name in entity_names:
            async with self.db_manager.get_session() as session:
                await session.execute(delete(EntityRecord).where(EntityRecord.name == name))
                await session.execute(
                    delete(RelationRecord).where(
                        or_(
                            RelationRecord.from_entity == name,
                            RelationRecord.to_entity == name,
                        )
                    )
                )
            logger.info(f"Deleted entity {name}")

    async def delete_observations(self, deletions: List[ObservationDeletion]) -> None:
        """Remove specific observation strings from entities.

        Missing entities are skipped silently.

        Args:
            deletions: Observations to remove, per entity
        """
        for deletion in deletions:
            async with self.db_manager.get_session() as session:
                result = await session.execute(
                    select(EntityRecord.observations).where(
                        EntityRecord.name == deletion.entity_name
                    )
                )
                current = result.scalar_one_or_none()
                if current is None:
                    logger.debug(
                        f"Entity {deletion.entity_name} not found, skipping deletion"
                    )
                    continue

                to_remove = set(deletion.observations)
                remaining = [obs for obs in current if obs not in to_remove]
                await session.execute(
                    update(EntityRecord)
                    .where(EntityRecord.name == deletion.entity_name)
                    .values(observations=remaining)
                )
            logger.info(
                f"Removed {len(current) - len(remaining)} observations "
                f"from {deletion.entity_name}"
            )

    async def delete_relations(self, relations: List[Relation]) -> None:
        """Delete relations matching each (from, to, relationType) triple.

        Args:
            relations: Relations to delete
        """
        for relation in relations:
            async with self.db_manager.get_session() as session:
                await session.execute(
                    delete(RelationRecord).where(
                        RelationRecord.from_entity == relation.from_entity,
                        RelationRecord.to_entity == relation.to_entity,
                        RelationRecord.relation_type == relation.relation_type,
                    )
                )
            logger.info(f"Deleted relation {relation.key}")

    async def read_graph(self) -> KnowledgeGraph:
        """Return every stored entity and relation, in insertion order."""
        async with self.db_manager.get_session() as session:
            entity_rows = await session.execute(
                select(EntityRecord).order_by(EntityRecord.id)
            )
            relation_rows = await session.execute(
                select(RelationRecord).order_by(RelationRecord.id)
            )
            return KnowledgeGraph(
                entities=[row.to_entity() for row in entity_rows.scalars()],
                relations=[row.to_relation() for row in relation_rows.scalars()],
            )

    async def search_nodes(self, query: str) -> KnowledgeGraph:
        """Find entities whose name, type or any observation contains ``query``.

        Matching is case-insensitive. Only relations between two matched
        entities are returned.
        """
        needle = query.lower()

        def matches(entity: Entity) -> bool:
            return (
                needle in entity.name.lower()
                or needle in entity.entity_type.lower()
                or any(needle in obs.lower() for obs in entity.observations)
            )

        return self._filter_graph(await self.read_graph(), matches)

    async def open_nodes(self, names: List[str]) -> KnowledgeGraph:
        """Return the named entities and the relations among them.

        Names that do not exist are left out of the result.
        """
        wanted = set(names)
        return self._filter_graph(
            await self.read_graph(), lambda entity: entity.name in wanted
        )

    @staticmethod
    def _filter_graph(
        graph: KnowledgeGraph,
        predicate: Callable[[Entity], bool],
    ) -> KnowledgeGraph:
        """Keep matching entities and relations whose two endpoints are both kept."""
        entities = [entity for entity in graph.entities if predicate(entity)]
        names = {entity.name for entity in entities}
        relations = [
            relation
            for relation in graph.relations
            if relation.from_entity in names
            and relation.to_entity in names
        ]
        return KnowledgeGraph(entities=entities, relations=relations)
