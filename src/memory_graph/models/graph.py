"""Value types exchanged with the knowledge graph manager.

Attributes use snake_case in Python; aliases carry the camelCase names used
on the wire (``entityType``, ``from``, ``relationType`` ...). Models accept
either form on input and ``to_dict()`` always emits the wire names.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class GraphModel(BaseModel):
    """Base for graph value types."""

    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class Entity(GraphModel):
    """A uniquely named node with a type label and ordered observations."""

    name: str = Field(..., description="Unique name of the entity")
    entity_type: str = Field(
        ..., alias="entityType", description="Free-form classification label"
    )
    observations: List[str] = Field(
        default_factory=list,
        description="Ordered, de-duplicated observations about the entity",
    )


class Relation(GraphModel):
    """A directed, typed edge between two entity names."""

    from_entity: str = Field(
        ..., alias="from", description="Name of the entity the relation starts at"
    )
    to_entity: str = Field(
        ..., alias="to", description="Name of the entity the relation points to"
    )
    relation_type: str = Field(
        ..., alias="relationType", description="Relation label, in active voice"
    )

    @property
    def key(self) -> tuple:
        return (self.from_entity, self.to_entity, self.relation_type)


class KnowledgeGraph(GraphModel):
    """A snapshot of entities and the relations among them."""

    entities: List[Entity] = Field(default_factory=list)
    relations: List[Relation] = Field(default_factory=list)


class ObservationAddition(GraphModel):
    """Observations to append to one entity."""

    entity_name: str = Field(
        ..., alias="entityName", description="Entity to add the observations to"
    )
    contents: List[str] = Field(..., description="Observation strings to add")


class AddedObservations(GraphModel):
    """The observations actually appended to one entity."""

    entity_name: str = Field(..., alias="entityName")
    added_observations: List[str] = Field(
        default_factory=list, alias="addedObservations"
    )


class ObservationDeletion(GraphModel):
    """Observations to remove from one entity."""

    entity_name: str = Field(
        ..., alias="entityName", description="Entity to remove the observations from"
    )
    observations: List[str] = Field(..., description="Observation strings to remove")
