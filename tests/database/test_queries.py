"""Tests for knowledge graph snapshot queries."""

import pytest
import pytest_asyncio

from memory_graph.models.graph import Entity, Relation


@pytest_asyncio.fixture
async def populated(graph_manager):
    """A small graph with a category, two products and a person."""
    await graph_manager.create_entities(
        [
            Entity(name="Pets", entity_type="Category", observations=["animals"]),
            Entity(name="Tabby", entity_type="Product", observations=["a CAT toy"]),
            Entity(name="Leash", entity_type="Product", observations=["for dogs"]),
            Entity(name="Alice", entity_type="Person", observations=["buys toys"]),
        ]
    )
    await graph_manager.create_relations(
        [
            Relation(from_entity="Tabby", to_entity="Pets", relation_type="belongs_to"),
            Relation(from_entity="Leash", to_entity="Pets", relation_type="belongs_to"),
            Relation(from_entity="Alice", to_entity="Tabby", relation_type="bought"),
        ]
    )
    return graph_manager


@pytest.mark.asyncio
async def test_read_graph_empty(graph_manager):
    graph = await graph_manager.read_graph()

    assert graph.entities == []
    assert graph.relations == []


@pytest.mark.asyncio
async def test_read_graph_round_trip(graph_manager):
    """Entities come back exactly as created, observations in order."""
    await graph_manager.create_entities(
        [Entity(name="A", entity_type="Thing", observations=["a", "b"])]
    )

    graph = await graph_manager.read_graph()

    assert graph.entities == [Entity(name="A", entity_type="Thing", observations=["a", "b"])]


@pytest.mark.asyncio
async def test_read_graph_insertion_order(populated):
    graph = await populated.read_graph()

    assert [e.name for e in graph.entities] == ["Pets", "Tabby", "Leash", "Alice"]
    assert [r.from_entity for r in graph.relations] == ["Tabby", "Leash", "Alice"]


@pytest.mark.asyncio
async def test_search_matches_entity_type_case_insensitively(populated):
    """'cat' matches the Category type and the 'CAT' observation."""
    graph = await populated.search_nodes("cat")

    assert [e.name for e in graph.entities] == ["Pets", "Tabby"]
    assert [r.key for r in graph.relations] == [("Tabby", "Pets", "belongs_to")]


@pytest.mark.asyncio
async def test_search_matches_name(populated):
    graph = await populated.search_nodes("ALI")

    assert [e.name for e in graph.entities] == ["Alice"]
    assert graph.relations == []


@pytest.mark.asyncio
async def test_search_excludes_half_matched_relations(populated):
    """Relations with only one matching endpoint are left out."""
    graph = await populated.search_nodes("toy")

    assert [e.name for e in graph.entities] == ["Tabby", "Alice"]
    assert [r.key for r in graph.relations] == [("Alice", "Tabby", "bought")]


@pytest.mark.asyncio
async def test_search_no_match(populated):
    graph = await populated.search_nodes("zebra")

    assert graph.entities == []
    assert graph.relations == []


@pytest.mark.asyncio
async def test_open_nodes(populated):
    """Named entities are returned with the relations among them."""
    graph = await populated.open_nodes(["Leash", "Pets", "nobody"])

    assert [e.name for e in graph.entities] == ["Pets", "Leash"]
    assert [r.key for r in graph.relations] == [("Leash", "Pets", "belongs_to")]


@pytest.mark.asyncio
async def test_open_nodes_unknown_names(populated):
    graph = await populated.open_nodes(["nobody"])

    assert graph.entities == []
    assert graph.relations == []
