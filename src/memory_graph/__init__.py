"""memory-graph: a persistent knowledge graph of entities, relations and observations."""

__version__ = "0.1.0"
