"""MCP tool server for the knowledge graph."""
