"""Enums for memory-graph models."""

from enum import Enum


class ResponseStatus(str, Enum):
    """Status values for MCP tool responses."""

    SUCCESS = "success"
    ERROR = "error"
