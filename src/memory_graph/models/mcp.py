"""Standard response format for MCP tools to ensure consistent serialization."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from memory_graph.models.enums import ResponseStatus


class MCPResponse(BaseModel):
    """Standardized response envelope for MCP tools.

    Attributes:
        status: Response status (success or error)
        message: Optional human-readable message
        result: The actual result data (any JSON-serializable value)
        content_type: Optional content type hint for display, defaults to 'text'
    """

    status: ResponseStatus = Field(..., description="Response status")
    message: Optional[str] = Field(None, description="Optional human-readable message")
    result: Any = Field(default=None, description="The actual result data")
    content_type: Optional[str] = Field(
        None, description="Content type for display (e.g. 'json'). Defaults to 'text'."
    )

    @classmethod
    def success(
        cls,
        result: Any = None,
        message: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> "MCPResponse":
        """Create a success response."""
        return cls(
            status=ResponseStatus.SUCCESS,
            result=result,
            message=message,
            content_type=content_type,
        )

    @classmethod
    def error(cls, message: str, result: Any = None) -> "MCPResponse":
        """Create an error response."""
        return cls(status=ResponseStatus.ERROR, message=message, result=result)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dict with the status enum as its string value."""
        status_str = (
            self.status.value if hasattr(self.status, "value") else str(self.status)
        )
        return {
            "status": status_str,
            "message": self.message,
            "result": self.result,
            "content_type": self.content_type or "text",
        }
