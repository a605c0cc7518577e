from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ToolDefinition(BaseModel):
    """Describes a tool exposed by a provider"""
    name: str = Field(description="Tool name, unique within its provider")
    description: str = Field(default="", description="What the tool does")
    parameters_schema: Optional[Dict[str, Any]] = Field(None, description="JSON schema of the arguments")
    metadata: Dict[str, str] = Field(default_factory=dict, description="Provider attribution")


class ToolResult(BaseModel):
    """Outcome of a tool invocation"""
    content: str = Field(default="", description="Textual result")
    is_error: bool = Field(default=False)
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ToolCall(BaseModel):
    """A tool invocation requested by the model"""
    tool_name: str
    arguments: str = Field(default="{}", description="Arguments as JSON text")
    id: Optional[str] = None
