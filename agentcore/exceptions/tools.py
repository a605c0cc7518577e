from typing import Any, Optional

from .base import AgentCoreError


class ToolError(AgentCoreError):
    """Base exception for tool-related errors"""
    pass


class ToolNotFoundError(ToolError):
    """Raised when no registered provider declares the requested tool"""

    def __init__(self, tool_name: str, message: Optional[str] = None):
        super().__init__(message or f"Tool '{tool_name}' not found in any registered provider.")
        self.tool_name = tool_name


class ToolInputValidationError(ToolError):
    """Raised when tool arguments are not valid JSON or fail schema validation"""

    def __init__(self, message: str, tool_name: Optional[str] = None, invalid_input: Any = None):
        super().__init__(message)
        self.tool_name = tool_name
        self.invalid_input = invalid_input
