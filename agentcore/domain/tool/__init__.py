from .tool_call_step import ToolCallStep, substitute_properties
from .tool_provider import LocalToolProvider, ToolProvider
from .tool_registry import ToolRegistry
from .tool_validator import ToolParameterValidator
