from abc import ABC, abstractmethod
from typing import Dict, Any, Callable, List, Optional, Tuple
import inspect
import json
import structlog

from agentcore.domain.models.tooling import ToolDefinition, ToolResult
from agentcore.exceptions import ToolNotFoundError
from .tool_validator import ToolParameterValidator

logger = structlog.get_logger(__name__)

ToolHandler = Callable[[Dict[str, Any]], Any]


class ToolProvider(ABC):
    """Pluggable source of named, invokable tools"""

    name: str = "provider"

    @abstractmethod
    async def list_tools(self) -> List[ToolDefinition]:
        pass

    @abstractmethod
    async def invoke_tool(self, tool_name: str, arguments_json: str) -> ToolResult:
        pass


class LocalToolProvider(ToolProvider):
    """In-process provider whose tools are plain (sync or async) Python callables.

    Handlers receive the parsed argument dict. A returned ``ToolResult`` is
    passed through, strings become the result content and anything else is
    JSON encoded.
    """

    def __init__(self, name: str = "local"):
        self.name = name
        self._tools: Dict[str, Tuple[ToolDefinition, ToolHandler]] = {}

    def register_tool(self, definition: ToolDefinition, handler: ToolHandler):
        """Register a tool, replacing any existing tool of the same name"""

        metadata = {"provider": self.name, **definition.metadata}
        self._tools[definition.name] = (definition.model_copy(update={"metadata": metadata}), handler)

    def tool(
        self,
        name: Optional[str] = None,
        description: str = "",
        parameters_schema: Optional[Dict[str, Any]] = None
    ):
        """Decorator form of register_tool"""

        def decorator(handler: ToolHandler) -> ToolHandler:
            self.register_tool(
                ToolDefinition(
                    name=name or handler.__name__,
                    description=description or (inspect.getdoc(handler) or ""),
                    parameters_schema=parameters_schema
                ),
                handler
            )
            return handler

        return decorator

    async def list_tools(self) -> List[ToolDefinition]:
        return [definition for definition, _ in self._tools.values()]

    async def invoke_tool(self, tool_name: str, arguments_json: str) -> ToolResult:
        entry = self._tools.get(tool_name)
        if entry is None:
            raise ToolNotFoundError(tool_name)

        definition, handler = entry
        arguments = ToolParameterValidator.parse_arguments(tool_name, arguments_json)
        ToolParameterValidator.validate_tool_call(definition, arguments)

        result = handler(arguments)
        if inspect.isawaitable(result):
            result = await result
        return to_tool_result(result)


def to_tool_result(value: Any) -> ToolResult:
    if isinstance(value, ToolResult):
        return value
    if isinstance(value, str):
        return ToolResult(content=value)
    if value is None:
        return ToolResult(content="")
    return ToolResult(content=json.dumps(value, default=str))
