from typing import Dict, List, Optional, Tuple
import threading
import structlog

from agentcore.domain.models.tooling import ToolDefinition, ToolResult
from agentcore.exceptions import ToolNotFoundError
from .tool_provider import ToolProvider

logger = structlog.get_logger(__name__)


class ToolRegistry:
    """Aggregates tool providers; the most recently registered provider wins name conflicts.

    Registration publishes a new immutable tuple of providers. Readers take
    whatever tuple is current and iterate it without locking, so a provider
    registered mid-call is simply not seen by that call.
    """

    def __init__(self, providers: Optional[List[ToolProvider]] = None):
        self._providers: Tuple[ToolProvider, ...] = ()
        self._lock = threading.Lock()
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: ToolProvider):
        """Register a tool provider"""

        if provider is None:
            raise ValueError("provider is required")
        with self._lock:
            self._providers = self._providers + (provider,)

        logger.info("Registered tool provider", provider=getattr(provider, "name", type(provider).__name__))

    @property
    def providers(self) -> Tuple[ToolProvider, ...]:
        return self._providers

    async def list_all_tools(self) -> List[ToolDefinition]:
        """Merge all providers' tools by name in registration order"""

        tools: Dict[str, ToolDefinition] = {}
        for provider in self._providers:
            for tool in await provider.list_tools():
                tools[tool.name] = tool
        return list(tools.values())

    async def get_tool_info(self, tool_name: str) -> Optional[ToolDefinition]:
        """Get the winning definition of a specific tool"""

        for tool in await self.list_all_tools():
            if tool.name == tool_name:
                return tool
        return None

    async def invoke(self, tool_name: str, arguments_json: str) -> ToolResult:
        """Dispatch to the last-registered provider that declares the tool"""

        if tool_name is None:
            raise ValueError("tool_name is required")
        if arguments_json is None:
            raise ValueError("arguments_json is required")

        providers = self._providers
        for provider in reversed(providers):
            tools = await provider.list_tools()
            if any(tool.name == tool_name for tool in tools):
                return await provider.invoke_tool(tool_name, arguments_json)

        raise ToolNotFoundError(tool_name)
