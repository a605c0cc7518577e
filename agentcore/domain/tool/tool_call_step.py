from typing import Dict, Any, Optional
import re
import time
import structlog

from agentcore.domain.models.run_context import RunContext
from agentcore.domain.orchestration.step.base_step import BaseStep
from agentcore.infrastructure.observability.logging import agent_logger
from .tool_registry import ToolRegistry

logger = structlog.get_logger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{(\w+)\}")


def substitute_properties(template: str, properties: Dict[str, Any]) -> str:
    """Replace {name} placeholders with run properties; unknown or None values stay as-is"""

    def replace(match: re.Match) -> str:
        value = properties.get(match.group(1))
        if value is None:
            return match.group(0)
        return str(value)

    return PLACEHOLDER_PATTERN.sub(replace, template)


class ToolCallStep(BaseStep):
    """Invokes one named tool with arguments templated from the run's properties"""

    def __init__(
        self,
        registry: ToolRegistry,
        tool_name: str,
        arguments_template: str,
        step_name: Optional[str] = None
    ):
        if registry is None:
            raise ValueError("registry is required")
        if tool_name is None:
            raise ValueError("tool_name is required")
        if arguments_template is None:
            raise ValueError("arguments_template is required")

        super().__init__(step_name or f"ToolCall.{tool_name}", f"Invoke tool '{tool_name}'")
        self.registry = registry
        self.tool_name = tool_name
        self.arguments_template = arguments_template

    async def execute(self, run: RunContext) -> None:
        self.update_activity()
        run.raise_if_cancelled()

        arguments = substitute_properties(self.arguments_template, run.properties)
        started = time.perf_counter()
        try:
            result = await self.registry.invoke(self.tool_name, arguments)
        except Exception as e:
            agent_logger.log_tool_execution(
                self.tool_name, run.run_id, arguments,
                duration_ms=(time.perf_counter() - started) * 1000,
                success=False, error=str(e)
            )
            raise

        agent_logger.log_tool_execution(
            self.tool_name, run.run_id, arguments,
            duration_ms=(time.perf_counter() - started) * 1000,
            success=not result.is_error,
            error=result.content if result.is_error else None
        )
        run.properties[f"{self.name}.Result"] = result.content
        run.properties[f"{self.name}.IsError"] = result.is_error
