from typing import Optional
import structlog

from agentcore.domain.llm.model_backend import ModelBackend
from agentcore.domain.models.agent_state import AgentLoopOptions, AgentLoopResult
from agentcore.domain.models.run_context import RunContext
from agentcore.domain.orchestration.step.base_step import BaseStep
from agentcore.domain.tool.tool_registry import ToolRegistry
from .agent_loop import AgentLoopOrchestrator

logger = structlog.get_logger(__name__)


class AgentLoopStep(BaseStep):
    """Runs the agent loop as one step and publishes its outputs on the run.

    The typed result lands under ``{name}.Result``. With ``legacy_outputs``
    the flat ``{name}.Response``, ``{name}.Iterations`` and
    ``{name}.ToolResults`` keys are written as well.
    """

    def __init__(
        self,
        model_backend: ModelBackend,
        tool_registry: ToolRegistry,
        options: Optional[AgentLoopOptions] = None,
        legacy_outputs: bool = True
    ):
        options = options or AgentLoopOptions()
        super().__init__(options.step_name, "Iterative model and tool-call loop")
        self.orchestrator = AgentLoopOrchestrator(model_backend, tool_registry, options)
        self.legacy_outputs = legacy_outputs

    async def execute(self, run: RunContext) -> None:
        self.update_activity()

        result: AgentLoopResult = await self.orchestrator.run(run)

        run.properties[f"{self.name}.Result"] = result
        if self.legacy_outputs:
            run.properties.update(result.to_legacy_properties(self.name))

        logger.info(
            "Agent loop step finished",
            step_name=self.name,
            iterations=result.iterations,
            tool_results=len(result.tool_results)
        )
