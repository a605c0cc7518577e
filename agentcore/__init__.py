from agentcore.config import AgentLoopSettings
from agentcore.domain.models import AgentLoopOptions, AgentLoopResult, RunContext
from agentcore.domain.orchestration.core import AgentLoopOrchestrator, AgentLoopStep

__all__ = [
    "AgentLoopOptions",
    "AgentLoopOrchestrator",
    "AgentLoopResult",
    "AgentLoopSettings",
    "AgentLoopStep",
    "RunContext",
]
