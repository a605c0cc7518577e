from .agent_loop import AgentLoopOrchestrator, LoopState
from .agent_loop_step import AgentLoopStep

__all__ = ["AgentLoopOrchestrator", "AgentLoopStep", "LoopState"]
