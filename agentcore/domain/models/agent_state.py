from typing import Dict, Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from .tooling import ToolResult


class AgentLoopOptions(BaseModel):
    """Configuration of one agent loop step"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    step_name: str = Field(default="AgentLoop", description="Name used for hooks, checkpoints and outputs")
    system_prompt: Optional[str] = None
    context_sources: List[Any] = Field(default_factory=list, description="ContextSource instances")
    hooks: Optional[Any] = Field(None, description="HookPipeline; empty pipeline when unset")
    context_manager: Optional[Any] = Field(None, description="ConversationContextManager; fresh per run when unset")
    max_iterations: int = Field(default=10, ge=0)

    # Compaction
    auto_compact: bool = False
    max_context_tokens: int = Field(default=100_000, ge=0)
    max_messages: Optional[int] = None
    preserve_recent_count: int = Field(default=5, ge=0)
    preserve_system_messages: bool = True
    compaction_strategy: Optional[Any] = None
    compaction_focus_instructions: Optional[str] = None

    # Checkpointing
    checkpoint_store: Optional[Any] = None
    checkpoint_interval: int = Field(default=1, ge=1)

    @classmethod
    def from_settings(cls, settings, **overrides) -> "AgentLoopOptions":
        """Build options from AgentLoopSettings, letting keyword arguments win"""

        from agentcore.domain.context.compaction.sliding_window import SlidingWindowCompactionStrategy

        values = {
            "step_name": settings.step_name,
            "system_prompt": settings.system_prompt,
            "max_iterations": settings.max_iterations,
            "auto_compact": settings.auto_compact,
            "max_context_tokens": settings.max_context_tokens,
            "max_messages": settings.max_messages,
            "preserve_recent_count": settings.preserve_recent_count,
            "preserve_system_messages": settings.preserve_system_messages,
            "compaction_focus_instructions": settings.compaction_focus_instructions,
            "checkpoint_interval": settings.checkpoint_interval,
            "compaction_strategy": SlidingWindowCompactionStrategy(
                settings.sliding_window_keep_first,
                settings.sliding_window_keep_last
            ),
        }
        values.update(overrides)
        return cls(**values)


class AgentLoopResult(BaseModel):
    """Observable outputs of an agent loop run"""
    response: str = Field(default="", description="Text of the last model reply")
    iterations: int = Field(default=0, description="Iterations executed")
    tool_results: List[ToolResult] = Field(default_factory=list)

    def to_legacy_properties(self, step_name: str) -> Dict[str, Any]:
        """String-keyed view expected by the host engine's property bag"""
        return {
            f"{step_name}.Response": self.response,
            f"{step_name}.Iterations": self.iterations,
            f"{step_name}.ToolResults": list(self.tool_results),
        }
