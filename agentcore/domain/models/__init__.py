from .agent_state import AgentLoopOptions, AgentLoopResult
from .checkpoint import CheckpointInfo
from .conversation import (
    CompactionOptions,
    CompactionResult,
    ContextDocument,
    ContextSnapshot,
    ConversationMessage,
    ConversationRole,
)
from .hooks import AgentHookEvent, HookContext, HookDecision, HookResult
from .llm import AgentTool, DecisionRequest, LlmRequest, LlmResponse, TokenUsage
from .run_context import RunContext
from .tooling import ToolCall, ToolDefinition, ToolResult
