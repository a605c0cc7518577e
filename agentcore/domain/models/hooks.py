from typing import Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum

from .run_context import RunContext
from .tooling import ToolResult


class AgentHookEvent(str, Enum):
    """Lifecycle events a hook can intercept"""
    PRE_TOOL_CALL = "PreToolCall"
    POST_TOOL_CALL = "PostToolCall"
    POST_TOOL_CALL_FAILURE = "PostToolCallFailure"
    PRE_COMPACT = "PreCompact"
    POST_COMPACT = "PostCompact"
    CHECKPOINT = "Checkpoint"
    PRE_AGENT_PROMPT = "PreAgentPrompt"
    WORKFLOW_STARTING = "WorkflowStarting"
    WORKFLOW_COMPLETED = "WorkflowCompleted"
    STEP_COMPLETED = "StepCompleted"


class HookDecision(str, Enum):
    """Decision returned by a hook"""
    ALLOW = "allow"
    DENY = "deny"
    MODIFY = "modify"


class HookContext(BaseModel):
    """Everything a hook sees about the event being fired"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    event: Optional[AgentHookEvent] = None
    step_name: Optional[str] = None
    tool_name: Optional[str] = None
    tool_args: Optional[str] = Field(None, description="Arguments JSON; hooks may rewrite it")
    tool_result: Optional[ToolResult] = None
    run: Optional[RunContext] = Field(None, description="Owning run")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class HookResult(BaseModel):
    """Allow, deny or modify decision with optional reason"""
    model_config = ConfigDict(populate_by_name=True)

    decision: HookDecision = HookDecision.ALLOW
    reason: Optional[str] = None
    modified_args: Optional[str] = Field(None, alias="modifiedArgs")

    @field_validator("decision", mode="before")
    @classmethod
    def _normalize_decision(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @classmethod
    def allow(cls, reason: Optional[str] = None) -> "HookResult":
        return cls(decision=HookDecision.ALLOW, reason=reason)

    @classmethod
    def deny(cls, reason: Optional[str] = None) -> "HookResult":
        return cls(decision=HookDecision.DENY, reason=reason)

    @classmethod
    def modify(cls, modified_args: str, reason: Optional[str] = None) -> "HookResult":
        return cls(decision=HookDecision.MODIFY, reason=reason, modified_args=modified_args)
