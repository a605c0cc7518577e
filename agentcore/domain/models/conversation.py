from typing import Dict, Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from enum import Enum


class ConversationRole(str, Enum):
    """Role of a conversation message"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ConversationMessage(BaseModel):
    """A single entry of the conversation history"""
    model_config = ConfigDict(frozen=True)

    role: ConversationRole = Field(description="Message author role")
    content: str = Field(default="", description="Message text")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    metadata: Dict[str, str] = Field(default_factory=dict, description="Tool name/args for tool entries")
    is_compacted: bool = Field(default=False, description="True for synthetic compaction summaries")


class ContextSnapshot(BaseModel):
    """Point-in-time copy of the conversation history"""
    messages: List[ConversationMessage] = Field(default_factory=list)
    properties: Dict[str, Any] = Field(default_factory=dict)
    step_name: Optional[str] = Field(None, description="Step that captured the snapshot")
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    def copy_snapshot(self) -> "ContextSnapshot":
        """Return an independent deep copy"""
        return self.model_copy(deep=True)


class ContextDocument(BaseModel):
    """Reference document contributed by a context source"""
    name: str = Field(description="Document title")
    content: str = Field(default="", description="Document body")
    source: Optional[str] = Field(None, description="Where the document came from")
    metadata: Dict[str, str] = Field(default_factory=dict)


class CompactionOptions(BaseModel):
    """Thresholds and knobs for a compaction pass"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    max_tokens: int = Field(default=100_000, description="Token ceiling that triggers compaction")
    max_messages: Optional[int] = Field(None, description="Optional message-count ceiling")
    preserve_recent_count: int = Field(default=5, ge=0, description="Trailing messages kept verbatim")
    preserve_system_messages: bool = Field(default=True)
    focus_instructions: Optional[str] = Field(None, description="What a summary should focus on")
    strategy: Optional[Any] = Field(None, description="Overrides the manager's compaction strategy")


class CompactionResult(BaseModel):
    """Before/after counters of a compaction pass"""
    original_message_count: int
    compacted_message_count: int
    original_token_estimate: int
    compacted_token_estimate: int
    summary: str = ""
