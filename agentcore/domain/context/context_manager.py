from typing import Dict, Any, List, Optional
import structlog

from agentcore.domain.models.conversation import (
    CompactionOptions, CompactionResult, ContextSnapshot,
    ConversationMessage, ConversationRole
)
from .compaction.base import CompactionStrategy
from .compaction.sliding_window import SlidingWindowCompactionStrategy
from .token_estimator import DefaultTokenEstimator, TokenEstimator

logger = structlog.get_logger(__name__)


class ConversationContextManager:
    """Owns the ordered message history of one run and keeps it within budget"""

    def __init__(
        self,
        estimator: Optional[TokenEstimator] = None,
        strategy: Optional[CompactionStrategy] = None
    ):
        self.estimator = estimator or DefaultTokenEstimator()
        self.strategy = strategy or SlidingWindowCompactionStrategy()
        self._messages: List[ConversationMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> List[ConversationMessage]:
        """Copy of the history in append order"""
        return list(self._messages)

    def add_message(self, message: ConversationMessage):
        if message is None:
            raise ValueError("message is required")
        self._messages.append(message)

    def add_tool_call(self, tool_name: str, args: str, result: str):
        """Record a tool invocation (or its denial) as a Tool-role message"""

        self._messages.append(ConversationMessage(
            role=ConversationRole.TOOL,
            content=f"Tool '{tool_name}' called with {args}: {result}",
            metadata={"toolName": tool_name, "args": args}
        ))

    def estimate_token_count(self) -> int:
        return sum(self.estimator.estimate_tokens(message.content) for message in self._messages)

    def needs_compaction(self, options: CompactionOptions) -> bool:
        """True when the token ceiling (or the optional message ceiling) is exceeded"""

        if self.estimate_token_count() > options.max_tokens:
            return True
        return options.max_messages is not None and len(self._messages) > options.max_messages

    async def compact(self, options: CompactionOptions) -> CompactionResult:
        """Replace older messages with a summary produced by the compaction strategy"""

        if options is None:
            raise ValueError("options are required")

        original_count = len(self._messages)
        original_tokens = self.estimate_token_count()
        strategy = options.strategy or self.strategy

        system_messages = []
        non_system = []
        for message in self._messages:
            if options.preserve_system_messages and message.role == ConversationRole.SYSTEM:
                system_messages.append(message)
            else:
                non_system.append(message)

        recent_count = min(options.preserve_recent_count, len(non_system))
        split = len(non_system) - recent_count
        # A single-message span would be swapped one-for-one; widen it so compaction shrinks the history
        if split == 1 and recent_count > 0:
            split = 2
        to_compact = non_system[:split]
        recent = non_system[split:]

        summary = ""
        if to_compact:
            summary = await strategy.summarize(to_compact, options)

        rebuilt = list(system_messages)
        if summary:
            rebuilt.append(ConversationMessage(
                role=ConversationRole.SYSTEM,
                content=summary,
                is_compacted=True
            ))
        rebuilt.extend(recent)
        self._messages = rebuilt

        result = CompactionResult(
            original_message_count=original_count,
            compacted_message_count=len(self._messages),
            original_token_estimate=original_tokens,
            compacted_token_estimate=self.estimate_token_count(),
            summary=summary
        )

        logger.info(
            "Context compacted",
            strategy=strategy.name,
            compacted_span=len(to_compact),
            original_messages=result.original_message_count,
            compacted_messages=result.compacted_message_count,
            original_tokens=result.original_token_estimate,
            compacted_tokens=result.compacted_token_estimate
        )
        return result

    def create_snapshot(
        self,
        step_name: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None
    ) -> ContextSnapshot:
        """Independent copy of the history; later appends never reach it"""

        return ContextSnapshot(
            messages=[message.model_copy(deep=True) for message in self._messages],
            properties=dict(properties or {}),
            step_name=step_name
        )

    def restore_snapshot(self, snapshot: ContextSnapshot):
        if snapshot is None:
            raise ValueError("snapshot is required")
        self._messages = [message.model_copy(deep=True) for message in snapshot.messages]

    def clear(self):
        self._messages = []
