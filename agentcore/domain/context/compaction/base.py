from abc import ABC, abstractmethod
from typing import Sequence

from agentcore.domain.models.conversation import CompactionOptions, ConversationMessage


class CompactionStrategy(ABC):
    """Reduces a span of messages to summary text"""

    name: str = "base"

    @abstractmethod
    async def summarize(self, messages: Sequence[ConversationMessage], options: CompactionOptions) -> str:
        pass


def render_message(message: ConversationMessage) -> str:
    """Role-tagged single-line rendering used inside summaries"""
    return f"[{message.role.value.capitalize()}]: {message.content}"
