from typing import Sequence

from agentcore.domain.models.conversation import CompactionOptions, ConversationMessage
from .base import CompactionStrategy, render_message

SUMMARY_HEADER = "[Conversation summary]"


class SlidingWindowCompactionStrategy(CompactionStrategy):
    """Keeps the first N and last M messages of a span and elides the middle.

    Deterministic and free of model calls. When the span is no larger than
    ``keep_first + keep_last`` every message is kept verbatim.
    """

    name = "sliding-window"

    def __init__(self, keep_first: int = 2, keep_last: int = 5):
        self.keep_first = max(0, keep_first)
        self.keep_last = max(0, keep_last)

    async def summarize(self, messages: Sequence[ConversationMessage], options: CompactionOptions) -> str:
        lines = [SUMMARY_HEADER]

        if len(messages) <= self.keep_first + self.keep_last:
            lines.extend(render_message(message) for message in messages)
            return "\n".join(lines)

        first = messages[:self.keep_first]
        last = messages[len(messages) - self.keep_last:] if self.keep_last else []
        omitted = len(messages) - self.keep_first - self.keep_last

        lines.extend(render_message(message) for message in first)
        lines.append(f"[... {omitted} messages omitted ...]")
        lines.extend(render_message(message) for message in last)
        return "\n".join(lines)
