from typing import Sequence
import structlog

from agentcore.domain.llm.model_backend import ModelBackend
from agentcore.domain.models.conversation import CompactionOptions, ConversationMessage
from agentcore.domain.models.llm import LlmRequest
from .base import CompactionStrategy, render_message

logger = structlog.get_logger(__name__)

SUMMARY_INSTRUCTIONS = (
    "Summarize the following conversation so it can replace the original messages. "
    "Preserve facts, decisions, tool results and open tasks. Be concise."
)


class ModelSummaryCompactionStrategy(CompactionStrategy):
    """Asks the model backend to summarize the span"""

    name = "model-summary"

    def __init__(self, model_backend: ModelBackend):
        if model_backend is None:
            raise ValueError("model_backend is required")
        self.model_backend = model_backend

    async def summarize(self, messages: Sequence[ConversationMessage], options: CompactionOptions) -> str:
        sections = [SUMMARY_INSTRUCTIONS]
        if options.focus_instructions:
            sections.append(f"Focus on: {options.focus_instructions}")
        sections.append("Conversation:\n" + "\n".join(render_message(message) for message in messages))

        logger.debug("Requesting model summary", message_count=len(messages))
        response = await self.model_backend.complete(LlmRequest(prompt="\n\n".join(sections)))
        return response.content
