from abc import ABC, abstractmethod

from agentcore.domain.models.llm import DecisionRequest, LlmRequest, LlmResponse


class ModelBackend(ABC):
    """Opaque request/response language-model service"""

    name: str = "model"

    @abstractmethod
    async def complete(self, request: LlmRequest) -> LlmResponse:
        """Return response text plus any requested tool calls"""
        pass

    @abstractmethod
    async def decide(self, request: DecisionRequest) -> str:
        """Pick one of the request's options"""
        pass
