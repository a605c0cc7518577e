"""Shared fakes for the agent loop tests."""

from typing import List, Optional

import pytest

from agentcore.domain.llm.model_backend import ModelBackend
from agentcore.domain.models import (
    DecisionRequest,
    LlmRequest,
    LlmResponse,
    ToolCall,
    ToolDefinition,
    ToolResult,
)
from agentcore.domain.tool.tool_provider import ToolProvider
from agentcore.exceptions import ToolNotFoundError
from agentcore.infrastructure.observability.logging import metrics


class ScriptedModelBackend(ModelBackend):
    """Replays canned responses and records every request it receives."""

    name = "scripted"

    def __init__(
        self,
        responses: Optional[List[LlmResponse]] = None,
        repeat_last: bool = False,
        choices: Optional[List[str]] = None
    ):
        self.responses = list(responses or [])
        self.choices = list(choices or [])
        self.repeat_last = repeat_last
        self.requests: List[LlmRequest] = []
        self.decisions: List[DecisionRequest] = []

    async def complete(self, request: LlmRequest) -> LlmResponse:
        self.requests.append(request)
        if len(self.responses) > 1 or (self.responses and not self.repeat_last):
            return self.responses.pop(0)
        if self.responses:
            return self.responses[0]
        return LlmResponse(content="")

    async def decide(self, request: DecisionRequest) -> str:
        self.decisions.append(request)
        if self.choices:
            return self.choices.pop(0)
        return request.options[0] if request.options else ""


class FailingModelBackend(ModelBackend):
    name = "failing"

    async def complete(self, request: LlmRequest) -> LlmResponse:
        raise RuntimeError("model unavailable")

    async def decide(self, request: DecisionRequest) -> str:
        raise RuntimeError("model unavailable")


class RecordingToolProvider(ToolProvider):
    """Provider whose tools return fixed results and remember their invocations."""

    def __init__(self, name: str = "recording", results: Optional[dict] = None, failures: Optional[dict] = None):
        self.name = name
        self.results = dict(results or {})
        self.failures = dict(failures or {})
        self.invocations: List[tuple] = []

    async def list_tools(self) -> List[ToolDefinition]:
        names = list(self.results) + [n for n in self.failures if n not in self.results]
        return [
            ToolDefinition(name=n, description=f"{n} tool", metadata={"provider": self.name})
            for n in names
        ]

    async def invoke_tool(self, tool_name: str, arguments_json: str) -> ToolResult:
        self.invocations.append((tool_name, arguments_json))
        if tool_name in self.failures:
            raise self.failures[tool_name]
        if tool_name not in self.results:
            raise ToolNotFoundError(tool_name)
        return ToolResult(content=self.results[tool_name])


def tool_reply(*calls: ToolCall, content: str = "") -> LlmResponse:
    return LlmResponse(content=content, tool_calls=list(calls), finish_reason="tool_calls")


def final_reply(content: str) -> LlmResponse:
    return LlmResponse(content=content, finish_reason="stop")


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()
