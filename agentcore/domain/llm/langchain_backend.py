from typing import Dict, Any, List, Optional
import json
import structlog

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from agentcore.domain.models.llm import (
    AgentTool, DecisionRequest, LlmRequest, LlmResponse, TokenUsage
)
from agentcore.domain.models.tooling import ToolCall
from .model_backend import ModelBackend

logger = structlog.get_logger(__name__)


class LangChainModelBackend(ModelBackend):
    """Model backend over any langchain-core chat model"""

    def __init__(self, chat_model: BaseChatModel, name: Optional[str] = None):
        if chat_model is None:
            raise ValueError("chat_model is required")
        self.chat_model = chat_model
        self.name = name or type(chat_model).__name__

    async def complete(self, request: LlmRequest) -> LlmResponse:
        """Send the prompt (plus run variables) and map the AI message back"""

        messages: List[BaseMessage] = []

        variable_context = format_variables(request.variables)
        if variable_context:
            messages.append(SystemMessage(content="Context variables:\n" + variable_context))
        messages.append(HumanMessage(content=request.prompt))

        runnable = self.chat_model
        if request.tools:
            runnable = self.chat_model.bind_tools([to_function_spec(tool) for tool in request.tools])

        reply = await runnable.ainvoke(messages)
        return to_llm_response(reply)

    async def decide(self, request: DecisionRequest) -> str:
        """Ask for exactly one option and match the reply case-insensitively"""

        options_list = ", ".join(f'"{option}"' for option in request.options)
        system_prompt = (
            f"You are a routing decision agent. You MUST respond with exactly one of these options: {options_list}\n"
            "Do not include any other text, explanation, or formatting. Just the option word."
        )

        variable_context = format_variables(request.variables)
        user_prompt = request.prompt if not variable_context else f"{request.prompt}\n\nContext:\n{variable_context}"

        reply = await self.chat_model.ainvoke([
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_prompt),
        ])
        raw_decision = message_text(reply).strip()

        for option in request.options:
            if option.lower() in raw_decision.lower():
                return option

        logger.warning("Decision did not match any option", decision=raw_decision[:50])
        if len(raw_decision) <= 50 or not request.options:
            return raw_decision
        return request.options[0]


def format_variables(variables: Dict[str, Any]) -> str:
    """Render non-null variables as a bullet list"""

    return "\n".join(
        f"- {key}: {value}" for key, value in variables.items() if value is not None
    )


def to_function_spec(tool: AgentTool) -> Dict[str, Any]:
    """OpenAI-style function spec accepted by bind_tools"""

    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters_schema or {"type": "object", "properties": {}},
        },
    }


def message_text(message: BaseMessage) -> str:
    """Flatten string or content-block message content to text"""

    content = message.content
    if isinstance(content, str):
        return content

    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def to_llm_response(message: BaseMessage) -> LlmResponse:
    """Map a langchain AI message onto LlmResponse"""

    tool_calls = []
    usage = None
    finish_reason = None

    if isinstance(message, AIMessage):
        for call in message.tool_calls:
            tool_calls.append(ToolCall(
                tool_name=call["name"],
                arguments=json.dumps(call.get("args") or {}),
                id=call.get("id"),
            ))

        if message.usage_metadata:
            usage = TokenUsage(
                prompt_tokens=message.usage_metadata.get("input_tokens", 0),
                completion_tokens=message.usage_metadata.get("output_tokens", 0),
                total_tokens=message.usage_metadata.get("total_tokens", 0),
            )

    if message.response_metadata:
        finish_reason = message.response_metadata.get("finish_reason")

    return LlmResponse(
        content=message_text(message),
        tool_calls=tool_calls,
        finish_reason=finish_reason,
        usage=usage,
    )
