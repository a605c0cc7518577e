from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field

from .tooling import ToolCall


class AgentTool(BaseModel):
    """Tool definition as advertised to the model"""
    name: str
    description: str = ""
    parameters_schema: Optional[Dict[str, Any]] = None


class TokenUsage(BaseModel):
    """Token accounting reported by a backend"""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class LlmRequest(BaseModel):
    """Completion request sent to a model backend"""
    prompt: str = ""
    variables: Dict[str, Any] = Field(default_factory=dict, description="Run properties exposed to the model")
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    tools: List[AgentTool] = Field(default_factory=list)


class LlmResponse(BaseModel):
    """Completion returned by a model backend"""
    content: str = ""
    tool_calls: List[ToolCall] = Field(default_factory=list)
    finish_reason: Optional[str] = None
    usage: Optional[TokenUsage] = None


class DecisionRequest(BaseModel):
    """Ask the backend to pick one option"""
    prompt: str = ""
    options: List[str] = Field(default_factory=list)
    variables: Dict[str, Any] = Field(default_factory=dict)
