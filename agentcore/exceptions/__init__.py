from .base import AgentCoreError
from .checkpoint import CheckpointError
from .config import ConfigError
from .tools import ToolError, ToolInputValidationError, ToolNotFoundError

__all__ = [
    "AgentCoreError",
    "CheckpointError",
    "ConfigError",
    "ToolError",
    "ToolInputValidationError",
    "ToolNotFoundError",
]
