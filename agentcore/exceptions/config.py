from .base import AgentCoreError


class ConfigError(AgentCoreError):
    """Raised when loop settings fail validation"""
    pass
