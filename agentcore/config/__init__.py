from .settings import AgentLoopSettings

__all__ = ["AgentLoopSettings"]
