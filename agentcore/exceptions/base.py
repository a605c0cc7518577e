from typing import Any, Dict, Optional


class AgentCoreError(Exception):
    """Base class for all agentcore errors"""

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.original_error = original_error
        self.details = details or {}
