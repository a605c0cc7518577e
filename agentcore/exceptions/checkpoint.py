from typing import Optional

from .base import AgentCoreError


class CheckpointError(AgentCoreError):
    """Raised when a checkpoint cannot be addressed or persisted"""

    def __init__(self, message: str, run_id: Optional[str] = None, checkpoint_id: Optional[str] = None):
        super().__init__(message, details={"run_id": run_id, "checkpoint_id": checkpoint_id})
        self.run_id = run_id
        self.checkpoint_id = checkpoint_id
