from typing import Optional
from pydantic import BaseModel, Field
from datetime import datetime


class CheckpointInfo(BaseModel):
    """Checkpoint metadata readable without loading the snapshot"""
    checkpoint_id: str = Field(description="Checkpoint identifier")
    run_id: str = Field(description="Run the checkpoint belongs to")
    created_at: datetime = Field(default_factory=datetime.utcnow)
    step_name: Optional[str] = None
    message_count: int = 0
    estimated_tokens: int = 0
