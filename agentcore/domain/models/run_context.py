from typing import Dict, Any
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr
from datetime import datetime
import asyncio
import uuid


class RunContext(BaseModel):
    """Per-run state shared with the surrounding step engine"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Run identifier")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Run property bag")
    started_at: datetime = Field(default_factory=datetime.utcnow)

    _cancelled: bool = PrivateAttr(default=False)

    def cancel(self):
        """Request cooperative cancellation at the next suspension point"""
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self):
        if self._cancelled:
            raise asyncio.CancelledError(f"Run {self.run_id} was cancelled")
