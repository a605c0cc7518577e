from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
from datetime import datetime

from agentcore.domain.models.run_context import RunContext


class BaseStep(ABC):
    """Unit of work invoked by the surrounding step-execution engine"""

    def __init__(self, name: str, description: Optional[str] = None):
        self.name = name
        self.description = description or ""
        self.created_at = datetime.utcnow()
        self.last_active: Optional[datetime] = None

    @abstractmethod
    async def execute(self, run: RunContext) -> None:
        """Run the step; outputs are written into run.properties"""
        pass

    def update_activity(self):
        """Update last activity timestamp"""
        self.last_active = datetime.utcnow()

    def get_info(self) -> Dict[str, Any]:
        """Get step information"""
        return {
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "last_active": self.last_active.isoformat() if self.last_active else None
        }
