from abc import ABC, abstractmethod
from typing import List, Iterable, Optional
import structlog

from agentcore.domain.models.conversation import ContextDocument

logger = structlog.get_logger(__name__)


class ContextSource(ABC):
    """Pluggable source of reference documents injected at seed time"""

    name: str = "context"

    @abstractmethod
    async def fetch(self) -> List[ContextDocument]:
        pass


class StaticContextSource(ContextSource):
    """In-process source serving a fixed list of documents"""

    def __init__(self, documents: Iterable[ContextDocument], name: str = "static"):
        self.name = name
        self.documents = list(documents)

    async def fetch(self) -> List[ContextDocument]:
        return list(self.documents)


class ContextAggregator:
    """Combines context sources into a single prompt section"""

    def __init__(self, sources: Optional[Iterable[ContextSource]] = None):
        self._sources: List[ContextSource] = list(sources or [])

    def add(self, source: ContextSource):
        if source is None:
            raise ValueError("source is required")
        self._sources.append(source)

    @property
    def sources(self) -> List[ContextSource]:
        return list(self._sources)

    async def get_all_context(self, run=None) -> List[ContextDocument]:
        """Fetch every source in registration order"""

        documents = []
        for source in self._sources:
            if run is not None:
                run.raise_if_cancelled()
            fetched = await source.fetch()
            logger.debug("Fetched context", source=getattr(source, "name", type(source).__name__), documents=len(fetched))
            documents.extend(fetched)
        return documents

    async def build_context_prompt(self, run=None) -> str:
        """Render all documents under a '## Context' heading, or '' when there are none"""

        documents = await self.get_all_context(run)
        if not documents:
            return ""

        lines = ["## Context"]
        for document in documents:
            lines.append(f"### {document.name}")
            if document.source:
                lines.append(f"Source: {document.source}")
            lines.append(document.content)
            lines.append("")
        return "\n".join(lines) + "\n"
