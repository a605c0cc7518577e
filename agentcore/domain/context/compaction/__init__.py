from .base import CompactionStrategy
from .model_summary import ModelSummaryCompactionStrategy
from .sliding_window import SlidingWindowCompactionStrategy

__all__ = [
    "CompactionStrategy",
    "ModelSummaryCompactionStrategy",
    "SlidingWindowCompactionStrategy",
]
