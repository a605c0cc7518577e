from abc import ABC, abstractmethod
import math


class TokenEstimator(ABC):
    """Estimates how many model tokens a text occupies"""

    @abstractmethod
    def estimate_tokens(self, text: str) -> int:
        pass


class DefaultTokenEstimator(TokenEstimator):
    """Character heuristic: ceil((len + 3) / 4), zero for empty text"""

    def estimate_tokens(self, text: str) -> int:
        if not text:
            return 0
        return math.ceil((len(text) + 3) / 4)
