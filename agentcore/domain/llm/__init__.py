from .langchain_backend import LangChainModelBackend
from .model_backend import ModelBackend

__all__ = ["LangChainModelBackend", "ModelBackend"]
