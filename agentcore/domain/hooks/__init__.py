from .agent_hooks import AgentHook, CallbackHook, CommandHook, PromptHook
from .hook_pipeline import HookPipeline, build_match_key

__all__ = [
    "AgentHook",
    "CallbackHook",
    "CommandHook",
    "HookPipeline",
    "PromptHook",
    "build_match_key",
]
