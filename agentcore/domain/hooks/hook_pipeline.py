from typing import Iterable, List, Optional
import re
import structlog

from agentcore.domain.models.hooks import AgentHookEvent, HookContext, HookDecision, HookResult
from agentcore.infrastructure.observability.logging import agent_logger
from .agent_hooks import AgentHook

logger = structlog.get_logger(__name__)


def build_match_key(event: AgentHookEvent, context: HookContext) -> str:
    """Composite key event[:stepName][:toolName] that matchers are searched in"""

    key = event.value
    if context.step_name:
        key += ":" + context.step_name
    if context.tool_name:
        key += ":" + context.tool_name
    return key


class HookPipeline:
    """Ordered hooks fired per event. Deny short-circuits, last result wins."""

    def __init__(self, hooks: Optional[Iterable[AgentHook]] = None):
        self._hooks: List[AgentHook] = []
        for hook in hooks or []:
            self.add(hook)

    def add(self, hook: AgentHook):
        if hook is None:
            raise ValueError("hook is required")
        self._hooks.append(hook)

    @property
    def hooks(self) -> List[AgentHook]:
        return list(self._hooks)

    def _matches(self, hook: AgentHook, match_key: str) -> bool:
        if hook.matcher is None:
            return True
        try:
            return re.search(hook.matcher, match_key) is not None
        except re.error as e:
            logger.warning(
                "hook_matcher_invalid",
                hook=type(hook).__name__,
                matcher=hook.matcher,
                match_key=match_key,
                error=str(e)
            )
            return False

    async def fire(self, event: AgentHookEvent, context: HookContext) -> HookResult:
        """Evaluate matching hooks in registration order and aggregate their decisions"""

        aggregate = HookResult.allow()
        match_key = build_match_key(event, context)

        for hook in list(self._hooks):
            if not self._matches(hook, match_key):
                continue

            result = await hook.evaluate(event, context)

            if result.decision == HookDecision.DENY:
                agent_logger.log_hook_decision(event.value, match_key, result.decision.value, result.reason)
                return result

            if result.decision == HookDecision.MODIFY and result.modified_args is not None:
                context.tool_args = result.modified_args
            aggregate = result

        if aggregate.decision != HookDecision.ALLOW:
            agent_logger.log_hook_decision(event.value, match_key, aggregate.decision.value, aggregate.reason)
        return aggregate
