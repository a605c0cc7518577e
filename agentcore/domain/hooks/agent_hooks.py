from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, Union
import asyncio
import inspect
import json
import structlog

from pydantic import ValidationError

from agentcore.domain.llm.model_backend import ModelBackend
from agentcore.domain.models.hooks import AgentHookEvent, HookContext, HookResult
from agentcore.domain.models.llm import DecisionRequest

logger = structlog.get_logger(__name__)

HookCallback = Callable[[AgentHookEvent, HookContext], Union[HookResult, Awaitable[HookResult]]]


class AgentHook(ABC):
    """Interceptor evaluated by the hook pipeline.

    ``matcher`` is an optional regular expression searched in the composite
    key ``event[:stepName][:toolName]``; ``None`` matches every event.
    """

    matcher: Optional[str] = None

    @abstractmethod
    async def evaluate(self, event: AgentHookEvent, context: HookContext) -> HookResult:
        pass


class CallbackHook(AgentHook):
    """In-process hook backed by a sync or async callable"""

    def __init__(self, callback: HookCallback, matcher: Optional[str] = None):
        if callback is None:
            raise ValueError("callback is required")
        self.callback = callback
        self.matcher = matcher

    async def evaluate(self, event: AgentHookEvent, context: HookContext) -> HookResult:
        result = self.callback(event, context)
        if inspect.isawaitable(result):
            result = await result
        return result if result is not None else HookResult.allow()


class CommandHook(AgentHook):
    """Runs an external command: context JSON on stdin, HookResult JSON on stdout.

    Failing to start, timing out or exiting non-zero denies the call.
    Empty or unparseable output allows it.
    """

    def __init__(
        self,
        command: str,
        args: Optional[List[str]] = None,
        matcher: Optional[str] = None,
        timeout: float = 30.0
    ):
        if not command:
            raise ValueError("command is required")
        self.command = command
        self.args = list(args or [])
        self.matcher = matcher
        self.timeout = timeout

    async def evaluate(self, event: AgentHookEvent, context: HookContext) -> HookResult:
        try:
            process = await asyncio.create_subprocess_exec(
                self.command,
                *self.args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE
            )
        except OSError as e:
            logger.warning("Hook command failed to start", command=self.command, error=str(e))
            return HookResult.deny(f"Failed to start command: {self.command}")

        payload = serialize_context(event, context).encode("utf-8")
        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(payload), timeout=self.timeout)
        except asyncio.TimeoutError:
            await _terminate(process)
            return HookResult.deny(f"Command timed out after {self.timeout}s")
        except BaseException:
            # Cancelled while waiting; never leave the child running
            await _terminate(process)
            raise

        if process.returncode != 0:
            logger.info(
                "Hook command exited non-zero",
                command=self.command,
                exit_code=process.returncode,
                stderr=stderr.decode("utf-8", errors="replace")[:500]
            )
            return HookResult.deny(f"Command exited with code {process.returncode}")

        return parse_result(stdout.decode("utf-8", errors="replace"))


async def _terminate(process: asyncio.subprocess.Process):
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()


def serialize_context(event: AgentHookEvent, context: HookContext) -> str:
    """JSON document written to a command hook's stdin"""

    return json.dumps({
        "event": event.value,
        "stepName": context.step_name,
        "toolName": context.tool_name,
        "toolArgs": context.tool_args
    })


def parse_result(output: str) -> HookResult:
    """Parse a command hook's stdout; blank or malformed output allows"""

    if not output.strip():
        return HookResult.allow()
    try:
        return HookResult.model_validate_json(output)
    except ValidationError as e:
        logger.warning("Malformed hook output, allowing", error=str(e), output=output[:200])
        return HookResult.allow()


class PromptHook(AgentHook):
    """Asks the model backend to choose between allowing and denying the event"""

    OPTIONS = ["allow", "deny"]

    def __init__(self, model_backend: ModelBackend, prompt_template: str, matcher: Optional[str] = None):
        if model_backend is None:
            raise ValueError("model_backend is required")
        if prompt_template is None:
            raise ValueError("prompt_template is required")
        self.model_backend = model_backend
        self.prompt_template = prompt_template
        self.matcher = matcher

    def render_prompt(self, event: AgentHookEvent, context: HookContext) -> str:
        values = {
            "event": event.value,
            "stepName": context.step_name or "",
            "toolName": context.tool_name or "",
            "toolArgs": context.tool_args or "",
        }
        prompt = self.prompt_template
        for key, value in values.items():
            prompt = prompt.replace("{" + key + "}", value)
        return prompt

    async def evaluate(self, event: AgentHookEvent, context: HookContext) -> HookResult:
        choice = await self.model_backend.decide(DecisionRequest(
            prompt=self.render_prompt(event, context),
            options=list(self.OPTIONS)
        ))
        if choice.strip().lower() == "deny":
            return HookResult.deny(choice)
        return HookResult.allow(choice)
