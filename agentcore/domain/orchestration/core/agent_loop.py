from typing import TypedDict, List, Dict, Any, Optional, Literal
from langgraph.errors import NodeCancelledError
from langgraph.graph import StateGraph, END
import asyncio
import structlog
import time

from agentcore.domain.context.context_aggregator import ContextAggregator
from agentcore.domain.context.context_manager import ConversationContextManager
from agentcore.domain.hooks.hook_pipeline import HookPipeline
from agentcore.domain.llm.model_backend import ModelBackend
from agentcore.domain.models.agent_state import AgentLoopOptions, AgentLoopResult
from agentcore.domain.models.conversation import (
    CompactionOptions, ConversationMessage, ConversationRole
)
from agentcore.domain.models.hooks import AgentHookEvent, HookContext, HookDecision
from agentcore.domain.models.llm import AgentTool, LlmRequest
from agentcore.domain.models.run_context import RunContext
from agentcore.domain.models.tooling import ToolCall, ToolResult
from agentcore.domain.tool.tool_registry import ToolRegistry
from agentcore.infrastructure.observability.logging import agent_logger, metrics

logger = structlog.get_logger(__name__)

# Graph supersteps per iteration: compact, call_model, run_tools, checkpoint
NODES_PER_ITERATION = 4


class LoopState(TypedDict):
    """State for the agent loop graph"""
    run: RunContext
    context_manager: ConversationContextManager
    hooks: HookPipeline
    tools: List[AgentTool]
    iteration: int
    last_response: str
    pending_tool_calls: List[ToolCall]
    tool_results: List[ToolResult]


class AgentLoopOrchestrator:
    """Iterate model call -> hooked tool calls until the model stops asking for tools.

    Compaction runs at the start of every iteration once the context is over
    budget and checkpoints are saved every ``checkpoint_interval`` iterations.
    Tool failures and hook denials are folded back into the conversation; model,
    hook, compaction and checkpoint errors propagate to the caller. Hitting
    ``max_iterations`` simply stops the loop.
    """

    def __init__(
        self,
        model_backend: ModelBackend,
        tool_registry: ToolRegistry,
        options: Optional[AgentLoopOptions] = None
    ):
        if model_backend is None:
            raise ValueError("model_backend is required")
        if tool_registry is None:
            raise ValueError("tool_registry is required")

        self.model_backend = model_backend
        self.tool_registry = tool_registry
        self.options = options or AgentLoopOptions()
        self.workflow = self._create_workflow()

    @property
    def name(self) -> str:
        return self.options.step_name

    def _create_workflow(self):
        """Create the agent loop graph"""

        workflow = StateGraph(LoopState)

        workflow.add_node("seed", self.seed_node)
        workflow.add_node("compact", self.compaction_node)
        workflow.add_node("call_model", self.model_call_node)
        workflow.add_node("run_tools", self.tool_execution_node)
        workflow.add_node("checkpoint", self.checkpoint_node)

        workflow.set_entry_point("seed")

        workflow.add_conditional_edges(
            "seed",
            self.route_after_seed,
            {
                "start": "compact",
                "done": END
            }
        )
        workflow.add_edge("compact", "call_model")

        # Stop as soon as the model answers without tool calls
        workflow.add_conditional_edges(
            "call_model",
            self.route_after_model,
            {
                "tools": "run_tools",
                "done": END
            }
        )
        workflow.add_edge("run_tools", "checkpoint")

        workflow.add_conditional_edges(
            "checkpoint",
            self.route_after_iteration,
            {
                "continue": "compact",
                "done": END
            }
        )

        return workflow.compile()

    async def run(self, run: RunContext) -> AgentLoopResult:
        """Run the loop to completion for one run"""

        run.raise_if_cancelled()

        hooks = self.options.hooks or HookPipeline()
        context_manager = self.options.context_manager or ConversationContextManager()

        initial_state: LoopState = {
            "run": run,
            "context_manager": context_manager,
            "hooks": hooks,
            "tools": [],
            "iteration": 0,
            "last_response": "",
            "pending_tool_calls": [],
            "tool_results": []
        }

        recursion_limit = NODES_PER_ITERATION * self.options.max_iterations + 5
        with structlog.contextvars.bound_contextvars(run_id=run.run_id, step_name=self.name):
            started = time.perf_counter()
            try:
                final_state = await self.workflow.ainvoke(
                    initial_state,
                    config={"recursion_limit": recursion_limit}
                )
            except NodeCancelledError as e:
                # Nodes raising CancelledError come back wrapped as a node failure
                logger.info("Agent loop cancelled", node=str(e))
                if isinstance(e.__cause__, asyncio.CancelledError):
                    raise e.__cause__
                raise asyncio.CancelledError(f"Run {run.run_id} was cancelled") from e
            metrics.record_latency("agent.loop", (time.perf_counter() - started) * 1000)

            result = AgentLoopResult(
                response=final_state["last_response"],
                iterations=final_state["iteration"],
                tool_results=final_state["tool_results"]
            )
            agent_logger.log_agent_event(
                "loop_completed",
                self.name,
                run.run_id,
                {"iterations": result.iterations, "tool_results": len(result.tool_results)}
            )

        return result

    async def seed_node(self, state: LoopState) -> Dict[str, Any]:
        """Seed the conversation with the system prompt and aggregated context"""

        run = state["run"]
        context_manager = state["context_manager"]
        agent_logger.log_agent_event(
            "loop_started",
            self.name,
            run.run_id,
            {"max_iterations": self.options.max_iterations, "provider": self.model_backend.name}
        )

        aggregator = ContextAggregator(self.options.context_sources)
        context_prompt = await aggregator.build_context_prompt(run)

        tools = [
            AgentTool(
                name=tool.name,
                description=tool.description,
                parameters_schema=tool.parameters_schema
            )
            for tool in await self.tool_registry.list_all_tools()
        ]

        if self.options.system_prompt:
            context_manager.add_message(ConversationMessage(
                role=ConversationRole.SYSTEM,
                content=self.options.system_prompt
            ))
        if context_prompt:
            context_manager.add_message(ConversationMessage(
                role=ConversationRole.SYSTEM,
                content=context_prompt
            ))

        return {"tools": tools}

    async def compaction_node(self, state: LoopState) -> Dict[str, Any]:
        """Start an iteration; compact first when the context is over budget"""

        run = state["run"]
        context_manager = state["context_manager"]
        hooks = state["hooks"]
        iteration = state["iteration"] + 1

        logger.debug("Starting iteration", iteration=iteration)
        options = self._compaction_options()

        if self.options.auto_compact and context_manager.needs_compaction(options):
            run.raise_if_cancelled()

            await hooks.fire(
                AgentHookEvent.PRE_COMPACT,
                HookContext(event=AgentHookEvent.PRE_COMPACT, step_name=self.name, run=run)
            )

            started = time.perf_counter()
            result = await context_manager.compact(options)
            metrics.record_latency("agent.compaction", (time.perf_counter() - started) * 1000)
            metrics.increment_counter("agent.compactions")
            agent_logger.log_context_update(
                run.run_id,
                "compacted",
                result.model_dump(exclude={"summary"})
            )

            await hooks.fire(
                AgentHookEvent.POST_COMPACT,
                HookContext(event=AgentHookEvent.POST_COMPACT, step_name=self.name, run=run)
            )

        metrics.set_gauge("agent.context.tokens", context_manager.estimate_token_count())
        return {"iteration": iteration}

    async def model_call_node(self, state: LoopState) -> Dict[str, Any]:
        """Submit the rendered history to the model backend"""

        run = state["run"]
        context_manager = state["context_manager"]
        run.raise_if_cancelled()

        request = LlmRequest(
            prompt="\n".join(message.content for message in context_manager.messages),
            variables=dict(run.properties),
            tools=state["tools"]
        )

        started = time.perf_counter()
        response = await self.model_backend.complete(request)
        metrics.record_latency("agent.model_call", (time.perf_counter() - started) * 1000)

        if response.usage:
            metrics.increment_counter("agent.tokens.prompt", response.usage.prompt_tokens)
            metrics.increment_counter("agent.tokens.completion", response.usage.completion_tokens)

        context_manager.add_message(ConversationMessage(
            role=ConversationRole.ASSISTANT,
            content=response.content
        ))

        logger.info(
            "Model replied",
            iteration=state["iteration"],
            tool_calls=len(response.tool_calls),
            finish_reason=response.finish_reason
        )

        return {
            "last_response": response.content,
            "pending_tool_calls": list(response.tool_calls)
        }

    async def tool_execution_node(self, state: LoopState) -> Dict[str, Any]:
        """Run the requested tool calls one by one, in the order the model returned them"""

        results = list(state["tool_results"])
        for tool_call in state["pending_tool_calls"]:
            result = await self._execute_tool_call(
                tool_call,
                state["run"],
                state["context_manager"],
                state["hooks"]
            )
            if result is not None:
                results.append(result)

        return {"tool_results": results, "pending_tool_calls": []}

    async def _execute_tool_call(
        self,
        tool_call: ToolCall,
        run: RunContext,
        context_manager: ConversationContextManager,
        hooks: HookPipeline
    ) -> Optional[ToolResult]:
        """Hook, invoke and record one tool call; None when a hook denied it"""

        run.raise_if_cancelled()

        pre_context = HookContext(
            event=AgentHookEvent.PRE_TOOL_CALL,
            step_name=self.name,
            tool_name=tool_call.tool_name,
            tool_args=tool_call.arguments,
            run=run
        )
        decision = await hooks.fire(AgentHookEvent.PRE_TOOL_CALL, pre_context)

        if decision.decision == HookDecision.DENY:
            reason = decision.reason or "denied by hook"
            context_manager.add_tool_call(tool_call.tool_name, tool_call.arguments, f"Tool call denied: {reason}")
            metrics.increment_counter("agent.tool_calls.denied", tags={"tool": tool_call.tool_name})
            logger.info("Tool call denied", tool_name=tool_call.tool_name, reason=reason)
            return None

        # Modify decisions were written back into the hook context
        arguments = pre_context.tool_args if pre_context.tool_args is not None else tool_call.arguments

        started = time.perf_counter()
        try:
            result = await self.tool_registry.invoke(tool_call.tool_name, arguments)
        except Exception as e:
            result = ToolResult(content=str(e) or type(e).__name__, is_error=True)
            metrics.increment_counter("agent.tool_calls.failed", tags={"tool": tool_call.tool_name})
            agent_logger.log_tool_execution(
                tool_call.tool_name, run.run_id, arguments,
                duration_ms=(time.perf_counter() - started) * 1000,
                success=False, error=result.content
            )
            await hooks.fire(
                AgentHookEvent.POST_TOOL_CALL_FAILURE,
                HookContext(
                    event=AgentHookEvent.POST_TOOL_CALL_FAILURE,
                    step_name=self.name,
                    tool_name=tool_call.tool_name,
                    tool_args=arguments,
                    tool_result=result,
                    run=run
                )
            )
        else:
            agent_logger.log_tool_execution(
                tool_call.tool_name, run.run_id, arguments,
                duration_ms=(time.perf_counter() - started) * 1000,
                success=not result.is_error,
                error=result.content if result.is_error else None
            )

        metrics.increment_counter("agent.tool_calls", tags={"tool": tool_call.tool_name})
        context_manager.add_tool_call(tool_call.tool_name, arguments, result.content)

        await hooks.fire(
            AgentHookEvent.POST_TOOL_CALL,
            HookContext(
                event=AgentHookEvent.POST_TOOL_CALL,
                step_name=self.name,
                tool_name=tool_call.tool_name,
                tool_args=arguments,
                tool_result=result,
                run=run
            )
        )
        return result

    async def checkpoint_node(self, state: LoopState) -> Dict[str, Any]:
        """Snapshot the context every checkpoint_interval iterations"""

        store = self.options.checkpoint_store
        iteration = state["iteration"]

        if store is not None and iteration % self.options.checkpoint_interval == 0:
            run = state["run"]
            run.raise_if_cancelled()

            snapshot = state["context_manager"].create_snapshot(
                step_name=self.name,
                properties={"iteration": iteration}
            )
            checkpoint_id = f"{self.name}-iteration-{iteration}"
            info = await store.save(run.run_id, checkpoint_id, snapshot)
            agent_logger.log_context_update(
                run.run_id,
                "checkpoint_saved",
                {"checkpoint_id": checkpoint_id, "messages": info.message_count, "tokens": info.estimated_tokens}
            )

        return {"pending_tool_calls": []}

    def route_after_seed(self, state: LoopState) -> Literal["start", "done"]:
        return "start" if self.options.max_iterations > 0 else "done"

    def route_after_model(self, state: LoopState) -> Literal["tools", "done"]:
        return "tools" if state["pending_tool_calls"] else "done"

    def route_after_iteration(self, state: LoopState) -> Literal["continue", "done"]:
        """Continue until max_iterations; the final iteration's tool calls are already processed"""

        if state["iteration"] < self.options.max_iterations:
            return "continue"

        logger.warning(
            "Agent loop reached max iterations",
            max_iterations=self.options.max_iterations
        )
        return "done"

    def _compaction_options(self) -> CompactionOptions:
        return CompactionOptions(
            max_tokens=self.options.max_context_tokens,
            max_messages=self.options.max_messages,
            preserve_recent_count=self.options.preserve_recent_count,
            preserve_system_messages=self.options.preserve_system_messages,
            focus_instructions=self.options.compaction_focus_instructions,
            strategy=self.options.compaction_strategy
        )
