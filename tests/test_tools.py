"""Tests for tool providers, the registry dispatch rule and ToolCallStep."""

import json
import threading

import pytest

from agentcore.domain.models import RunContext, ToolDefinition, ToolResult
from agentcore.domain.tool import (
    LocalToolProvider,
    ToolCallStep,
    ToolParameterValidator,
    ToolRegistry,
    substitute_properties,
)
from agentcore.exceptions import ToolInputValidationError, ToolNotFoundError

from conftest import RecordingToolProvider


ADD_SCHEMA = {
    "type": "object",
    "properties": {"a": {"type": "integer"}, "b": {"type": "integer"}},
    "required": ["a", "b"],
}


def _calculator() -> LocalToolProvider:
    provider = LocalToolProvider("calc")

    @provider.tool(name="add", description="Add two integers", parameters_schema=ADD_SCHEMA)
    def add(arguments):
        return arguments["a"] + arguments["b"]

    @provider.tool()
    async def echo(arguments):
        """Echo the text argument"""
        return arguments.get("text", "")

    return provider


# ---------------------------------------------------------------------------
# Argument validation
# ---------------------------------------------------------------------------

class TestToolParameterValidator:
    @pytest.mark.parametrize("raw", ["", "   "])
    def test_blank_arguments_are_empty_object(self, raw):
        assert ToolParameterValidator.parse_arguments("t", raw) == {}

    def test_invalid_json(self):
        with pytest.raises(ToolInputValidationError) as exc_info:
            ToolParameterValidator.parse_arguments("t", "{oops")
        assert exc_info.value.tool_name == "t"
        assert exc_info.value.invalid_input == "{oops"

    def test_non_object_json(self):
        with pytest.raises(ToolInputValidationError):
            ToolParameterValidator.parse_arguments("t", "[1, 2]")

    def test_schema_violation(self):
        tool = ToolDefinition(name="add", parameters_schema=ADD_SCHEMA)
        with pytest.raises(ToolInputValidationError, match="Schema validation failed"):
            ToolParameterValidator.validate_tool_call(tool, {"a": 1})

    def test_no_schema_accepts_anything(self):
        ToolParameterValidator.validate_tool_call(ToolDefinition(name="free"), {"x": object()})


# ---------------------------------------------------------------------------
# LocalToolProvider
# ---------------------------------------------------------------------------

class TestLocalToolProvider:
    @pytest.mark.asyncio
    async def test_decorated_tools_are_listed(self):
        tools = {tool.name: tool for tool in await _calculator().list_tools()}

        assert set(tools) == {"add", "echo"}
        assert tools["echo"].description == "Echo the text argument"
        assert tools["add"].metadata["provider"] == "calc"

    @pytest.mark.asyncio
    async def test_sync_handler_result_is_json_encoded(self):
        result = await _calculator().invoke_tool("add", '{"a": 2, "b": 3}')
        assert result == ToolResult(content="5")

    @pytest.mark.asyncio
    async def test_async_handler_string_result(self):
        result = await _calculator().invoke_tool("echo", '{"text": "hi"}')
        assert result.content == "hi"
        assert not result.is_error

    @pytest.mark.asyncio
    async def test_tool_result_passthrough(self):
        provider = LocalToolProvider()
        provider.register_tool(
            ToolDefinition(name="fail_softly"),
            lambda arguments: ToolResult(content="bad input", is_error=True)
        )
        result = await provider.invoke_tool("fail_softly", "{}")
        assert result.is_error

    @pytest.mark.asyncio
    async def test_invalid_arguments_raise(self):
        with pytest.raises(ToolInputValidationError):
            await _calculator().invoke_tool("add", '{"a": "two", "b": 3}')

    @pytest.mark.asyncio
    async def test_unknown_tool_raises(self):
        with pytest.raises(ToolNotFoundError):
            await _calculator().invoke_tool("missing", "{}")


# ---------------------------------------------------------------------------
# ToolRegistry
# ---------------------------------------------------------------------------

class TestToolRegistry:
    @pytest.mark.asyncio
    async def test_later_provider_overrides_listing_and_dispatch(self):
        first = RecordingToolProvider("first", results={"search": "from first", "only_first": "1"})
        second = RecordingToolProvider("second", results={"search": "from second"})
        registry = ToolRegistry([first, second])

        tools = {tool.name: tool for tool in await registry.list_all_tools()}
        result = await registry.invoke("search", "{}")

        assert tools["search"].metadata["provider"] == "second"
        assert "only_first" in tools
        assert result.content == "from second"
        assert first.invocations == []
        assert second.invocations == [("search", "{}")]

    @pytest.mark.asyncio
    async def test_falls_back_to_earlier_provider(self):
        first = RecordingToolProvider("first", results={"only_first": "1"})
        second = RecordingToolProvider("second", results={"search": "2"})
        registry = ToolRegistry([first, second])

        result = await registry.invoke("only_first", "{}")

        assert result.content == "1"

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        registry = ToolRegistry([RecordingToolProvider(results={"a": "1"})])

        with pytest.raises(ToolNotFoundError) as exc_info:
            await registry.invoke("missing", "{}")

        assert exc_info.value.tool_name == "missing"
        assert str(exc_info.value) == "Tool 'missing' not found in any registered provider."

    @pytest.mark.asyncio
    async def test_get_tool_info(self):
        registry = ToolRegistry([_calculator()])

        assert (await registry.get_tool_info("add")).description == "Add two integers"
        assert await registry.get_tool_info("nope") is None

    @pytest.mark.asyncio
    async def test_provider_errors_propagate(self):
        registry = ToolRegistry([RecordingToolProvider(failures={"boom": RuntimeError("kaput")})])
        with pytest.raises(RuntimeError, match="kaput"):
            await registry.invoke("boom", "{}")

    def test_register_requires_provider(self):
        with pytest.raises(ValueError):
            ToolRegistry().register(None)

    def test_concurrent_registration_keeps_every_provider(self):
        registry = ToolRegistry()
        providers = [RecordingToolProvider(f"p{i}") for i in range(50)]
        threads = [threading.Thread(target=registry.register, args=(p,)) for p in providers]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert set(registry.providers) == set(providers)

    def test_snapshot_is_not_mutated_by_registration(self):
        registry = ToolRegistry([RecordingToolProvider("a")])
        snapshot = registry.providers
        registry.register(RecordingToolProvider("b"))

        assert len(snapshot) == 1
        assert len(registry.providers) == 2


# ---------------------------------------------------------------------------
# ToolCallStep
# ---------------------------------------------------------------------------

class TestSubstituteProperties:
    def test_known_values_are_substituted(self):
        assert substitute_properties('{"q": "{query}", "n": {limit}}', {"query": "cats", "limit": 3}) == \
            '{"q": "cats", "n": 3}'

    def test_unknown_and_none_placeholders_stay(self):
        assert substitute_properties("{a}-{b}", {"b": None}) == "{a}-{b}"


class TestToolCallStep:
    @pytest.mark.asyncio
    async def test_writes_result_properties(self):
        registry = ToolRegistry([_calculator()])
        step = ToolCallStep(registry, "add", '{"a": {x}, "b": 4}')
        run = RunContext(properties={"x": 1})

        await step.execute(run)

        assert step.name == "ToolCall.add"
        assert run.properties["ToolCall.add.Result"] == "5"
        assert run.properties["ToolCall.add.IsError"] is False
        assert step.last_active is not None

    @pytest.mark.asyncio
    async def test_custom_step_name(self):
        registry = ToolRegistry([_calculator()])
        step = ToolCallStep(registry, "echo", json.dumps({"text": "hey"}), step_name="Greeter")
        run = RunContext()

        await step.execute(run)

        assert run.properties["Greeter.Result"] == "hey"

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        step = ToolCallStep(ToolRegistry(), "missing", "{}")
        run = RunContext()

        with pytest.raises(ToolNotFoundError):
            await step.execute(run)
        assert "ToolCall.missing.Result" not in run.properties

    def test_requires_arguments(self):
        with pytest.raises(ValueError):
            ToolCallStep(ToolRegistry(), "t", None)
