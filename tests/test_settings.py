"""Tests for environment-driven settings and logging setup."""

import pytest
import structlog

from agentcore.config import AgentLoopSettings
from agentcore.domain.models import AgentLoopOptions
from agentcore.exceptions import ConfigError
from agentcore.infrastructure.observability import MetricsCollector, setup_logging_from_settings


class TestAgentLoopSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("AGENTCORE_MAX_ITERATIONS", raising=False)
        settings = AgentLoopSettings(_env_file=None)

        assert settings.max_iterations == 10
        assert settings.auto_compact is False
        assert settings.max_context_tokens == 100_000
        assert settings.preserve_recent_count == 5
        assert settings.checkpoint_interval == 1
        assert settings.log_level == "INFO"

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("AGENTCORE_MAX_ITERATIONS", "3")
        monkeypatch.setenv("AGENTCORE_AUTO_COMPACT", "true")
        monkeypatch.setenv("AGENTCORE_LOG_LEVEL", "debug")

        settings = AgentLoopSettings(_env_file=None)

        assert settings.max_iterations == 3
        assert settings.auto_compact is True
        assert settings.log_level == "DEBUG"

    @pytest.mark.parametrize("field,value", [
        ("max_iterations", -1),
        ("checkpoint_interval", 0),
        ("preserve_recent_count", -2),
        ("log_level", "LOUD"),
        ("log_format", "xml"),
    ])
    def test_invalid_values_raise_config_error(self, field, value):
        with pytest.raises(ConfigError):
            AgentLoopSettings(_env_file=None, **{field: value})

    def test_log_format_is_normalized(self):
        assert AgentLoopSettings(_env_file=None, log_format=" Console ").log_format == "console"

    def test_options_from_settings_with_overrides(self):
        settings = AgentLoopSettings(_env_file=None, step_name="Researcher", max_iterations=4, auto_compact=True)

        options = AgentLoopOptions.from_settings(settings, max_iterations=2, system_prompt="Be brief")

        assert options.step_name == "Researcher"
        assert options.auto_compact is True
        assert options.max_iterations == 2
        assert options.system_prompt == "Be brief"


class TestObservability:
    def test_setup_logging_from_settings(self):
        setup_logging_from_settings(AgentLoopSettings(_env_file=None, log_format="console"))
        assert structlog.is_configured()
        structlog.contextvars.clear_contextvars()
        structlog.reset_defaults()

    def test_metrics_summary(self):
        collector = MetricsCollector()
        collector.record_latency("model_call", 10.0)
        collector.record_latency("model_call", 30.0)
        collector.increment_counter("tool_calls")
        collector.increment_counter("tool_calls", 2)
        collector.set_gauge("tokens", 42)

        summary = collector.get_metrics_summary()

        assert summary["latency.model_call"] == {"count": 2, "avg": 20.0, "min": 10.0, "max": 30.0}
        assert summary["tool_calls"] == 3
        assert summary["tokens"] == 42

        collector.reset()
        assert collector.get_metrics_summary() == {}


class TestSlidingWindowFromSettings:
    def test_window_sizes_flow_into_compaction_strategy(self):
        settings = AgentLoopSettings(_env_file=None, sliding_window_keep_first=1, sliding_window_keep_last=3)

        strategy = AgentLoopOptions.from_settings(settings).compaction_strategy

        assert strategy.keep_first == 1
        assert strategy.keep_last == 3
