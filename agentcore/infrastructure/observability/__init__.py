from .logging import (
    AgentLogger,
    MetricsCollector,
    agent_logger,
    metrics,
    setup_logging,
    setup_logging_from_settings,
)
