import structlog
import logging
import sys
from typing import Dict, Any, Optional
from datetime import datetime
import os


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    service_name: str = "agentcore"
) -> None:
    """Setup structured logging configuration"""

    # Configure Python logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO)
    )

    # Processors for structlog
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_service_context,
    ]

    # Add appropriate renderer based on format
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(
        service=service_name,
        environment=os.getenv("ENVIRONMENT", "development"),
        version=os.getenv("SERVICE_VERSION", "unknown")
    )


def setup_logging_from_settings(settings) -> None:
    """Configure logging from AgentLoopSettings"""
    setup_logging(settings.log_level, settings.log_format, settings.service_name)


def add_service_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add run context to all log entries"""

    if "timestamp" not in event_dict:
        event_dict["timestamp"] = datetime.utcnow().isoformat()

    bound = structlog.contextvars.get_contextvars()

    run_id = bound.get("run_id")
    if run_id:
        event_dict["run_id"] = run_id

    step_name = bound.get("step_name")
    if step_name:
        event_dict["step_name"] = step_name

    return event_dict


class AgentLogger:
    """Specialized logger for agent loop operations"""

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)

    def log_agent_event(
        self,
        event_type: str,
        step_name: str,
        run_id: str,
        data: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        """Log loop lifecycle events"""

        self.logger.info(
            "agent_event",
            event_type=event_type,
            step_name=step_name,
            run_id=run_id,
            data=data or {},
            **kwargs
        )

    def log_tool_execution(
        self,
        tool_name: str,
        run_id: str,
        arguments: Optional[str] = None,
        duration_ms: Optional[float] = None,
        success: bool = True,
        error: Optional[str] = None
    ):
        """Log tool execution events"""

        self.logger.info(
            "tool_execution",
            tool_name=tool_name,
            run_id=run_id,
            arguments=arguments,
            duration_ms=duration_ms,
            success=success,
            error=error
        )

    def log_hook_decision(
        self,
        event: str,
        match_key: str,
        decision: str,
        reason: Optional[str] = None
    ):
        """Log the aggregate decision of a hook pipeline"""

        self.logger.info(
            "hook_decision",
            hook_event=event,
            match_key=match_key,
            decision=decision,
            reason=reason
        )

    def log_context_update(
        self,
        run_id: str,
        action: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Log context updates (compaction, snapshot, restore)"""

        self.logger.info(
            "context_update",
            run_id=run_id,
            action=action,
            details=details or {}
        )


# Global logger instance
agent_logger = AgentLogger("agentcore")


class MetricsCollector:
    """Collect and export loop metrics"""

    def __init__(self):
        self.metrics: Dict[str, Any] = {}

    def record_latency(self, operation: str, duration_ms: float, tags: Optional[Dict[str, str]] = None):
        """Record operation latency"""

        key = f"latency.{operation}"
        if key not in self.metrics:
            self.metrics[key] = {
                "count": 0,
                "sum": 0,
                "min": float('inf'),
                "max": 0
            }

        self.metrics[key]["count"] += 1
        self.metrics[key]["sum"] += duration_ms
        self.metrics[key]["min"] = min(self.metrics[key]["min"], duration_ms)
        self.metrics[key]["max"] = max(self.metrics[key]["max"], duration_ms)

        agent_logger.logger.debug(
            "metric",
            metric_type="latency",
            operation=operation,
            duration_ms=duration_ms,
            tags=tags or {}
        )

    def increment_counter(self, name: str, value: int = 1, tags: Optional[Dict[str, str]] = None):
        """Increment a counter metric"""

        if name not in self.metrics:
            self.metrics[name] = 0
        self.metrics[name] += value

        agent_logger.logger.debug(
            "metric",
            metric_type="counter",
            name=name,
            value=value,
            tags=tags or {}
        )

    def set_gauge(self, name: str, value: float, tags: Optional[Dict[str, str]] = None):
        """Set a gauge metric"""

        self.metrics[name] = value

        agent_logger.logger.debug(
            "metric",
            metric_type="gauge",
            name=name,
            value=value,
            tags=tags or {}
        )

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get summary of all metrics"""

        summary = {}
        for key, value in self.metrics.items():
            if isinstance(value, dict) and "count" in value:
                # Latency metric
                summary[key] = {
                    "count": value["count"],
                    "avg": value["sum"] / value["count"] if value["count"] > 0 else 0,
                    "min": value["min"] if value["min"] != float('inf') else 0,
                    "max": value["max"]
                }
            else:
                # Counter or gauge
                summary[key] = value

        return summary

    def reset(self):
        self.metrics.clear()


# Global metrics collector
metrics = MetricsCollector()
