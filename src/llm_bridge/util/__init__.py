"""Utility helpers package."""

from llm_bridge.util.logging import configure_logging, get_logger
from llm_bridge.util.observability import (
    EventLogger,
    JobEvent,
    MetricsCollector,
    ObservabilityManager,
    create_observability_manager,
)

__all__ = [
    "EventLogger",
    "JobEvent",
    "MetricsCollector",
    "ObservabilityManager",
    "configure_logging",
    "create_observability_manager",
    "get_logger",
]
