"""Shared telemetry: logging setup and tracing helpers."""

from taskflow.shared.telemetry.logging import get_logger, setup_logging
from taskflow.shared.telemetry.tracing import add_span_event, traced

__all__ = ["add_span_event", "get_logger", "setup_logging", "traced"]
