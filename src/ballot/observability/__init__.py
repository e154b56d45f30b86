"""Observability: structured logging and Prometheus metrics."""

from ballot.observability.logging import LogContext, configure_logging
from ballot.observability.metrics import get_metrics, start_metrics_server

__all__ = ["LogContext", "configure_logging", "get_metrics", "start_metrics_server"]
