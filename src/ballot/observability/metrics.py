"""Prometheus metrics for ballot.

Provides metrics collection and exposure:
- Election cycles and predecessor-watch races
- Current leadership (gauge)
- Coordination notifications by kind
- Session terminations by reason

Usage:
    from ballot.observability.metrics import record_election_cycle

    record_election_cycle()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from prometheus_client import REGISTRY, Counter, Gauge, generate_latest, start_http_server

from ballot.config import settings

logger = logging.getLogger(__name__)


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    election_cycles_total: Any = None
    watch_races_total: Any = None
    leader: Any = None
    notifications_total: Any = None
    terminations_total: Any = None

    # Internal state
    _initialized: bool = field(default=False, repr=False)
    _registry: Any = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not settings.enable_metrics:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        self._registry = REGISTRY

        self.election_cycles_total = Counter(
            "ballot_election_cycles_total",
            "Election cycles run by this participant",
        )

        self.watch_races_total = Counter(
            "ballot_watch_races_total",
            "Predecessors that vanished between snapshot and watch",
        )

        self.leader = Gauge(
            "ballot_leader",
            "Whether this participant currently holds leadership",
        )

        self.notifications_total = Counter(
            "ballot_notifications_total",
            "Coordination notifications handled",
            ["kind"],
        )

        self.terminations_total = Counter(
            "ballot_election_terminations_total",
            "Sessions that ended, by reason",
            ["reason"],
        )

        self._initialized = True
        logger.info("Prometheus metrics initialized")

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not settings.enable_metrics or self._registry is None:
            return b"# Metrics disabled\n"
        return generate_latest(self._registry)


# Global metrics registry
metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


def start_metrics_server(port: int, addr: str = "0.0.0.0") -> None:  # nosec B104
    """Expose metrics over HTTP on ``port``."""
    get_metrics()
    start_http_server(port, addr=addr)
    logger.info(f"Metrics exposed on {addr}:{port}")


def record_election_cycle() -> None:
    """Record an election cycle."""
    metrics = get_metrics()
    if metrics.election_cycles_total:
        metrics.election_cycles_total.inc()


def record_watch_race() -> None:
    """Record a predecessor that vanished before its watch was armed."""
    metrics = get_metrics()
    if metrics.watch_races_total:
        metrics.watch_races_total.inc()


def record_leadership(is_leader: bool) -> None:
    """Record a leadership change."""
    metrics = get_metrics()
    if metrics.leader:
        metrics.leader.set(1 if is_leader else 0)


def record_notification(kind: str) -> None:
    """Record a handled notification.

    Args:
        kind: Notification kind (connection, node_removed)
    """
    metrics = get_metrics()
    if metrics.notifications_total:
        metrics.notifications_total.labels(kind=kind).inc()


def record_termination(reason: str) -> None:
    """Record a session termination.

    Args:
        reason: Connection state or error type that ended the session
    """
    metrics = get_metrics()
    if metrics.terminations_total:
        metrics.terminations_total.labels(reason=reason).inc()
