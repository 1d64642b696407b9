# src/hubsweep/engine/metrics.py
"""Run metrics sinks.

Metrics are fire-and-forget: emit_timing/emit_gauge swallow and log sink
failures so that a broken metrics backend never fails a completed run.

Sinks:
- LogMetricsSink: structlog event per metric (default)
- OtelMetricsSink: OpenTelemetry histogram and gauge instruments
- NullMetricsSink: discard everything
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

import structlog

if TYPE_CHECKING:
    from opentelemetry.metrics import Meter

    from hubsweep.contracts import MetricsSink

logger = structlog.get_logger(__name__)


class NullMetricsSink:
    """Discards all metrics."""

    def timing(self, name: str, value_ms: float) -> None:
        pass

    def gauge(self, name: str, value: float) -> None:
        pass


class LogMetricsSink:
    """Writes each metric as a structured log event."""

    def timing(self, name: str, value_ms: float) -> None:
        logger.info("metric", metric=name, kind="timing", value_ms=value_ms)

    def gauge(self, name: str, value: float) -> None:
        logger.info("metric", metric=name, kind="gauge", value=value)


class OtelMetricsSink:
    """Records metrics on OpenTelemetry instruments.

    Timings go to histograms (unit "ms"), gauges to synchronous gauges.
    Instruments are created lazily and cached by name. Without an SDK
    MeterProvider installed, the API meter is a no-op.
    """

    def __init__(self, meter: Meter | None = None) -> None:
        if meter is None:
            from opentelemetry import metrics

            meter = metrics.get_meter("hubsweep")
        self._meter = meter
        self._histograms: dict[str, object] = {}
        self._gauges: dict[str, object] = {}

    def timing(self, name: str, value_ms: float) -> None:
        histogram = self._histograms.get(name)
        if histogram is None:
            histogram = self._meter.create_histogram(name, unit="ms")
            self._histograms[name] = histogram
        histogram.record(value_ms)  # type: ignore[attr-defined]

    def gauge(self, name: str, value: float) -> None:
        gauge = self._gauges.get(name)
        if gauge is None:
            gauge = self._meter.create_gauge(name)
            self._gauges[name] = gauge
        gauge.set(value)  # type: ignore[attr-defined]


def create_metrics_sink(backend: Literal["log", "otel", "none"]) -> MetricsSink:
    """Build the sink named in MetricsSettings.backend."""
    if backend == "log":
        return LogMetricsSink()
    if backend == "otel":
        return OtelMetricsSink()
    return NullMetricsSink()


def emit_timing(sink: MetricsSink, name: str, value_ms: float) -> None:
    """Emit a timing; sink failures are logged, never raised."""
    try:
        sink.timing(name, value_ms)
    except Exception as e:
        logger.warning("metrics emission failed", metric=name, error=str(e), error_type=type(e).__name__)


def emit_gauge(sink: MetricsSink, name: str, value: float) -> None:
    """Emit a gauge; sink failures are logged, never raised."""
    try:
        sink.gauge(name, value)
    except Exception as e:
        logger.warning("metrics emission failed", metric=name, error=str(e), error_type=type(e).__name__)
