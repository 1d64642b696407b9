# src/hubsweep/engine/spans.py
"""OpenTelemetry span factory for the sweep.

Span Hierarchy:
    run
    └── fid:{fid}
        ├── sweep:signer_change
        └── sweep:username

Without a tracer every span is a shared no-op, so the engine never has to
check whether tracing is configured.
"""

from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import TYPE_CHECKING, Any

from hubsweep.contracts import SweepKind

if TYPE_CHECKING:
    from opentelemetry.trace import Span, Tracer


class NoOpSpan:
    """Stands in for a Span when tracing is disabled."""

    def set_attribute(self, key: str, value: Any) -> None:
        pass

    def is_recording(self) -> bool:
        return False


_NOOP_SPAN = NoOpSpan()


class SpanFactory:
    """Creates the run/fid/sweep spans.

    Example:
        factory = SpanFactory(tracer=opentelemetry.trace.get_tracer("hubsweep"))
        with factory.run_span("validate_or_revoke_messages", resume_fid=0):
            with factory.fid_span(42):
                with factory.sweep_span(SweepKind.USERNAME) as span:
                    span.set_attribute("sweep.checked", 3)
    """

    def __init__(self, tracer: "Tracer | None" = None) -> None:
        self._tracer = tracer

    @property
    def enabled(self) -> bool:
        return self._tracer is not None

    @contextmanager
    def _span(self, name: str, attributes: dict[str, Any]) -> Iterator["Span | NoOpSpan"]:
        if self._tracer is None:
            yield _NOOP_SPAN
            return
        with self._tracer.start_as_current_span(name, attributes=attributes) as span:
            yield span

    def run_span(self, job_name: str, *, resume_fid: int) -> "AbstractContextManager[Span | NoOpSpan]":
        """Span covering one whole run; resume_fid is 0 for a fresh scan."""
        return self._span("run", {"job.name": job_name, "job.resume_fid": resume_fid})

    def fid_span(self, fid: int) -> "AbstractContextManager[Span | NoOpSpan]":
        return self._span(f"fid:{fid}", {"fid": fid})

    def sweep_span(self, kind: SweepKind) -> "AbstractContextManager[Span | NoOpSpan]":
        return self._span(f"sweep:{kind}", {"sweep.kind": str(kind)})
