"""CLI helper functions for wiring the sweep from settings."""

from typing import TYPE_CHECKING

from hubsweep.contracts import HubServices

if TYPE_CHECKING:
    from hubsweep.core.config import HubsweepSettings
    from hubsweep.core.store import StoreDB
    from hubsweep.engine import JobRunner


def build_hub_services(settings: "HubsweepSettings") -> HubServices:
    """Call the configured hub factory.

    The factory receives the validated settings and must return HubServices.

    Raises:
        ValueError: If no factory is configured or it returns the wrong type
        ImportError / AttributeError: If the factory path cannot be resolved
    """
    from hubsweep.core.config import resolve_factory

    if settings.hub.factory is None:
        raise ValueError("hub.factory is not configured; set it to 'package.module:callable'")

    factory = resolve_factory(settings.hub.factory)
    services = factory(settings)
    if not isinstance(services, HubServices):
        raise ValueError(f"hub factory {settings.hub.factory} returned {type(services).__name__}, expected HubServices")
    return services


def build_runner(settings: "HubsweepSettings", services: HubServices, db: "StoreDB") -> "JobRunner":
    """Assemble a JobRunner from settings, hub services and the store database.

    When the services carry no key-value store, the SQL store in db is used.
    """
    from opentelemetry import trace

    from hubsweep.core.checkpoint import CheckpointStore
    from hubsweep.core.store import SqlKeyValueStore
    from hubsweep.engine import EntityScanner, EntitySource, JobRunner, SpanFactory, create_metrics_sink

    span_factory = SpanFactory(tracer=trace.get_tracer("hubsweep"))
    store = services.store if services.store is not None else SqlKeyValueStore(db)
    scanner = EntityScanner(
        store,
        services.engine,
        services.decoder,
        timeout_seconds=settings.job.entity_timeout_seconds,
        decode_errors=services.decode_errors,
        span_factory=span_factory,
    )
    return JobRunner(
        CheckpointStore(db, settings.job.name),
        EntitySource(services.engine, page_size=settings.job.page_size),
        scanner,
        checkpoint_interval=settings.job.checkpoint_interval,
        metrics=create_metrics_sink(settings.metrics.backend),
        metrics_prefix=settings.metrics.prefix,
        span_factory=span_factory,
    )
