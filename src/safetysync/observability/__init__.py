"""
Observability utilities for safetysync.

Provides composition-based tracing and standard attribute definitions for
consistent spans across the cache, scheduler and migration components.

Example:
    >>> from safetysync.observability import create_tracer, ATTR_DOMAIN_ID
    >>>
    >>> tracer = create_tracer(__name__, enable_tracing=True)
    >>> with tracer.span("safetysync.scheduler.sync_domain", {ATTR_DOMAIN_ID: "training"}):
    ...     pass
"""

from safetysync.observability.attributes import (
    ATTR_ACTOR_ID,
    ATTR_CACHE_KEY,
    ATTR_COLLECTION,
    ATTR_DB_NAME,
    ATTR_DB_SYSTEM,
    ATTR_DOMAIN_COUNT,
    ATTR_DOMAIN_ID,
    ATTR_FORCE,
    ATTR_GUARD_NAME,
    ATTR_MIGRATION_RUN_ID,
    ATTR_PASS_ID,
    ATTR_RECORD_COUNT,
    ATTR_SOURCE_KEY,
    ATTR_TRIGGER,
)
from safetysync.observability.tracer import (
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    SpanKindEnum,
    Tracer,
    create_tracer,
)

__all__ = [
    # Attributes
    "ATTR_ACTOR_ID",
    "ATTR_CACHE_KEY",
    "ATTR_COLLECTION",
    "ATTR_DB_NAME",
    "ATTR_DB_SYSTEM",
    "ATTR_DOMAIN_COUNT",
    "ATTR_DOMAIN_ID",
    "ATTR_FORCE",
    "ATTR_GUARD_NAME",
    "ATTR_MIGRATION_RUN_ID",
    "ATTR_PASS_ID",
    "ATTR_RECORD_COUNT",
    "ATTR_SOURCE_KEY",
    "ATTR_TRIGGER",
    # Tracers
    "MockTracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "SpanKindEnum",
    "Tracer",
    "create_tracer",
]
