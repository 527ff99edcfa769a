"""OpenTelemetry spans around Agent reconciliation and registration.

Spans are exported over OTLP/gRPC to ``OTEL_EXPORTER_OTLP_ENDPOINT``
(default http://localhost:4317). Set ``OTEL_TRACES_ENABLED=false`` to turn
tracing off; every helper here is then a no-op.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from importlib import metadata
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import SERVICE_NAME, SERVICE_VERSION, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Tracer

from .constants import OPERATOR_NAME

logger = logging.getLogger(__name__)

ATTRIBUTE_PREFIX = "spacetraders."

_tracer: Tracer | None = None


def tracing_enabled() -> bool:
    return os.getenv("OTEL_TRACES_ENABLED", "true").strip().lower() not in ("false", "0", "no")


def _operator_version() -> str:
    try:
        return metadata.version("spacetraders-operator")
    except metadata.PackageNotFoundError:
        return "unknown"


def _build_provider(service_name: str, endpoint: str) -> TracerProvider:
    provider = TracerProvider(
        resource=Resource.create({SERVICE_NAME: service_name, SERVICE_VERSION: _operator_version()})
    )
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    return provider


def initialize_tracing(service_name: str = OPERATOR_NAME) -> bool:
    """Install the global tracer provider.

    A provider that cannot be built is logged and tracing stays off; the
    operator runs the same either way.

    Returns:
        True if spans will be exported
    """
    global _tracer

    if not tracing_enabled():
        logger.info("Tracing disabled by OTEL_TRACES_ENABLED")
        return False

    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
    try:
        provider = _build_provider(os.getenv("OTEL_SERVICE_NAME", service_name), endpoint)
    except Exception as e:
        logger.warning(f"Tracing not started, exporter for {endpoint} failed: {e}")
        return False

    trace.set_tracer_provider(provider)
    _tracer = provider.get_tracer(__name__)
    logger.info(f"Exporting traces to {endpoint}")
    return True


@contextmanager
def agent_span(operation: str, namespace: str, name: str, **attributes: Any) -> Iterator[Span | None]:
    """Open a span named ``agent.<operation>`` for one Agent.

    Extra keyword attributes are recorded under the ``spacetraders.`` prefix;
    None values are dropped. Exceptions raised inside the block are recorded
    on the span and propagate unchanged.
    """
    if _tracer is None:
        yield None
        return

    span_attributes = {
        "k8s.namespace.name": namespace,
        f"{ATTRIBUTE_PREFIX}agent.name": name,
    }
    for key, value in attributes.items():
        if value is not None:
            span_attributes[f"{ATTRIBUTE_PREFIX}{key}"] = value

    with _tracer.start_as_current_span(f"agent.{operation}", attributes=span_attributes) as span:
        yield span


def set_span_attribute(key: str, value: Any) -> None:
    """Record an attribute on the active span, if one is recording."""
    if value is None:
        return
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute(f"{ATTRIBUTE_PREFIX}{key}", value)
