"""OpenTelemetry tracing for push operations.

Spans are no-ops until :func:`configure_tracing` installs an SDK provider.
Span attributes never carry secret values.
"""

from __future__ import annotations

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

SERVICE_NAME = "push-to-file"

_provider: TracerProvider | None = None


def get_tracer() -> trace.Tracer:
    return trace.get_tracer("push_to_file")


def parse_headers(raw: str) -> dict[str, str]:
    """Parse ``k=v,k=v`` OTLP header strings."""
    headers: dict[str, str] = {}
    for pair in raw.split(","):
        if "=" in pair:
            k, v = pair.split("=", 1)
            headers[k.strip()] = v.strip()
    return headers


def configure_tracing(endpoint: str, headers: dict[str, str] | None = None) -> TracerProvider:
    """Export spans over OTLP/HTTP to *endpoint*. Idempotent."""
    global _provider
    if _provider is not None:
        return _provider
    resource = Resource.create({"service.name": SERVICE_NAME})
    exporter = OTLPSpanExporter(endpoint=endpoint, headers=headers or {})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)
    _provider = provider
    return provider


def shutdown_tracing() -> None:
    global _provider
    if _provider is None:
        return
    _provider.force_flush()
    _provider.shutdown()
    _provider = None
