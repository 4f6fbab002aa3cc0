"""Tracing of push operations."""

from __future__ import annotations

from unittest.mock import patch

from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from push_to_file.domain.secret import Secret
from push_to_file.push import push_to_writer
from push_to_file.sinks.null import NullSink
from push_to_file.tracing import parse_headers


def _local_tracer():
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return provider.get_tracer("test"), exporter


def test_push_to_writer_records_span_without_secret_values():
    tracer, exporter = _local_tracer()
    with patch("push_to_file.push.get_tracer", return_value=tracer):
        push_to_writer(NullSink(), "db", '{{ secret("pw") }}', [Secret("pw", "hunter2")])

    [span] = exporter.get_finished_spans()
    assert span.name == "push_to_writer"
    assert span.attributes["group.name"] == "db"
    assert span.attributes["secrets.count"] == 1
    assert span.attributes["push.written"] is True
    assert "hunter2" not in repr(dict(span.attributes))


def test_parse_headers():
    assert parse_headers("a=1, b = two,broken,c=x=y") == {"a": "1", "b": "two", "c": "x=y"}
    assert parse_headers("") == {}
