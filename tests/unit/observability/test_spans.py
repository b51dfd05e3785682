"""Unit tests for span building and identifier generation."""

from itertools import count

import pytest
from pytest_mock import MockerFixture

from models.otlp import AnyValue, KeyValue
from models.telemetry import TelemetryEvent
from observability.spans import (
    SpanBuilder,
    generate_span_id,
    generate_trace_id,
    now_unix_nano,
)


@pytest.fixture(name="builder")
def builder_fixture() -> SpanBuilder:
    """Create a builder with a fixed clock and predictable identifiers."""
    counter = count(1)
    return SpanBuilder(
        service_name="App",
        service_version="1.0",
        session_id="session-1",
        clock=lambda: 1_700_000_000_000_000_000,
        random_bytes=lambda length: bytes([next(counter)]) * length,
    )


def test_identifier_widths() -> None:
    """Test trace and span identifiers have fixed widths."""
    assert len(generate_trace_id()) == 16
    assert len(generate_span_id()) == 8


def test_trace_ids_are_unique() -> None:
    """Test 10,000 trace identifiers contain no duplicates."""
    identifiers = {generate_trace_id() for _ in range(10_000)}
    assert len(identifiers) == 10_000


def test_identifiers_come_from_secrets(mocker: MockerFixture) -> None:
    """Test identifiers are drawn from the secrets module."""
    token_bytes = mocker.patch(
        "observability.spans.secrets.token_bytes", side_effect=lambda n: b"\xab" * n
    )
    assert generate_trace_id() == b"\xab" * 16
    assert generate_span_id() == b"\xab" * 8
    assert [c.args for c in token_bytes.call_args_list] == [(16,), (8,)]


def test_now_unix_nano_is_nanoseconds() -> None:
    """Test the clock returns nanoseconds since the epoch."""
    # 2020-01-01 in nanoseconds
    assert now_unix_nano() > 1_577_836_800 * 10**9


def test_build_resource(builder: SpanBuilder) -> None:
    """Test the resource carries service identity and session in order."""
    resource = builder.build_resource()
    assert list(resource.attributes.items()) == [
        ("service.name", "App"),
        ("service.version", "1.0"),
        ("session.id", "session-1"),
    ]


def test_build_span(builder: SpanBuilder) -> None:
    """Test a span is built from an event."""
    event = TelemetryEvent(
        name="button_tap", attributes={"button_name": "buy", "screen_name": "Detail"}
    )
    span = builder.build_span(event)

    assert span.name == "button_tap"
    assert span.trace_id == b"\x01" * 16
    assert span.span_id == b"\x02" * 8
    assert span.start_time_unix_nano == 1_700_000_000_000_000_000
    assert span.end_time_unix_nano == span.start_time_unix_nano
    assert span.attributes == [
        KeyValue(key="button_name", value=AnyValue(string_value="buy")),
        KeyValue(key="screen_name", value=AnyValue(string_value="Detail")),
    ]


def test_attribute_values_become_strings(builder: SpanBuilder) -> None:
    """Test non-string values are exported as string AnyValues."""
    event = TelemetryEvent(name="e", attributes={"count": 3})  # type: ignore[dict-item]
    span = builder.build_span(event)
    assert span.attributes == [KeyValue(key="count", value=AnyValue(string_value="3"))]


def test_fresh_identifiers_per_span() -> None:
    """Test two spans never share identifiers."""
    builder = SpanBuilder("App", "1.0", "session-1")
    first = builder.build_span(TelemetryEvent(name="e"))
    second = builder.build_span(TelemetryEvent(name="e"))
    assert first.trace_id != second.trace_id
    assert first.span_id != second.span_id


def test_build_export_request(builder: SpanBuilder) -> None:
    """Test the export request contains one resource, scope and span."""
    request = builder.build_export_request(TelemetryEvent(name="screen_appeared"))

    assert len(request.resource_spans) == 1
    resource_spans = request.resource_spans[0]
    assert resource_spans.resource.attributes["session.id"] == "session-1"
    assert len(resource_spans.scope_spans) == 1
    assert [span.name for span in resource_spans.scope_spans[0].spans] == [
        "screen_appeared"
    ]


def test_rejects_wrong_identifier_width() -> None:
    """Test identifier sources returning the wrong width are rejected."""
    builder = SpanBuilder("App", "1.0", "s", random_bytes=lambda length: b"\x00")
    with pytest.raises(ValueError, match="expected 16"):
        builder.build_span(TelemetryEvent(name="e"))
