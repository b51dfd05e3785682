"""Conversion of telemetry events into OTLP spans."""

import secrets
import time
from typing import Callable

import constants
from models.otlp import (
    AnyValue,
    ExportTraceServiceRequest,
    KeyValue,
    Resource,
    ResourceSpans,
    ScopeSpans,
    Span,
)
from models.telemetry import TelemetryEvent


def generate_trace_id() -> bytes:
    """Return a fresh 16 byte trace identifier from the OS CSPRNG."""
    return secrets.token_bytes(constants.TRACE_ID_LENGTH)


def generate_span_id() -> bytes:
    """Return a fresh 8 byte span identifier from the OS CSPRNG."""
    return secrets.token_bytes(constants.SPAN_ID_LENGTH)


def now_unix_nano() -> int:
    """Return the current wall-clock time in nanoseconds since the epoch."""
    return time.time_ns()


class SpanBuilder:
    """Build export requests for events emitted by one service session.

    Spans model instantaneous events: both timestamps are taken from a single
    clock reading. Every attribute value is exported as a string.
    """

    def __init__(
        self,
        service_name: str,
        service_version: str,
        session_id: str,
        clock: Callable[[], int] = now_unix_nano,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
    ) -> None:
        """Initialize the builder.

        Parameters:
            service_name (str): Value of the service.name resource attribute.
            service_version (str): Value of the service.version resource attribute.
            session_id (str): Value of the session.id resource attribute.
            clock (Callable[[], int]): Source of nanosecond timestamps.
            random_bytes (Callable[[int], bytes]): Source of identifier bytes;
            must be cryptographically strong outside of tests.
        """
        self.service_name = service_name
        self.service_version = service_version
        self.session_id = session_id
        self._clock = clock
        self._random_bytes = random_bytes

    def _new_id(self, length: int) -> bytes:
        identifier = self._random_bytes(length)
        if len(identifier) != length:
            raise ValueError(
                f"Identifier source returned {len(identifier)} bytes, expected {length}"
            )
        return identifier

    def build_resource(self) -> Resource:
        """Return the resource describing this service session."""
        return Resource(
            attributes={
                constants.RESOURCE_SERVICE_NAME: self.service_name,
                constants.RESOURCE_SERVICE_VERSION: self.service_version,
                constants.RESOURCE_SESSION_ID: self.session_id,
            }
        )

    def build_span(self, event: TelemetryEvent) -> Span:
        """Convert an event into a span with fresh identifiers."""
        timestamp = self._clock()
        return Span(
            trace_id=self._new_id(constants.TRACE_ID_LENGTH),
            span_id=self._new_id(constants.SPAN_ID_LENGTH),
            name=event.name,
            start_time_unix_nano=timestamp,
            end_time_unix_nano=timestamp,
            attributes=[
                KeyValue(key=key, value=AnyValue.of_string(str(value)))
                for key, value in event.attributes.items()
            ],
        )

    def build_export_request(self, event: TelemetryEvent) -> ExportTraceServiceRequest:
        """Wrap the span of one event into a complete export request."""
        return ExportTraceServiceRequest(
            resource_spans=[
                ResourceSpans(
                    resource=self.build_resource(),
                    scope_spans=[ScopeSpans(spans=[self.build_span(event)])],
                )
            ]
        )
