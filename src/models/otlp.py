"""OTLP trace messages produced by the span builder.

Only the subset of the OTLP trace schema that the exporter emits is
modelled. Field names follow the protobuf definitions; the wire layout of
each message lives in observability.wire.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class AnyValue:
    """Attribute value holding at most one populated variant."""

    string_value: Optional[str] = None
    int_value: Optional[int] = None
    double_value: Optional[float] = None
    bool_value: Optional[bool] = None

    def __post_init__(self) -> None:
        """Reject values with more than one populated variant."""
        populated = [
            name
            for name in ("string_value", "int_value", "double_value", "bool_value")
            if getattr(self, name) is not None
        ]
        if len(populated) > 1:
            raise ValueError(
                f"AnyValue accepts a single variant, got: {', '.join(populated)}"
            )

    @classmethod
    def of_string(cls, value: str) -> "AnyValue":
        """Create a string-typed value."""
        return cls(string_value=value)


@dataclass(frozen=True)
class KeyValue:
    """Named attribute."""

    key: str
    value: AnyValue = field(default_factory=AnyValue)


@dataclass
class Resource:
    """Description of the emitting service."""

    attributes: dict[str, str] = field(default_factory=dict)


@dataclass
class Span:  # pylint: disable=too-many-instance-attributes
    """Single instantaneous occurrence within a trace."""

    trace_id: bytes = b""
    span_id: bytes = b""
    name: str = ""
    start_time_unix_nano: int = 0
    end_time_unix_nano: int = 0
    attributes: list[KeyValue] = field(default_factory=list)


@dataclass
class ScopeSpans:
    """Spans produced by one instrumentation scope."""

    spans: list[Span] = field(default_factory=list)


@dataclass
class ResourceSpans:
    """Spans grouped under the resource that emitted them."""

    resource: Resource = field(default_factory=Resource)
    scope_spans: list[ScopeSpans] = field(default_factory=list)


@dataclass
class ExportTraceServiceRequest:
    """Top-level message sent in the body of one export request."""

    resource_spans: list[ResourceSpans] = field(default_factory=list)
