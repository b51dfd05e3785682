"""Observability module turning application events into OTLP trace spans.

Events are logged through a TelemetryDispatcher, converted into spans by the
spans module, serialized by the hand-written protobuf codec in the wire
module and posted asynchronously to an OTLP/HTTP collector.

Event formats are in the formats subpackage.
"""

from observability.dispatcher import TelemetryDispatcher
from observability.errors import (
    ConfigurationMissingError,
    EncodingError,
    TelemetryError,
    TransportError,
)
from observability.transport import OTLPHttpTransport, Transport

__all__ = [
    "TelemetryDispatcher",
    "OTLPHttpTransport",
    "Transport",
    "TelemetryError",
    "ConfigurationMissingError",
    "EncodingError",
    "TransportError",
]
