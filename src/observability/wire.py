"""Protocol buffer wire-format codec for OTLP trace export requests.

Serializes the messages from models.otlp without a protobuf runtime. The
output is byte-identical to what a protobuf encoder produces for the same
schema:

  - fields are written in ascending field-number order,
  - scalar fields holding their zero value are omitted (proto3 implicit
    presence),
  - embedded messages that are present are always written, even when their
    own serialization is empty,
  - repeated message fields are written once per element.

The module also contains a small reader (iter_fields, decode_export_request)
used to inspect payloads that were produced here.
"""

import logging
import struct
from typing import Iterator, Union

from models.otlp import (
    AnyValue,
    ExportTraceServiceRequest,
    KeyValue,
    Resource,
    ResourceSpans,
    ScopeSpans,
    Span,
)
from observability.errors import EncodingError

logger = logging.getLogger(__name__)

# Protobuf wire types
WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_LENGTH_DELIMITED = 2

_WIRE_TYPES = frozenset((WIRE_VARINT, WIRE_FIXED64, WIRE_LENGTH_DELIMITED))

MAX_FIELD_NUMBER = (1 << 29) - 1
MAX_VARINT_LENGTH = 10

_UINT64_LIMIT = 1 << 64
_UINT64_MASK = _UINT64_LIMIT - 1
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_DOUBLE_ZERO = struct.pack("<d", 0.0)

FieldValue = Union[int, bytes]


class ExportTraceServiceRequestField:  # pylint: disable=too-few-public-methods
    """Field numbers of ExportTraceServiceRequest."""

    RESOURCE_SPANS = 1


class ResourceSpansField:  # pylint: disable=too-few-public-methods
    """Field numbers of ResourceSpans."""

    RESOURCE = 1
    SCOPE_SPANS = 2


class ResourceField:  # pylint: disable=too-few-public-methods
    """Field numbers of Resource."""

    ATTRIBUTES = 1


class ScopeSpansField:  # pylint: disable=too-few-public-methods
    """Field numbers of ScopeSpans."""

    SPANS = 1


class SpanField:  # pylint: disable=too-few-public-methods
    """Field numbers of Span."""

    TRACE_ID = 1
    SPAN_ID = 2
    NAME = 3
    START_TIME_UNIX_NANO = 4
    END_TIME_UNIX_NANO = 5
    ATTRIBUTES = 6


class KeyValueField:  # pylint: disable=too-few-public-methods
    """Field numbers of KeyValue."""

    KEY = 1
    VALUE = 2


class AnyValueField:  # pylint: disable=too-few-public-methods
    """Field numbers of AnyValue."""

    STRING_VALUE = 1
    INT_VALUE = 2
    DOUBLE_VALUE = 3
    BOOL_VALUE = 4


# --------------------------------------------------------------------------
#  Primitives
# --------------------------------------------------------------------------


def encode_varint(value: int) -> bytes:
    """Encode an unsigned integer as a protobuf varint.

    The value is written 7 bits at a time, least significant group first.
    Every byte except the last one has its top bit set.

    Parameters:
        value (int): Integer in range [0, 2**64).

    Returns:
        bytes: One to ten bytes of varint encoding.

    Raises:
        EncodingError: If the value is not an integer or is out of range.
    """
    if not isinstance(value, int):
        raise EncodingError(
            f"Varint value must be an integer, got {type(value).__name__}"
        )
    if not 0 <= value < _UINT64_LIMIT:
        raise EncodingError(f"Varint value {value} is outside of the uint64 range")

    out = bytearray()
    while value > 0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def decode_varint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a protobuf varint.

    Parameters:
        data (bytes): Buffer containing the varint.
        offset (int): Position of the first varint byte.

    Returns:
        tuple[int, int]: The decoded value and the offset just past the
        varint.

    Raises:
        EncodingError: If the buffer ends inside the varint or the varint
        is longer than ten bytes.
    """
    result = 0
    shift = 0
    position = offset
    while True:
        if position - offset >= MAX_VARINT_LENGTH:
            raise EncodingError("Varint is longer than 10 bytes")
        if position >= len(data):
            raise EncodingError("Truncated varint")
        byte = data[position]
        position += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result & _UINT64_MASK, position
        shift += 7


def field_header(field_number: int, wire_type: int) -> bytes:
    """Encode a field header, the varint of (field_number << 3) | wire_type.

    Raises:
        EncodingError: If the field number or wire type is invalid.
    """
    if not 1 <= field_number <= MAX_FIELD_NUMBER:
        raise EncodingError(f"Invalid field number {field_number}")
    if wire_type not in _WIRE_TYPES:
        raise EncodingError(f"Unsupported wire type {wire_type}")
    return encode_varint((field_number << 3) | wire_type)


def encode_length_delimited(field_number: int, payload: bytes) -> bytes:
    """Encode header, length prefix and payload of a length-delimited field."""
    return (
        field_header(field_number, WIRE_LENGTH_DELIMITED)
        + encode_varint(len(payload))
        + payload
    )


# --------------------------------------------------------------------------
#  Field encoders (zero values are omitted)
# --------------------------------------------------------------------------


def encode_uint64_field(field_number: int, value: int) -> bytes:
    """Encode a uint64 field as a varint."""
    if value == 0:
        return b""
    return field_header(field_number, WIRE_VARINT) + encode_varint(value)


def encode_int64_field(field_number: int, value: int) -> bytes:
    """Encode an int64 field using its two's-complement 64-bit pattern.

    Negative values always take ten bytes, as protobuf does not zigzag
    int64 fields.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"int64 field {field_number} requires an integer")
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise EncodingError(f"Value {value} of field {field_number} overflows int64")
    if value == 0:
        return b""
    return field_header(field_number, WIRE_VARINT) + encode_varint(value & _UINT64_MASK)


def encode_bool_field(field_number: int, value: bool) -> bytes:
    """Encode a bool field as varint 1; False is omitted."""
    if not value:
        return b""
    return field_header(field_number, WIRE_VARINT) + b"\x01"


def encode_double_field(field_number: int, value: float) -> bytes:
    """Encode a double as fixed64 little-endian IEEE-754.

    Only positive zero is omitted; -0.0 has a non-zero bit pattern and is
    written like protobuf runtimes do.
    """
    try:
        payload = struct.pack("<d", value)
    except struct.error as e:
        raise EncodingError(f"double field {field_number} requires a number") from e
    if payload == _DOUBLE_ZERO:
        return b""
    return field_header(field_number, WIRE_FIXED64) + payload


def encode_bytes_field(field_number: int, value: bytes) -> bytes:
    """Encode a bytes field; empty values are omitted."""
    if not value:
        return b""
    return encode_length_delimited(field_number, bytes(value))


def encode_string_field(field_number: int, value: str) -> bytes:
    """Encode a string field as UTF-8; empty strings are omitted."""
    if not value:
        return b""
    try:
        data = value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(
            f"String field {field_number} is not valid UTF-8: {e}"
        ) from e
    except AttributeError as e:
        raise EncodingError(f"String field {field_number} requires a str") from e
    return encode_length_delimited(field_number, data)


def encode_message_field(field_number: int, payload: bytes) -> bytes:
    """Encode an embedded message that is already serialized.

    Present messages are written even when the payload is empty.
    """
    return encode_length_delimited(field_number, payload)


# --------------------------------------------------------------------------
#  Message serializers
# --------------------------------------------------------------------------


def serialize_any_value(value: AnyValue) -> bytes:
    """Serialize an AnyValue; only the populated variant is written."""
    parts = []
    if value.string_value is not None:
        parts.append(
            encode_string_field(AnyValueField.STRING_VALUE, value.string_value)
        )
    if value.int_value is not None:
        parts.append(encode_int64_field(AnyValueField.INT_VALUE, value.int_value))
    if value.double_value is not None:
        parts.append(
            encode_double_field(AnyValueField.DOUBLE_VALUE, value.double_value)
        )
    if value.bool_value is not None:
        parts.append(encode_bool_field(AnyValueField.BOOL_VALUE, value.bool_value))
    return b"".join(parts)


def serialize_key_value(key_value: KeyValue) -> bytes:
    """Serialize a KeyValue; the value message is always present."""
    return encode_string_field(KeyValueField.KEY, key_value.key) + encode_message_field(
        KeyValueField.VALUE, serialize_any_value(key_value.value)
    )


def serialize_resource(resource: Resource) -> bytes:
    """Serialize a Resource, its attributes as string-typed KeyValues."""
    return b"".join(
        encode_message_field(
            ResourceField.ATTRIBUTES,
            serialize_key_value(KeyValue(key=key, value=AnyValue.of_string(value))),
        )
        for key, value in resource.attributes.items()
    )


def serialize_span(span: Span) -> bytes:
    """Serialize a Span."""
    parts = [
        encode_bytes_field(SpanField.TRACE_ID, span.trace_id),
        encode_bytes_field(SpanField.SPAN_ID, span.span_id),
        encode_string_field(SpanField.NAME, span.name),
        encode_uint64_field(SpanField.START_TIME_UNIX_NANO, span.start_time_unix_nano),
        encode_uint64_field(SpanField.END_TIME_UNIX_NANO, span.end_time_unix_nano),
    ]
    parts.extend(
        encode_message_field(SpanField.ATTRIBUTES, serialize_key_value(attribute))
        for attribute in span.attributes
    )
    return b"".join(parts)


def serialize_scope_spans(scope_spans: ScopeSpans) -> bytes:
    """Serialize a ScopeSpans."""
    return b"".join(
        encode_message_field(ScopeSpansField.SPANS, serialize_span(span))
        for span in scope_spans.spans
    )


def serialize_resource_spans(resource_spans: ResourceSpans) -> bytes:
    """Serialize a ResourceSpans; the resource message is always present."""
    parts = [
        encode_message_field(
            ResourceSpansField.RESOURCE, serialize_resource(resource_spans.resource)
        )
    ]
    parts.extend(
        encode_message_field(
            ResourceSpansField.SCOPE_SPANS, serialize_scope_spans(scope_spans)
        )
        for scope_spans in resource_spans.scope_spans
    )
    return b"".join(parts)


def serialize_export_request(request: ExportTraceServiceRequest) -> bytes:
    """Serialize an ExportTraceServiceRequest."""
    return b"".join(
        encode_message_field(
            ExportTraceServiceRequestField.RESOURCE_SPANS,
            serialize_resource_spans(resource_spans),
        )
        for resource_spans in request.resource_spans
    )


def encode_export_request(request: ExportTraceServiceRequest) -> bytes:
    """Serialize an export request into the body of an OTLP/HTTP request.

    Parameters:
        request (ExportTraceServiceRequest): Message to serialize.

    Returns:
        bytes: Protobuf encoding of the request.

    Raises:
        EncodingError: If any field can not be encoded.
    """
    try:
        payload = serialize_export_request(request)
    except EncodingError:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        raise EncodingError(f"Failed to encode export request: {e}") from e
    logger.debug("Encoded export request of %d bytes", len(payload))
    return payload


# --------------------------------------------------------------------------
#  Reader
# --------------------------------------------------------------------------


def iter_fields(data: bytes) -> Iterator[tuple[int, int, FieldValue]]:
    """Iterate over the top-level fields of a serialized message.

    Varint fields yield an int, fixed64 fields their raw 8 bytes and
    length-delimited fields their payload bytes.

    Raises:
        EncodingError: If the buffer is malformed.
    """
    data = bytes(data)
    length = len(data)
    offset = 0
    while offset < length:
        key, offset = decode_varint(data, offset)
        field_number, wire_type = key >> 3, key & 0x07
        if field_number == 0:
            raise EncodingError("Field number 0 is reserved")
        value: FieldValue
        if wire_type == WIRE_VARINT:
            value, offset = decode_varint(data, offset)
        elif wire_type == WIRE_FIXED64:
            end = offset + 8
            if end > length:
                raise EncodingError(f"Truncated fixed64 field {field_number}")
            value, offset = data[offset:end], end
        elif wire_type == WIRE_LENGTH_DELIMITED:
            size, offset = decode_varint(data, offset)
            end = offset + size
            if end > length:
                raise EncodingError(f"Truncated length-delimited field {field_number}")
            value, offset = data[offset:end], end
        else:
            raise EncodingError(f"Unsupported wire type {wire_type}")
        yield field_number, wire_type, value


def _as_bytes(value: FieldValue) -> bytes:
    if not isinstance(value, bytes):
        raise EncodingError("Expected a length-delimited field")
    return value


def _as_int(value: FieldValue) -> int:
    if not isinstance(value, int):
        raise EncodingError("Expected a varint field")
    return value


def _as_str(value: FieldValue) -> str:
    try:
        return _as_bytes(value).decode("utf-8")
    except UnicodeDecodeError as e:
        raise EncodingError(f"Invalid UTF-8 in string field: {e}") from e


def _decode_any_value(data: bytes) -> AnyValue:
    # last variant on the wire wins, like a protobuf oneof
    value = AnyValue()
    for number, _, raw in iter_fields(data):
        if number == AnyValueField.STRING_VALUE:
            value = AnyValue(string_value=_as_str(raw))
        elif number == AnyValueField.INT_VALUE:
            unsigned = _as_int(raw)
            value = AnyValue(
                int_value=(
                    unsigned - _UINT64_LIMIT if unsigned > _INT64_MAX else unsigned
                )
            )
        elif number == AnyValueField.DOUBLE_VALUE:
            value = AnyValue(double_value=struct.unpack("<d", _as_bytes(raw))[0])
        elif number == AnyValueField.BOOL_VALUE:
            value = AnyValue(bool_value=bool(_as_int(raw)))
    return value


def _decode_key_value(data: bytes) -> KeyValue:
    key = ""
    value = AnyValue()
    for number, _, raw in iter_fields(data):
        if number == KeyValueField.KEY:
            key = _as_str(raw)
        elif number == KeyValueField.VALUE:
            value = _decode_any_value(_as_bytes(raw))
    return KeyValue(key=key, value=value)


def _decode_resource(data: bytes) -> Resource:
    resource = Resource()
    for number, _, raw in iter_fields(data):
        if number == ResourceField.ATTRIBUTES:
            attribute = _decode_key_value(_as_bytes(raw))
            resource.attributes[attribute.key] = attribute.value.string_value or ""
    return resource


def _decode_span(data: bytes) -> Span:
    span = Span()
    for number, _, raw in iter_fields(data):
        if number == SpanField.TRACE_ID:
            span.trace_id = _as_bytes(raw)
        elif number == SpanField.SPAN_ID:
            span.span_id = _as_bytes(raw)
        elif number == SpanField.NAME:
            span.name = _as_str(raw)
        elif number == SpanField.START_TIME_UNIX_NANO:
            span.start_time_unix_nano = _as_int(raw)
        elif number == SpanField.END_TIME_UNIX_NANO:
            span.end_time_unix_nano = _as_int(raw)
        elif number == SpanField.ATTRIBUTES:
            span.attributes.append(_decode_key_value(_as_bytes(raw)))
    return span


def _decode_scope_spans(data: bytes) -> ScopeSpans:
    return ScopeSpans(
        spans=[
            _decode_span(_as_bytes(raw))
            for number, _, raw in iter_fields(data)
            if number == ScopeSpansField.SPANS
        ]
    )


def _decode_resource_spans(data: bytes) -> ResourceSpans:
    resource_spans = ResourceSpans()
    for number, _, raw in iter_fields(data):
        if number == ResourceSpansField.RESOURCE:
            resource_spans.resource = _decode_resource(_as_bytes(raw))
        elif number == ResourceSpansField.SCOPE_SPANS:
            resource_spans.scope_spans.append(_decode_scope_spans(_as_bytes(raw)))
    return resource_spans


def decode_export_request(data: bytes) -> ExportTraceServiceRequest:
    """Parse a payload produced by encode_export_request.

    Unknown fields are skipped. Resource attributes are read back as
    strings, matching what the exporter writes.

    Raises:
        EncodingError: If the payload is malformed.
    """
    return ExportTraceServiceRequest(
        resource_spans=[
            _decode_resource_spans(_as_bytes(raw))
            for number, _, raw in iter_fields(data)
            if number == ExportTraceServiceRequestField.RESOURCE_SPANS
        ]
    )
