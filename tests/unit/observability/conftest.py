"""Fixtures providing protobuf runtime classes for the exported trace schema.

The message classes are built at runtime from a descriptor equivalent to the
schema written by observability.wire, so tests can compare the hand-written
encoder byte-for-byte with the protobuf runtime.
"""

from types import SimpleNamespace

import pytest
from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "telemetry.test.v1"

_FieldProto = descriptor_pb2.FieldDescriptorProto

# (message, [(field name, number, type, label, message type name)])
_SCHEMA = [
    (
        "AnyValue",
        [
            ("string_value", 1, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
            ("int_value", 2, _FieldProto.TYPE_INT64, _FieldProto.LABEL_OPTIONAL, None),
            ("double_value", 3, _FieldProto.TYPE_DOUBLE, _FieldProto.LABEL_OPTIONAL, None),
            ("bool_value", 4, _FieldProto.TYPE_BOOL, _FieldProto.LABEL_OPTIONAL, None),
        ],
    ),
    (
        "KeyValue",
        [
            ("key", 1, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
            ("value", 2, _FieldProto.TYPE_MESSAGE, _FieldProto.LABEL_OPTIONAL, "AnyValue"),
        ],
    ),
    (
        "Resource",
        [
            ("attributes", 1, _FieldProto.TYPE_MESSAGE, _FieldProto.LABEL_REPEATED, "KeyValue"),
        ],
    ),
    (
        "Span",
        [
            ("trace_id", 1, _FieldProto.TYPE_BYTES, _FieldProto.LABEL_OPTIONAL, None),
            ("span_id", 2, _FieldProto.TYPE_BYTES, _FieldProto.LABEL_OPTIONAL, None),
            ("name", 3, _FieldProto.TYPE_STRING, _FieldProto.LABEL_OPTIONAL, None),
            ("start_time_unix_nano", 4, _FieldProto.TYPE_UINT64, _FieldProto.LABEL_OPTIONAL, None),
            ("end_time_unix_nano", 5, _FieldProto.TYPE_UINT64, _FieldProto.LABEL_OPTIONAL, None),
            ("attributes", 6, _FieldProto.TYPE_MESSAGE, _FieldProto.LABEL_REPEATED, "KeyValue"),
        ],
    ),
    (
        "ScopeSpans",
        [
            ("spans", 1, _FieldProto.TYPE_MESSAGE, _FieldProto.LABEL_REPEATED, "Span"),
        ],
    ),
    (
        "ResourceSpans",
        [
            ("resource", 1, _FieldProto.TYPE_MESSAGE, _FieldProto.LABEL_OPTIONAL, "Resource"),
            ("scope_spans", 2, _FieldProto.TYPE_MESSAGE, _FieldProto.LABEL_REPEATED, "ScopeSpans"),
        ],
    ),
    (
        "ExportTraceServiceRequest",
        [
            (
                "resource_spans",
                1,
                _FieldProto.TYPE_MESSAGE,
                _FieldProto.LABEL_REPEATED,
                "ResourceSpans",
            ),
        ],
    ),
]


def _build_message_classes() -> SimpleNamespace:
    """Build protobuf message classes for the trace schema."""
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="telemetry_test_trace.proto", package=PACKAGE, syntax="proto3"
    )
    for message_name, fields in _SCHEMA:
        message = file_proto.message_type.add(name=message_name)
        for name, number, field_type, label, type_name in fields:
            field = message.field.add(
                name=name, number=number, type=field_type, label=label
            )
            if type_name is not None:
                field.type_name = f".{PACKAGE}.{type_name}"

    pool = descriptor_pool.DescriptorPool()
    pool.AddSerializedFile(file_proto.SerializeToString())
    return SimpleNamespace(
        **{
            message_name: message_factory.GetMessageClass(
                pool.FindMessageTypeByName(f"{PACKAGE}.{message_name}")
            )
            for message_name, _ in _SCHEMA
        }
    )


@pytest.fixture(name="pb", scope="session")
def protobuf_messages_fixture() -> SimpleNamespace:
    """Provide protobuf runtime classes for every exported message type."""
    return _build_message_classes()
