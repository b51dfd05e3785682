"""Constants used in business logic."""

# Defaults applied when the dispatcher is configured without explicit values
DEFAULT_SERVICE_NAME = "Unknown"
DEFAULT_SERVICE_VERSION = "1.0.0"
DEFAULT_EXPORT_TIMEOUT = 5

# Identifier widths follow the OTLP convention and never vary
TRACE_ID_LENGTH = 16
SPAN_ID_LENGTH = 8

# HTTP export
OTLP_CONTENT_TYPE = "application/x-protobuf"
OTLP_SUCCESS_STATUS = 200
USER_AGENT_PRODUCT = "otlp-event-telemetry"

# Resource attribute keys
RESOURCE_SERVICE_NAME = "service.name"
RESOURCE_SERVICE_VERSION = "service.version"
RESOURCE_SESSION_ID = "session.id"

# Span names for built-in events
EVENT_SCREEN_APPEARED = "screen_appeared"
EVENT_NAVIGATION = "navigation"
EVENT_BUTTON_TAP = "button_tap"
EVENT_PRODUCT_INTERACTION = "product_interaction"

# Attribute keys attached to every event
ATTR_SESSION_ID = "session_id"
ATTR_TIMESTAMP = "timestamp"

# Navigation source used when the previous screen is not known
UNKNOWN_SCREEN = "unknown"

# Name of the background thread running the export event loop
DISPATCH_THREAD_NAME = "telemetry-dispatch"

# Environment variable selecting the console log level
LOG_LEVEL_ENV_VAR = "TELEMETRY_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "INFO"
