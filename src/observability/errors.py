"""Errors raised inside the telemetry pipeline.

None of these ever reach code that calls the dispatcher's logging methods:
the dispatcher logs them and drops the affected event.
"""


class TelemetryError(Exception):
    """Base class for telemetry pipeline errors."""


class ConfigurationMissingError(TelemetryError):
    """No endpoint is configured, so there is nowhere to send the event."""


class EncodingError(TelemetryError):
    """A message could not be serialized to protobuf wire format."""


class TransportError(TelemetryError):
    """The collector could not be reached or did not accept the payload."""

    def __init__(self, message: str, status: int | None = None) -> None:
        """Initialize the error.

        Parameters:
            message (str): Human readable description of the failure.
            status (int | None): HTTP status returned by the collector, if any.
        """
        super().__init__(message)
        self.status = status
