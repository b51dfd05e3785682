"""Model with telemetry dispatcher configuration."""

from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    SecretStr,
    model_validator,
)
from typing_extensions import Self

import constants


class ConfigurationBase(BaseModel):
    """Base class for all configuration models that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid")


class TelemetryConfiguration(ConfigurationBase):
    """Telemetry export configuration.

    Describes where spans are exported to and how the emitting service
    identifies itself. A configuration without an endpoint is valid: every
    logging call made with it is silently dropped.

    The configuration is never validated against the network; an unreachable
    collector only shows up as transport warnings in the log.

    Useful resources:

      - [OTLP specification](https://opentelemetry.io/docs/specs/otlp/)
      - [OTLP/HTTP](https://opentelemetry.io/docs/specs/otlp/#otlphttp)
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    # not AnyHttpUrl: the URL is sent exactly as configured
    endpoint_url: Optional[str] = Field(
        None,
        title="Endpoint URL",
        description="OTLP/HTTP traces endpoint, for example "
        "https://collector.example/v1/traces",
    )

    api_key: Optional[SecretStr] = Field(
        None,
        title="API key",
        description="Sent as a bearer token in the Authorization header when set",
    )

    service_name: str = Field(
        constants.DEFAULT_SERVICE_NAME,
        title="Service name",
        description="Value of the service.name resource attribute",
    )

    service_version: str = Field(
        constants.DEFAULT_SERVICE_VERSION,
        title="Service version",
        description="Value of the service.version resource attribute",
    )

    enabled: bool = Field(
        True,
        title="Enabled",
        description="When set to false every logging call is a no-op",
    )

    timeout: PositiveInt = Field(
        constants.DEFAULT_EXPORT_TIMEOUT,
        title="Timeout",
        description="Total timeout of one export request, in seconds",
    )

    verify_ssl: bool = Field(
        True,
        title="Verify SSL",
        description="Verify the collector's TLS certificate",
    )

    @model_validator(mode="after")
    def check_telemetry_configuration(self) -> Self:
        """Check that an API key is not configured without an endpoint.

        Returns:
            Self: The validated TelemetryConfiguration instance.

        Raises:
            ValueError: If api_key is set while endpoint_url is not.
        """
        if self.api_key is not None and not self.endpoint_url:
            raise ValueError("Telemetry API key is set but endpoint_url is missing")
        return self

    @property
    def is_exportable(self) -> bool:
        """Return True when events should be sent with this configuration."""
        return self.enabled and bool(self.endpoint_url)
