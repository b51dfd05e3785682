"""Async OTLP/HTTP transport for sending serialized trace payloads."""

import logging
from abc import ABC, abstractmethod

import aiohttp

import constants
from models.config import TelemetryConfiguration
from observability.errors import ConfigurationMissingError, TransportError
from version import __version__

logger = logging.getLogger(__name__)


def build_headers(configuration: TelemetryConfiguration) -> dict[str, str]:
    """Build the HTTP headers of an export request.

    Parameters:
        configuration (TelemetryConfiguration): Active configuration; the API
        key, when set, is sent as a bearer token.

    Returns:
        dict[str, str]: Request headers.
    """
    headers = {
        "Content-Type": constants.OTLP_CONTENT_TYPE,
        "User-Agent": f"{constants.USER_AGENT_PRODUCT}/{__version__}",
    }
    if configuration.api_key is not None:
        headers["Authorization"] = (
            f"Bearer {configuration.api_key.get_secret_value()}"
        )
    return headers


class Transport(ABC):
    """Sends one serialized export request to a collector."""

    @abstractmethod
    async def send(self, configuration: TelemetryConfiguration, payload: bytes) -> None:
        """Send the payload to the configured endpoint.

        Parameters:
            configuration (TelemetryConfiguration): Configuration captured when
            the event was logged.
            payload (bytes): Serialized ExportTraceServiceRequest.

        Raises:
            ConfigurationMissingError: If no endpoint is configured.
            TransportError: If the request failed or was not accepted.
        """


class OTLPHttpTransport(Transport):
    """Transport posting protobuf payloads over HTTP with aiohttp."""

    async def send(self, configuration: TelemetryConfiguration, payload: bytes) -> None:
        """Post the payload; only HTTP 200 counts as success.

        A new client session is opened for every request, so the transport
        keeps no connection state between events.
        """
        if not configuration.endpoint_url:
            raise ConfigurationMissingError("No endpoint URL configured")

        timeout = aiohttp.ClientTimeout(total=configuration.timeout)
        connector = aiohttp.TCPConnector(ssl=configuration.verify_ssl)

        try:
            async with aiohttp.ClientSession(
                timeout=timeout, connector=connector
            ) as session:
                async with session.post(
                    configuration.endpoint_url,
                    data=payload,
                    headers=build_headers(configuration),
                ) as response:
                    if response.status != constants.OTLP_SUCCESS_STATUS:
                        raise TransportError(
                            f"Telemetry failed with status: {response.status}",
                            status=response.status,
                        )
        except aiohttp.ClientError as e:
            raise TransportError(f"Failed to send telemetry: {e}") from e
        except TimeoutError as e:
            raise TransportError(
                f"Telemetry request timed out after {configuration.timeout}s"
            ) from e
        logger.debug("Telemetry sent successfully to %s", configuration.endpoint_url)
