"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

from typing import Generator

import pytest
from pytest_mock import AsyncMockType, MockerFixture

from models.config import TelemetryConfiguration
from observability.dispatcher import TelemetryDispatcher
from observability.transport import Transport

ENDPOINT_URL = "https://collector.example/v1/traces"


@pytest.fixture(name="telemetry_configuration")
def telemetry_configuration_fixture() -> TelemetryConfiguration:
    """Create an enabled configuration pointing to a test collector.

    Returns:
        TelemetryConfiguration: Configuration with endpoint and service
        identity set, no API key.
    """
    return TelemetryConfiguration(
        endpoint_url=ENDPOINT_URL,
        service_name="App",
        service_version="1.0",
    )


@pytest.fixture(name="mock_transport")
def mock_transport_fixture(mocker: MockerFixture) -> AsyncMockType:
    """Create a transport mock recording every send."""
    return mocker.AsyncMock(spec=Transport)


@pytest.fixture(name="dispatcher")
def dispatcher_fixture(
    mock_transport: AsyncMockType,
) -> Generator[TelemetryDispatcher, None, None]:
    """Create an unconfigured dispatcher using the mock transport.

    The background event loop is stopped after the test.

    Yields:
        TelemetryDispatcher: Dispatcher instance isolated to the test.
    """
    dispatcher = TelemetryDispatcher(transport=mock_transport)
    yield dispatcher
    dispatcher.shutdown()
