"""Telemetry dispatcher turning application events into exported spans.

The dispatcher owns the configuration, the session identifier and the
background event loop that encodes and sends spans. Logging methods never
block and never raise: they build the event, hand the export over to the
background loop and return.
"""

import asyncio
import concurrent.futures
from functools import wraps
from threading import Lock, Thread
from typing import Any, Callable, Mapping, Optional

import constants
from log import get_logger
from models.config import TelemetryConfiguration
from models.telemetry import NavigationMethod, ProductAction, TelemetryEvent
from observability.errors import (
    ConfigurationMissingError,
    EncodingError,
    TransportError,
)
from observability.formats.events import (
    EventContext,
    build_button_tap_event,
    build_custom_event,
    build_navigation_event,
    build_product_interaction_event,
    build_screen_appeared_event,
)
from observability.spans import SpanBuilder
from observability.transport import OTLPHttpTransport, Transport
from observability.wire import encode_export_request
from utils.suid import get_suid

logger = get_logger(__name__)


def _never_raises(method: Callable[..., None]) -> Callable[..., None]:
    """Log and swallow any error raised while logging an event."""

    @wraps(method)
    def wrapper(self: "TelemetryDispatcher", *args: Any, **kwargs: Any) -> None:
        try:
            method(self, *args, **kwargs)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Failed to log telemetry event in %s", method.__name__)

    return wrapper


class TelemetryDispatcher:
    """Asynchronous, best-effort exporter of application events.

    Exports run on a single event loop in a daemon thread that is started on
    the first enabled logging call. Encoding of one event completes before
    its request is sent, but requests of different events are in flight
    concurrently and may reach the collector in any order. Failed exports
    are logged and dropped; nothing is retried.
    """

    def __init__(
        self,
        configuration: Optional[TelemetryConfiguration] = None,
        transport: Optional[Transport] = None,
    ) -> None:
        """Initialize the dispatcher and create its session identifier.

        Parameters:
            configuration (Optional[TelemetryConfiguration]): Initial
            configuration; without one every logging call is dropped until
            configure() is called.
            transport (Optional[Transport]): Transport used to send payloads,
            OTLPHttpTransport when omitted.
        """
        self._configuration = (
            configuration if configuration is not None else TelemetryConfiguration()
        )
        self._transport = transport if transport is not None else OTLPHttpTransport()
        self._session_id = get_suid()
        self._lock = Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[Thread] = None
        self._pending: set[concurrent.futures.Future] = set()

    @property
    def configuration(self) -> TelemetryConfiguration:
        """Return the active configuration."""
        return self._configuration

    @property
    def session_id(self) -> str:
        """Return the identifier of this dispatcher's session."""
        return self._session_id

    def configure(  # pylint: disable=too-many-arguments,too-many-positional-arguments
        self,
        endpoint_url: str,
        api_key: Optional[str] = None,
        service_name: str = constants.DEFAULT_SERVICE_NAME,
        service_version: str = constants.DEFAULT_SERVICE_VERSION,
        enabled: bool = True,
        timeout: int = constants.DEFAULT_EXPORT_TIMEOUT,
        verify_ssl: bool = True,
    ) -> None:
        """Replace the configuration with a new one built from the arguments.

        The previous configuration is discarded entirely. The endpoint is not
        contacted.

        Raises:
            pydantic.ValidationError: If the arguments are not a valid
            configuration.
        """
        self.configure_from(
            TelemetryConfiguration(
                endpoint_url=endpoint_url,
                api_key=api_key,
                service_name=service_name,
                service_version=service_version,
                enabled=enabled,
                timeout=timeout,
                verify_ssl=verify_ssl,
            )
        )

    def configure_from(self, configuration: TelemetryConfiguration) -> None:
        """Replace the configuration with the given one."""
        self._configuration = configuration
        logger.info(
            "Telemetry configured for %s v%s",
            configuration.service_name,
            configuration.service_version,
        )

    @_never_raises
    def log_screen_appeared(self, screen_name: str) -> None:
        """Log that a screen became visible."""
        if self._accepts_events():
            self._submit(build_screen_appeared_event(self._context(), screen_name))
            logger.debug("Screen appeared: %s", screen_name)

    @_never_raises
    def log_navigation(
        self,
        from_screen: Optional[str],
        to_screen: str,
        method: NavigationMethod,
    ) -> None:
        """Log navigation between two screens."""
        if self._accepts_events():
            self._submit(
                build_navigation_event(self._context(), from_screen, to_screen, method)
            )
            logger.debug(
                "Navigation: %s -> %s via %s",
                from_screen or constants.UNKNOWN_SCREEN,
                to_screen,
                NavigationMethod(method).value,
            )

    @_never_raises
    def log_button_tap(
        self,
        button_name: str,
        screen_name: Optional[str] = None,
        additional_data: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Log a button tap, optionally with the screen it happened on."""
        if self._accepts_events():
            self._submit(
                build_button_tap_event(
                    self._context(), button_name, screen_name, additional_data
                )
            )
            logger.debug(
                "Button tap: %s on %s", button_name, screen_name or "unknown screen"
            )

    @_never_raises
    def log_product_interaction(
        self,
        action: ProductAction,
        product_id: str,
        product_name: str,
        additional_data: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Log an interaction with a product."""
        if self._accepts_events():
            self._submit(
                build_product_interaction_event(
                    self._context(), action, product_id, product_name, additional_data
                )
            )
            logger.debug(
                "Product interaction: %s for %s",
                ProductAction(action).value,
                product_name,
            )

    @_never_raises
    def log_custom_event(
        self, name: str, attributes: Optional[Mapping[str, str]] = None
    ) -> None:
        """Log an application defined event."""
        if self._accepts_events():
            self._submit(build_custom_event(self._context(), name, attributes))
            logger.debug("Custom event: %s", name)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until all submitted exports have finished.

        Parameters:
            timeout (Optional[float]): Maximum number of seconds to wait;
            wait without limit when None.

        Returns:
            bool: True if every export finished, False on timeout.
        """
        with self._lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = concurrent.futures.wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, timeout: float = 5.0) -> None:
        """Flush pending exports and stop the background event loop.

        Exports still running when the timeout expires are cancelled and
        dropped. A later logging call starts a new loop.
        """
        if not self.flush(timeout):
            logger.warning("Telemetry shutdown with exports still in flight")
        with self._lock:
            loop, thread = self._loop, self._thread
            self._loop = None
            self._thread = None
            # exports still running are cancelled by the loop thread on exit
            self._pending.clear()
        if loop is None or thread is None:
            return
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout)
        if not thread.is_alive():
            loop.close()

    def _accepts_events(self) -> bool:
        configuration = self._configuration
        if configuration.is_exportable:
            return True
        if configuration.enabled:
            logger.debug("No endpoint URL configured, skipping event")
        return False

    def _context(self) -> EventContext:
        return EventContext.now(self._session_id)

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        with self._lock:
            if self._loop is None:
                loop = asyncio.new_event_loop()
                thread = Thread(
                    target=_run_loop,
                    args=(loop,),
                    name=constants.DISPATCH_THREAD_NAME,
                    daemon=True,
                )
                thread.start()
                self._loop = loop
                self._thread = thread
            return self._loop

    def _submit(self, event: TelemetryEvent) -> None:
        export = self._export(event, self._configuration)
        try:
            loop = self._ensure_loop()
            future = asyncio.run_coroutine_threadsafe(export, loop)
        except RuntimeError as e:
            export.close()
            logger.error("Failed to schedule telemetry event %s: %s", event.name, e)
            return
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)

    def _forget(self, future: concurrent.futures.Future) -> None:
        with self._lock:
            self._pending.discard(future)

    async def _export(
        self, event: TelemetryEvent, configuration: TelemetryConfiguration
    ) -> None:
        """Encode one event and send it; every failure is logged and dropped."""
        builder = SpanBuilder(
            service_name=configuration.service_name,
            service_version=configuration.service_version,
            session_id=self._session_id,
        )
        try:
            payload = encode_export_request(builder.build_export_request(event))
            await self._transport.send(configuration, payload)
        except EncodingError as e:
            logger.error("Failed to create OTLP payload for %s: %s", event.name, e)
        except ConfigurationMissingError as e:
            logger.debug("Dropping telemetry event %s: %s", event.name, e)
        except TransportError as e:
            logger.warning("Dropping telemetry event %s: %s", event.name, e)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Unexpected error while exporting %s", event.name)


def _run_loop(loop: asyncio.AbstractEventLoop) -> None:
    """Run the export loop until stopped, then cancel leftover exports."""
    asyncio.set_event_loop(loop)
    try:
        loop.run_forever()
    finally:
        tasks = asyncio.all_tasks(loop)
        for task in tasks:
            task.cancel()
        loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))
        loop.run_until_complete(loop.shutdown_asyncgens())
