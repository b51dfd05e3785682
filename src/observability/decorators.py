"""Decorators that log a telemetry event whenever a callable is invoked."""

import inspect
from functools import wraps
from typing import Any, Callable, Mapping, Optional

from models.telemetry import NavigationMethod, ProductAction
from observability.dispatcher import TelemetryDispatcher


def _track(log_event: Callable[[], None]) -> Callable[[Callable], Callable]:
    """Build a decorator calling log_event before every call of the wrapped function.

    Both plain functions and coroutine functions are supported; for
    coroutine functions the event is logged when the coroutine starts
    running.
    """

    def decorator(f: Callable) -> Callable:
        if inspect.iscoroutinefunction(f):

            @wraps(f)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                log_event()
                return await f(*args, **kwargs)

            return async_wrapper

        @wraps(f)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            log_event()
            return f(*args, **kwargs)

        return wrapper

    return decorator


def track_event(
    dispatcher: TelemetryDispatcher,
    name: str,
    attributes: Optional[Mapping[str, str]] = None,
) -> Callable[[Callable], Callable]:
    """
    Log a custom event every time the decorated callable is invoked.

    Parameters:
        dispatcher (TelemetryDispatcher): Dispatcher receiving the event.
        name (str): Event name.
        attributes (Optional[Mapping[str, str]]): Attributes attached to
        every logged event.

    Example:
    ```python
    @track_event(dispatcher, "checkout_started")
    def start_checkout(cart):
        ...
    ```
    """
    return _track(lambda: dispatcher.log_custom_event(name, attributes))


def track_button_tap(
    dispatcher: TelemetryDispatcher,
    button_name: str,
    screen_name: Optional[str] = None,
    additional_data: Optional[Mapping[str, str]] = None,
) -> Callable[[Callable], Callable]:
    """
    Log a button tap every time the decorated handler is invoked.

    Parameters:
        dispatcher (TelemetryDispatcher): Dispatcher receiving the event.
        button_name (str): Name of the button whose handler is decorated.
        screen_name (Optional[str]): Screen the button belongs to.
        additional_data (Optional[Mapping[str, str]]): Extra attributes.
    """
    return _track(
        lambda: dispatcher.log_button_tap(button_name, screen_name, additional_data)
    )


def track_screen(
    dispatcher: TelemetryDispatcher, screen_name: str
) -> Callable[[Callable], Callable]:
    """Log that a screen appeared every time the decorated callable is invoked."""
    return _track(lambda: dispatcher.log_screen_appeared(screen_name))


def track_navigation(
    dispatcher: TelemetryDispatcher,
    from_screen: Optional[str],
    to_screen: str,
    method: NavigationMethod,
) -> Callable[[Callable], Callable]:
    """Log a navigation every time the decorated callable is invoked."""
    return _track(lambda: dispatcher.log_navigation(from_screen, to_screen, method))


def track_product_interaction(
    dispatcher: TelemetryDispatcher,
    action: ProductAction,
    product_id: str,
    product_name: str,
    additional_data: Optional[Mapping[str, str]] = None,
) -> Callable[[Callable], Callable]:
    """
    Log a product interaction every time the decorated callable is invoked.

    Parameters:
        dispatcher (TelemetryDispatcher): Dispatcher receiving the event.
        action (ProductAction): Interaction performed by the callable.
        product_id (str): Identifier of the product.
        product_name (str): Display name of the product.
        additional_data (Optional[Mapping[str, str]]): Extra attributes.
    """
    return _track(
        lambda: dispatcher.log_product_interaction(
            action, product_id, product_name, additional_data
        )
    )
