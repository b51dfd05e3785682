"""Event format builders for telemetry events.

The events module assembles the attribute mapping of every built-in event
kind. Custom events are built with build_custom_event.
"""

from observability.formats.events import (
    EventContext,
    build_button_tap_event,
    build_custom_event,
    build_navigation_event,
    build_product_interaction_event,
    build_screen_appeared_event,
    iso_timestamp,
)

__all__ = [
    "EventContext",
    "build_button_tap_event",
    "build_custom_event",
    "build_navigation_event",
    "build_product_interaction_event",
    "build_screen_appeared_event",
    "iso_timestamp",
]
