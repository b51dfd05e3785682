"""Event builders for the built-in application events.

Each builder assembles the attribute mapping of one event kind. Every event
carries the session identifier and an ISO-8601 timestamp. Caller supplied
attributes are merged last, so they replace built-in attributes with the same
key, including session_id and timestamp.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Mapping, Optional

import constants
from models.telemetry import NavigationMethod, ProductAction, TelemetryEvent


def iso_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a moment as an ISO-8601 UTC timestamp with seconds precision.

    Parameters:
        moment (Optional[datetime]): Time to format; now when omitted. Naive
        datetimes are treated as UTC.

    Returns:
        str: Timestamp such as 2026-01-01T12:00:00Z.
    """
    if moment is None:
        moment = datetime.now(timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class EventContext:
    """Values attached to every event of a session."""

    session_id: str
    timestamp: str

    @classmethod
    def now(cls, session_id: str) -> "EventContext":
        """Create a context stamped with the current time."""
        return cls(session_id=session_id, timestamp=iso_timestamp())


def _build_event(
    name: str,
    context: EventContext,
    fields: Mapping[str, str],
    extra: Optional[Mapping[str, str]] = None,
) -> TelemetryEvent:
    attributes = dict(fields)
    attributes[constants.ATTR_SESSION_ID] = context.session_id
    attributes[constants.ATTR_TIMESTAMP] = context.timestamp
    if extra:
        attributes.update(extra)
    return TelemetryEvent(name=name, attributes=attributes)


def build_screen_appeared_event(
    context: EventContext, screen_name: str
) -> TelemetryEvent:
    """Build the event logged when a screen becomes visible."""
    return _build_event(
        constants.EVENT_SCREEN_APPEARED, context, {"screen_name": screen_name}
    )


def build_navigation_event(
    context: EventContext,
    from_screen: Optional[str],
    to_screen: str,
    method: NavigationMethod,
) -> TelemetryEvent:
    """Build the event logged when the user navigates between screens.

    A missing source screen is reported as "unknown".
    """
    return _build_event(
        constants.EVENT_NAVIGATION,
        context,
        {
            "from_screen": (
                from_screen if from_screen is not None else constants.UNKNOWN_SCREEN
            ),
            "to_screen": to_screen,
            "navigation_method": NavigationMethod(method).value,
        },
    )


def build_button_tap_event(
    context: EventContext,
    button_name: str,
    screen_name: Optional[str] = None,
    additional_data: Optional[Mapping[str, str]] = None,
) -> TelemetryEvent:
    """Build the event logged when a button is tapped.

    The screen_name attribute is only present when the screen is known.
    """
    fields = {"button_name": button_name}
    if screen_name is not None:
        fields["screen_name"] = screen_name
    return _build_event(constants.EVENT_BUTTON_TAP, context, fields, additional_data)


def build_product_interaction_event(
    context: EventContext,
    action: ProductAction,
    product_id: str,
    product_name: str,
    additional_data: Optional[Mapping[str, str]] = None,
) -> TelemetryEvent:
    """Build the event logged when the user interacts with a product."""
    return _build_event(
        constants.EVENT_PRODUCT_INTERACTION,
        context,
        {
            "action": ProductAction(action).value,
            "product_id": product_id,
            "product_name": product_name,
        },
        additional_data,
    )


def build_custom_event(
    context: EventContext,
    name: str,
    attributes: Optional[Mapping[str, str]] = None,
) -> TelemetryEvent:
    """Build an application defined event."""
    return _build_event(name, context, {}, attributes)
