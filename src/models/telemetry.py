"""Models describing application events before they become spans."""

from dataclasses import dataclass, field
from enum import Enum


class NavigationMethod(str, Enum):
    """How the user moved from one screen to another."""

    TAB = "tab"
    PUSH = "push"
    MODAL = "modal"
    BACK = "back"
    DEEP_LINK = "deep_link"


class ProductAction(str, Enum):
    """Kind of interaction with a product."""

    VIEW = "view"
    ADD_TO_CART = "add_to_cart"
    REMOVE_FROM_CART = "remove_from_cart"
    FAVORITE = "favorite"
    UNFAVORITE = "unfavorite"
    PURCHASE = "purchase"


@dataclass
class TelemetryEvent:
    """One application occurrence, exported as a single span."""

    name: str
    attributes: dict[str, str] = field(default_factory=dict)
