# src/focus_companion/core/errors.py

from __future__ import annotations


class FocusError(Exception):
    """Base class for errors raised by focus_companion."""


class NotificationDeliveryFailed(FocusError):
    """
    A connector could not deliver or edit a display.

    Caught at the notification boundary and logged; it never changes session state.
    """

    def __init__(self, user_id: str, reason: str) -> None:
        super().__init__(f"delivery to {user_id} failed: {reason}")
        self.user_id = user_id
        self.reason = reason
