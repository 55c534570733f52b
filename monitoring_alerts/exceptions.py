"""Errors raised by the monitoring engine and its adapters."""
from __future__ import annotations


class MonitoringError(Exception):
    """Base class for monitoring errors."""


class DuplicateAlertError(MonitoringError):
    """The store rejected an alert because an identical one exists for the day."""

    def __init__(self, user_id: int, alert_type_id: int, message: str) -> None:
        super().__init__(
            f"Alert already exists for user {user_id}, type {alert_type_id}: {message!r}"
        )
        self.user_id = user_id
        self.alert_type_id = alert_type_id
        self.message = message


class DirectoryApiError(MonitoringError):
    """The directory service answered with a non-success envelope."""
