"""
NotificationSink -- outbound interface to the notification collaborator.

Delivery is fire-and-forget: the kernel publishes ``LeaseStatusChanged``
and ``ExpirationEvent`` values and never retries.  ``publish_safely`` is
the single place where a delivery failure is caught; it is logged with the
event and the lifecycle operation carries on.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import asdict
from typing import Union

from lease_kernel.domain.events import LeaseStatusChanged
from lease_kernel.domain.expiration import ExpirationEvent
from lease_kernel.logging_config import get_logger

logger = get_logger("services.notification_sink")

LeaseEvent = Union[LeaseStatusChanged, ExpirationEvent]


class NotificationSink(ABC):
    """Receives lease events for delivery to landlords and tenants."""

    @abstractmethod
    def publish(self, event: LeaseEvent) -> None:
        ...


class LoggingNotificationSink(NotificationSink):
    """Writes every event to the structured log. Default sink."""

    def publish(self, event: LeaseEvent) -> None:
        logger.info(
            "lease_notification",
            extra={"event_type": type(event).__name__, **asdict(event)},
        )


class RecordingNotificationSink(NotificationSink):
    """Keeps published events in memory, in publication order."""

    def __init__(self) -> None:
        self._events: list[LeaseEvent] = []
        self._lock = threading.Lock()

    def publish(self, event: LeaseEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> list[LeaseEvent]:
        with self._lock:
            return list(self._events)

    def of_type(self, event_type: type) -> list[LeaseEvent]:
        return [e for e in self.events if isinstance(e, event_type)]


def publish_safely(sink: NotificationSink, event: LeaseEvent) -> bool:
    """Publish ``event``; returns False (after logging) if delivery failed."""
    try:
        sink.publish(event)
    except Exception:
        logger.exception(
            "lease_notification_failed",
            extra={"event_type": type(event).__name__, "lease_id": str(event.lease_id)},
        )
        return False
    return True
