"""
Notification sinks and fire-and-forget publication.
"""

from datetime import date, datetime, timezone
from uuid import uuid4

from lease_kernel.domain.events import LeaseStatusChanged
from lease_kernel.domain.expiration import ExpirationClass, ExpirationEvent
from lease_kernel.domain.lease import LeaseStatus
from lease_kernel.services.notification_sink import (
    LoggingNotificationSink,
    NotificationSink,
    RecordingNotificationSink,
    publish_safely,
)


def _expiration_event() -> ExpirationEvent:
    return ExpirationEvent(
        lease_id=uuid4(),
        classification=ExpirationClass.EXPIRING_SOON,
        days_until_expiry=12,
        landlord_id="landlord-1",
        tenant_id="tenant-1",
        end_date=date(2025, 3, 13),
    )


def _status_event() -> LeaseStatusChanged:
    return LeaseStatusChanged(
        lease_id=uuid4(),
        property_id="property-1",
        landlord_id="landlord-1",
        tenant_id="tenant-1",
        from_status=LeaseStatus.PENDING_SIGNATURES,
        to_status=LeaseStatus.ACTIVE,
        occurred_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
    )


class TestRecordingSink:
    def test_keeps_publication_order_and_filters_by_type(self):
        sink = RecordingNotificationSink()
        first, second = _status_event(), _expiration_event()

        sink.publish(first)
        sink.publish(second)

        assert sink.events == [first, second]
        assert sink.of_type(ExpirationEvent) == [second]


class TestLoggingSink:
    def test_event_fields_are_logged(self, captured_logs):
        event = _expiration_event()
        LoggingNotificationSink().publish(event)

        record = next(r for r in captured_logs() if r["message"] == "lease_notification")
        assert record["event_type"] == "ExpirationEvent"
        assert record["lease_id"] == str(event.lease_id)
        assert record["classification"] == "EXPIRING_SOON"
        assert record["end_date"] == "2025-03-13"


class TestPublishSafely:
    def test_success(self):
        sink = RecordingNotificationSink()
        assert publish_safely(sink, _status_event()) is True
        assert len(sink.events) == 1

    def test_failure_is_logged_and_swallowed(self, captured_logs):
        class _Down(NotificationSink):
            def publish(self, event):
                raise TimeoutError("gateway timeout")

        event = _status_event()
        assert publish_safely(_Down(), event) is False

        record = next(r for r in captured_logs() if r["message"] == "lease_notification_failed")
        assert record["level"] == "ERROR"
        assert record["event_type"] == "LeaseStatusChanged"
        assert record["lease_id"] == str(event.lease_id)
