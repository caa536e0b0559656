"""
ExpirationMonitor: classification through the service and the periodic scan.
"""

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from lease_kernel.domain.events import LeaseStatusChanged
from lease_kernel.domain.expiration import ExpirationClass, ExpirationEvent
from lease_kernel.domain.lease import LeaseStatus
from lease_kernel.exceptions import ConcurrencyConflictError
from lease_kernel.services.expiration_monitor import ExpirationMonitor
from lease_kernel.services.notification_sink import NotificationSink


class TestClassify:
    def test_defaults_to_clock_time(self, monitor, active_lease_factory, clock):
        clock.set_time(datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc))
        lease = active_lease_factory(end_date=date(2025, 3, 22))

        assert monitor.classify(lease) == (ExpirationClass.EXPIRING_SOON, 21)

    def test_window_comes_from_config(self, manager, sink, clock, active_lease_factory):
        from lease_kernel.config import LeaseConfig

        narrow = ExpirationMonitor(manager, sink, clock, LeaseConfig(expiring_window_days=7))
        lease = active_lease_factory(end_date=date(2025, 3, 22))

        assert narrow.classify(lease, date(2025, 3, 1))[0] is ExpirationClass.NORMAL


class TestScan:
    def test_scan_alerts_and_expires(self, monitor, manager, active_lease_factory, sink):
        soon = active_lease_factory(end_date=date(2025, 3, 22))
        overdue = active_lease_factory(end_date=date(2025, 2, 26))
        active_lease_factory(end_date=date(2025, 12, 31))

        events = monitor.scan(date(2025, 3, 1))

        assert [(e.lease_id, e.classification, e.days_until_expiry) for e in events] == [
            (overdue.id, ExpirationClass.EXPIRED, -3),
            (soon.id, ExpirationClass.EXPIRING_SOON, 21),
        ]
        assert sink.of_type(ExpirationEvent) == events
        assert manager.get(overdue.id).status is LeaseStatus.EXPIRED
        assert manager.get(soon.id).status is LeaseStatus.ACTIVE

        expired_changes = [
            e for e in sink.of_type(LeaseStatusChanged)
            if e.to_status is LeaseStatus.EXPIRED
        ]
        assert [e.lease_id for e in expired_changes] == [overdue.id]

    def test_event_addresses_both_parties(self, monitor, active_lease_factory):
        lease = active_lease_factory(end_date=date(2025, 3, 10))
        (event,) = monitor.scan(date(2025, 3, 1))

        assert event.landlord_id == lease.landlord_id
        assert event.tenant_id == lease.tenant_id
        assert event.end_date == date(2025, 3, 10)

    def test_second_scan_does_not_realert_expired(self, monitor, active_lease_factory):
        active_lease_factory(end_date=date(2025, 2, 26))

        assert len(monitor.scan(date(2025, 3, 1))) == 1
        assert monitor.scan(date(2025, 3, 1)) == []

    def test_scan_ignores_non_active_leases(self, monitor, manager, active_lease, draft_lease):
        manager.terminate(active_lease.id)
        assert monitor.scan(date(2030, 1, 1)) == []
        assert manager.get(draft_lease.id).status is LeaseStatus.DRAFT

    def test_scan_with_nothing_to_report(self, monitor, active_lease, captured_logs):
        assert monitor.scan(date(2025, 3, 1)) == []
        summary = next(r for r in captured_logs() if r["message"] == "expiration_scan_completed")
        assert summary["active_leases"] == 1
        assert summary["expired"] == 0

    def test_scan_skips_lease_it_cannot_expire(
        self, manager, sink, clock, config, active_lease_factory, captured_logs
    ):
        overdue = active_lease_factory(end_date=date(2025, 2, 26))

        class _Interfering:
            def __getattr__(self, name):
                return getattr(manager, name)

            def mark_expired(self, lease_id, as_of=None):
                raise ConcurrencyConflictError(str(lease_id), expected_version=3, attempts=3)

        monitor = ExpirationMonitor(_Interfering(), sink, clock, config)
        events = monitor.scan(date(2025, 3, 1))

        assert [e.lease_id for e in events] == [overdue.id]
        skipped = next(r for r in captured_logs() if r["message"] == "lease_expiry_skipped")
        assert skipped["error_code"] == "CONCURRENCY_CONFLICT"

    def test_sink_failure_does_not_stop_scan(
        self, manager, clock, config, active_lease_factory, captured_logs
    ):
        class _FailingSink(NotificationSink):
            def publish(self, event):
                raise RuntimeError("smtp down")

        first = active_lease_factory(end_date=date(2025, 2, 20))
        second = active_lease_factory(end_date=date(2025, 2, 25))

        monitor = ExpirationMonitor(manager, _FailingSink(), clock, config)
        events = monitor.scan(date(2025, 3, 1))

        assert [e.lease_id for e in events] == [first.id, second.id]
        assert manager.get(first.id).status is LeaseStatus.EXPIRED
        assert manager.get(second.id).status is LeaseStatus.EXPIRED
        failures = [r for r in captured_logs() if r["message"] == "lease_notification_failed"]
        assert len(failures) == 2

    def test_scan_defaults_to_clock(self, monitor, manager, active_lease_factory, clock):
        lease = active_lease_factory(end_date=date(2025, 2, 26))
        clock.set_time(datetime(2025, 2, 27, 0, 0, 1, tzinfo=timezone.utc))

        (event,) = monitor.scan()
        assert event.lease_id == lease.id
        assert event.classification is ExpirationClass.EXPIRED
        assert manager.get(lease.id).status is LeaseStatus.EXPIRED

    @pytest.mark.parametrize("status", [LeaseStatus.DRAFT, LeaseStatus.PENDING_SIGNATURES])
    def test_unsigned_lease_past_end_is_left_alone(
        self, monitor, manager, memory_store, lease_input, status
    ):
        lease = manager.create(lease_input(end_date=date(2025, 2, 26)))
        memory_store.compare_and_swap(replace(lease, status=status), lease.version)

        assert monitor.scan(date(2025, 3, 1)) == []
        assert manager.get(lease.id).status is status
