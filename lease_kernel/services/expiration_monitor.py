"""
ExpirationMonitor -- classifies active leases by days-to-expiry.

Responsibility:
    ``classify`` is a pure, deterministic function of (lease, as_of).
    ``scan`` is the periodic job: it classifies every active lease, alerts
    the notification collaborator about EXPIRING_SOON and EXPIRED leases,
    and moves EXPIRED ones to ``expired`` through the lifecycle manager.
    That is the only status change not triggered by a user action.

Architecture position:
    Kernel > Services.  Classification is delegated to
    ``domain.expiration``; the status write to ``LeaseLifecycleManager``.

Failure modes:
    - Notification delivery failures are logged, never retried.
    - A lease that cannot be expired (terminated or changed concurrently)
      is logged and skipped; the scan continues with the next lease.

Policy note:
    Expiry is purely date-based.  Whether a move-out confirmation should be
    required before a lease is marked expired is a product decision; the
    date rule is kept until one is made.
"""

from __future__ import annotations

from datetime import date, datetime

from lease_kernel.config import LeaseConfig
from lease_kernel.domain.clock import Clock, SystemClock
from lease_kernel.domain.expiration import (
    ExpirationClass,
    ExpirationEvent,
    classify_expiration,
)
from lease_kernel.domain.lease import Lease
from lease_kernel.exceptions import (
    ConcurrencyConflictError,
    InvalidStateError,
    TermNotEndedError,
)
from lease_kernel.logging_config import get_logger
from lease_kernel.services.lease_lifecycle_manager import LeaseLifecycleManager
from lease_kernel.services.notification_sink import (
    LoggingNotificationSink,
    NotificationSink,
    publish_safely,
)

logger = get_logger("services.expiration_monitor")

_ALERTED = (ExpirationClass.EXPIRING_SOON, ExpirationClass.EXPIRED)


class ExpirationMonitor:
    """Detects expiring and expired leases and reconciles their status."""

    def __init__(
        self,
        manager: LeaseLifecycleManager,
        sink: NotificationSink | None = None,
        clock: Clock | None = None,
        config: LeaseConfig | None = None,
    ):
        self._manager = manager
        self._sink = sink or LoggingNotificationSink()
        self._clock = clock or SystemClock()
        self._config = config or LeaseConfig.with_defaults()

    def classify(
        self,
        lease: Lease,
        as_of: date | datetime | None = None,
    ) -> tuple[ExpirationClass, int]:
        """Return (classification, days_until_expiry) for ``lease`` at ``as_of``."""
        return classify_expiration(
            lease,
            as_of if as_of is not None else self._clock.now(),
            window_days=self._config.expiring_window_days,
        )

    def scan(self, as_of: date | datetime | None = None) -> list[ExpirationEvent]:
        """Classify all active leases, alert, and expire the overdue ones.

        Returns:
            The events emitted, in soonest-end-date-first order.
        """
        as_of = as_of if as_of is not None else self._clock.now()
        leases = self._manager.list_active()
        events: list[ExpirationEvent] = []
        expired_count = 0

        for lease in leases:
            classification, days = self.classify(lease, as_of)
            if classification not in _ALERTED:
                continue

            event = ExpirationEvent(
                lease_id=lease.id,
                classification=classification,
                days_until_expiry=days,
                landlord_id=lease.landlord_id,
                tenant_id=lease.tenant_id,
                end_date=lease.end_date,
            )
            events.append(event)
            publish_safely(self._sink, event)

            if classification is ExpirationClass.EXPIRED:
                try:
                    self._manager.mark_expired(lease.id, as_of)
                    expired_count += 1
                except (
                    InvalidStateError,
                    TermNotEndedError,
                    ConcurrencyConflictError,
                ) as exc:
                    logger.warning(
                        "lease_expiry_skipped",
                        extra={
                            "lease_id": str(lease.id),
                            "error_code": exc.code,
                            "error": str(exc),
                        },
                    )

        logger.info(
            "expiration_scan_completed",
            extra={
                "as_of": as_of,
                "active_leases": len(leases),
                "expiring_soon": sum(
                    1 for e in events
                    if e.classification is ExpirationClass.EXPIRING_SOON
                ),
                "expired": expired_count,
            },
        )
        return events
