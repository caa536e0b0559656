"""
Expiration classification -- pure functions over a lease and an instant.

A lease's term ends at 00:00 UTC on its ``end_date``.  Days remaining are
rounded up, so any positive fraction of a day counts as a full day and the
end date itself yields 0.

    EXPIRING_SOON  status active and 0 < days <= window
    EXPIRED        days < 0, whatever the recorded status says
    NORMAL         everything else
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from uuid import UUID

from lease_kernel.domain.lease import Lease, LeaseStatus

DEFAULT_EXPIRING_WINDOW_DAYS = 30
_SECONDS_PER_DAY = 86_400


class ExpirationClass(str, Enum):
    NORMAL = "NORMAL"
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True)
class ExpirationEvent:
    """Outbound alert for a lease that is expiring soon or already past its term."""
    lease_id: UUID
    classification: ExpirationClass
    days_until_expiry: int
    landlord_id: str
    tenant_id: str
    end_date: date


def as_utc_instant(value: date | datetime) -> datetime:
    """Normalise a date (midnight) or naive datetime to an aware UTC datetime."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def days_until_expiry(end_date: date, as_of: date | datetime) -> int:
    """ceil((end_date - as_of) / 1 day)."""
    delta = as_utc_instant(end_date) - as_utc_instant(as_of)
    return math.ceil(delta.total_seconds() / _SECONDS_PER_DAY)


def classify_expiration(
    lease: Lease,
    as_of: date | datetime,
    window_days: int = DEFAULT_EXPIRING_WINDOW_DAYS,
) -> tuple[ExpirationClass, int]:
    """Classify ``lease`` at ``as_of``; returns (classification, days)."""
    days = days_until_expiry(lease.end_date, as_of)
    if days < 0:
        return ExpirationClass.EXPIRED, days
    if lease.status is LeaseStatus.ACTIVE and 0 < days <= window_days:
        return ExpirationClass.EXPIRING_SOON, days
    return ExpirationClass.NORMAL, days
