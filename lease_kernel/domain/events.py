"""Outbound lifecycle events published to the notification collaborator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from lease_kernel.domain.lease import Lease, LeaseStatus


@dataclass(frozen=True)
class LeaseStatusChanged:
    """A lease moved between lifecycle states.

    Both participants are carried so the notification collaborator can
    address landlord and tenant without reading the lease again.
    """
    lease_id: UUID
    property_id: str
    landlord_id: str
    tenant_id: str
    from_status: LeaseStatus
    to_status: LeaseStatus
    occurred_at: datetime

    @classmethod
    def between(cls, before: Lease, after: Lease) -> LeaseStatusChanged:
        return cls(
            lease_id=after.id,
            property_id=after.property_id,
            landlord_id=after.landlord_id,
            tenant_id=after.tenant_id,
            from_status=before.status,
            to_status=after.status,
            occurred_at=after.updated_at,
        )
