"""
Module: lease_kernel.selectors.lease_selector
Responsibility: Range queries over leases -- by participant, property and
    status/end-date -- returning frozen ``Lease`` DTOs.

Ordering contract (matches the dashboards that consume these lists):
    - active leases for a participant: soonest ``end_date`` first
    - all leases for a participant: newest ``created_at`` first
    - leases for a property: newest ``start_date`` first
    - leases by status: soonest ``end_date`` first
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select

from lease_kernel.domain.lease import Lease, LeaseStatus, ParticipantRole
from lease_kernel.models.lease import LeaseModel
from lease_kernel.selectors.base import BaseSelector


def _participant_column(role: ParticipantRole):
    if role is ParticipantRole.LANDLORD:
        return LeaseModel.landlord_id
    return LeaseModel.tenant_id


class LeaseSelector(BaseSelector):
    """Read-side queries over the ``leases`` table."""

    def get(self, lease_id: UUID) -> Lease | None:
        model = self.session.get(LeaseModel, lease_id)
        return model.to_dto() if model is not None else None

    def for_participant(
        self,
        participant_id: str,
        role: ParticipantRole,
        status: LeaseStatus | None = None,
    ) -> list[Lease]:
        stmt = select(LeaseModel).where(_participant_column(role) == participant_id)
        if status is not None:
            stmt = stmt.where(LeaseModel.status == status.value).order_by(
                LeaseModel.end_date.asc(), LeaseModel.id
            )
        else:
            stmt = stmt.order_by(LeaseModel.created_at.desc(), LeaseModel.id)
        return [m.to_dto() for m in self.session.scalars(stmt)]

    def for_property(self, property_id: str) -> list[Lease]:
        stmt = (
            select(LeaseModel)
            .where(LeaseModel.property_id == property_id)
            .order_by(LeaseModel.start_date.desc(), LeaseModel.id)
        )
        return [m.to_dto() for m in self.session.scalars(stmt)]

    def by_status(
        self,
        status: LeaseStatus,
        end_date_from: date | None = None,
        end_date_to: date | None = None,
    ) -> list[Lease]:
        stmt = select(LeaseModel).where(LeaseModel.status == status.value)
        if end_date_from is not None:
            stmt = stmt.where(LeaseModel.end_date >= end_date_from)
        if end_date_to is not None:
            stmt = stmt.where(LeaseModel.end_date <= end_date_to)
        stmt = stmt.order_by(LeaseModel.end_date.asc(), LeaseModel.id)
        return [m.to_dto() for m in self.session.scalars(stmt)]
