"""
Module: lease_kernel.models.lease
Responsibility: ORM persistence for lease agreements.

Architecture position: Kernel > Models.  May import from db/base.py and the
    frozen domain DTOs only.

Invariants enforced:
    - Status values limited by a check constraint; transitions themselves
      are enforced by ``domain.lease_workflow``.
    - rent_amount > 0, deposit >= 0, end_date > start_date.  The deposit cap
      is configuration and is checked by the validator, not the schema.
    - ``version`` is the optimistic-concurrency token.  Every UPDATE issued
      by the record store is conditional on it and increments it.

Failure modes:
    - IntegrityError if a row violates a check constraint (a validator bug).
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, Date, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from lease_kernel.db.base import Base
from lease_kernel.domain.lease import Lease, LeaseStatus

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in LeaseStatus)


class LeaseModel(Base):
    """Persistent lease agreement row."""

    __tablename__ = "leases"

    __table_args__ = (
        CheckConstraint(
            f"status IN ({_STATUS_VALUES})",
            name="ck_leases_valid_status",
        ),
        CheckConstraint("rent_amount > 0", name="ck_leases_positive_rent"),
        CheckConstraint("deposit >= 0", name="ck_leases_non_negative_deposit"),
        CheckConstraint("end_date > start_date", name="ck_leases_date_order"),
        CheckConstraint("version >= 1", name="ck_leases_version"),
        # Dashboard queries: active leases per participant, soonest end first
        Index("ix_leases_landlord_status_end", "landlord_id", "status", "end_date"),
        Index("ix_leases_tenant_status_end", "tenant_id", "status", "end_date"),
        Index("ix_leases_property_start", "property_id", "start_date"),
        # Expiration scan
        Index("ix_leases_status_end", "status", "end_date"),
    )

    property_id: Mapped[str] = mapped_column(String(128), nullable=False)
    landlord_id: Mapped[str] = mapped_column(String(128), nullable=False)
    tenant_id: Mapped[str] = mapped_column(String(128), nullable=False)
    rent_amount: Mapped[Decimal] = mapped_column(nullable=False)
    deposit: Mapped[Decimal] = mapped_column(nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    terms: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    landlord_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    tenant_signature: Mapped[str | None] = mapped_column(Text, nullable=True)
    landlord_signed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    tenant_signed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    termination_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<Lease {self.id} status={self.status} v{self.version}>"

    def to_dto(self) -> Lease:
        """Convert ORM model to frozen domain DTO."""
        return Lease(
            id=self.id,
            property_id=self.property_id,
            landlord_id=self.landlord_id,
            tenant_id=self.tenant_id,
            rent_amount=self.rent_amount,
            deposit=self.deposit,
            start_date=self.start_date,
            end_date=self.end_date,
            terms=self.terms,
            status=LeaseStatus(self.status),
            created_at=self.created_at,
            updated_at=self.updated_at,
            landlord_signature=self.landlord_signature,
            tenant_signature=self.tenant_signature,
            landlord_signed_at=self.landlord_signed_at,
            tenant_signed_at=self.tenant_signed_at,
            termination_reason=self.termination_reason,
            version=self.version,
        )

    @classmethod
    def from_dto(cls, dto: Lease) -> LeaseModel:
        """Create ORM model from a domain DTO."""
        return cls(
            id=dto.id,
            property_id=dto.property_id,
            landlord_id=dto.landlord_id,
            tenant_id=dto.tenant_id,
            rent_amount=dto.rent_amount,
            deposit=dto.deposit,
            start_date=dto.start_date,
            end_date=dto.end_date,
            terms=dto.terms,
            status=dto.status.value,
            created_at=dto.created_at,
            updated_at=dto.updated_at,
            landlord_signature=dto.landlord_signature,
            tenant_signature=dto.tenant_signature,
            landlord_signed_at=dto.landlord_signed_at,
            tenant_signed_at=dto.tenant_signed_at,
            termination_reason=dto.termination_reason,
            version=dto.version,
        )

    @staticmethod
    def mutable_values(dto: Lease) -> dict:
        """Column values a lifecycle transition may change.

        Parties, amounts, term and creation time are immutable after insert
        and are deliberately absent.
        """
        return {
            "status": dto.status.value,
            "landlord_signature": dto.landlord_signature,
            "tenant_signature": dto.tenant_signature,
            "landlord_signed_at": dto.landlord_signed_at,
            "tenant_signed_at": dto.tenant_signed_at,
            "termination_reason": dto.termination_reason,
            "updated_at": dto.updated_at,
        }
