"""
Lease Domain Models (``lease_kernel.domain.lease``).

Responsibility
--------------
Frozen dataclass value objects for the nouns of the lease lifecycle: the
lease itself, the creation request, its status and the participant roles.

Architecture position
---------------------
**Kernel domain layer** -- pure data definitions with ZERO I/O.  Produced
by the record stores, transformed by the transition functions in
``lease_workflow`` and returned to callers.

Invariants enforced
-------------------
* All models are ``frozen=True``; a state change yields a new value.
* All monetary fields use ``Decimal`` -- NEVER ``float``.
* ``version`` is the optimistic-concurrency token; stores bump it on
  every successful write.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class LeaseStatus(str, Enum):
    """Lease lifecycle states."""
    DRAFT = "draft"
    PENDING_SIGNATURES = "pending_signatures"
    ACTIVE = "active"
    EXPIRED = "expired"
    TERMINATED = "terminated"


class ParticipantRole(str, Enum):
    """The two parties of a lease."""
    LANDLORD = "landlord"
    TENANT = "tenant"


@dataclass(frozen=True)
class LeaseInput:
    """A landlord's request to create a lease.

    Amounts are accepted as ``Decimal``, ``int`` or numeric strings and are
    normalised by the validator.
    """
    property_id: str
    landlord_id: str
    tenant_id: str
    rent_amount: Decimal | int | str
    deposit: Decimal | int | str
    start_date: date
    end_date: date
    terms: str


@dataclass(frozen=True)
class Lease:
    """A lease agreement between one landlord and one tenant."""
    id: UUID
    property_id: str
    landlord_id: str
    tenant_id: str
    rent_amount: Decimal
    deposit: Decimal
    start_date: date
    end_date: date
    terms: str
    status: LeaseStatus
    created_at: datetime
    updated_at: datetime
    landlord_signature: str | None = None
    tenant_signature: str | None = None
    landlord_signed_at: datetime | None = None
    tenant_signed_at: datetime | None = None
    termination_reason: str | None = None
    version: int = 1

    def role_of(self, user_id: str) -> ParticipantRole | None:
        """The participant role held by ``user_id``, if any."""
        if user_id == self.landlord_id:
            return ParticipantRole.LANDLORD
        if user_id == self.tenant_id:
            return ParticipantRole.TENANT
        return None

    def participant_id(self, role: ParticipantRole) -> str:
        if role is ParticipantRole.LANDLORD:
            return self.landlord_id
        return self.tenant_id

    def signature_for(self, role: ParticipantRole) -> str | None:
        if role is ParticipantRole.LANDLORD:
            return self.landlord_signature
        return self.tenant_signature

    def has_signed(self, role: ParticipantRole) -> bool:
        return self.signature_for(role) is not None

    @property
    def is_fully_signed(self) -> bool:
        return self.landlord_signature is not None and self.tenant_signature is not None
