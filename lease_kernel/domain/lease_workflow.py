"""Lease lifecycle state machine.

Every status change a lease can undergo is declared in
``LEASE_LIFECYCLE_WORKFLOW`` and performed by one of the named pure
transition functions below.  Services load a lease, call a transition
function and hand the result to the record store; nothing else changes
``Lease.status``.

    draft --sign--> pending_signatures --sign[both_signed]--> active
    active --terminate--> terminated
    active --expire[term_ended]--> expired
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime

from lease_kernel.domain.expiration import as_utc_instant, days_until_expiry
from lease_kernel.domain.lease import Lease, LeaseStatus, ParticipantRole
from lease_kernel.domain.workflow import Guard, Transition, Workflow, resolve_transition
from lease_kernel.exceptions import (
    AlreadySignedError,
    InvalidStateError,
    TermNotEndedError,
    UnauthorizedError,
)
from lease_kernel.logging_config import get_logger

logger = get_logger("domain.lease_workflow")

ACTION_SIGN = "sign"
ACTION_TERMINATE = "terminate"
ACTION_EXPIRE = "expire"

BOTH_SIGNED = Guard("both_signed", "Landlord and tenant signatures are both present")
AWAITING_COUNTERPARTY = Guard(
    "awaiting_counterparty", "Exactly one party has signed"
)
TERM_ENDED = Guard("term_ended", "The end date has passed at the evaluation instant")

_DRAFT = LeaseStatus.DRAFT.value
_PENDING = LeaseStatus.PENDING_SIGNATURES.value
_ACTIVE = LeaseStatus.ACTIVE.value
_EXPIRED = LeaseStatus.EXPIRED.value
_TERMINATED = LeaseStatus.TERMINATED.value

LEASE_LIFECYCLE_WORKFLOW = Workflow(
    name="lease_lifecycle",
    description="Rental lease from draft through dual signature to end of term",
    initial_state=_DRAFT,
    states=(_DRAFT, _PENDING, _ACTIVE, _EXPIRED, _TERMINATED),
    transitions=(
        Transition(_DRAFT, _PENDING, action=ACTION_SIGN, guard=AWAITING_COUNTERPARTY),
        Transition(_PENDING, _PENDING, action=ACTION_SIGN, guard=AWAITING_COUNTERPARTY),
        Transition(_PENDING, _ACTIVE, action=ACTION_SIGN, guard=BOTH_SIGNED),
        Transition(_ACTIVE, _TERMINATED, action=ACTION_TERMINATE),
        Transition(_ACTIVE, _EXPIRED, action=ACTION_EXPIRE, guard=TERM_ENDED),
    ),
    terminal_states=(_EXPIRED, _TERMINATED),
)


def _require_transition(lease: Lease, action: str, to_status: LeaseStatus) -> None:
    if resolve_transition(
        LEASE_LIFECYCLE_WORKFLOW, lease.status.value, action, to_status.value
    ) is None:
        raise InvalidStateError(
            lease_id=str(lease.id),
            action=action,
            current_status=lease.status.value,
            allowed_statuses=LEASE_LIFECYCLE_WORKFLOW.source_states(action),
        )


def signature_status(lease: Lease) -> LeaseStatus:
    """Status implied by the signatures currently on ``lease``."""
    if lease.is_fully_signed:
        return LeaseStatus.ACTIVE
    return LeaseStatus.PENDING_SIGNATURES


def apply_signature(
    lease: Lease,
    signer_id: str,
    signature: str,
    at: datetime,
) -> Lease:
    """Record ``signer_id``'s signature and recompute the status.

    Checks run in order: participant, write-once, signable status.  The
    party that signs second moves the lease to ``active``; either party
    may sign first.

    Raises:
        UnauthorizedError: signer is neither landlord nor tenant.
        AlreadySignedError: this party's signature is already set.
        InvalidStateError: lease is not in draft/pending_signatures.
    """
    role = lease.role_of(signer_id)
    if role is None:
        raise UnauthorizedError(lease_id=str(lease.id), signer_id=signer_id)

    if lease.has_signed(role):
        raise AlreadySignedError(lease_id=str(lease.id), role=role.value)

    allowed = LEASE_LIFECYCLE_WORKFLOW.source_states(ACTION_SIGN)
    if lease.status.value not in allowed:
        raise InvalidStateError(
            lease_id=str(lease.id),
            action=ACTION_SIGN,
            current_status=lease.status.value,
            allowed_statuses=allowed,
        )

    if role is ParticipantRole.LANDLORD:
        signed = replace(lease, landlord_signature=signature, landlord_signed_at=at)
    else:
        signed = replace(lease, tenant_signature=signature, tenant_signed_at=at)

    target = signature_status(signed)
    _require_transition(lease, ACTION_SIGN, target)
    return replace(signed, status=target, updated_at=at)


def terminate_lease(lease: Lease, at: datetime, reason: str | None = None) -> Lease:
    """Move an active lease to ``terminated``. One-way; never repeatable."""
    _require_transition(lease, ACTION_TERMINATE, LeaseStatus.TERMINATED)
    return replace(
        lease,
        status=LeaseStatus.TERMINATED,
        termination_reason=reason,
        updated_at=at,
    )


def expire_lease(
    lease: Lease, at: datetime, as_of: date | datetime | None = None
) -> Lease:
    """Move an active lease whose term has passed to ``expired``.

    The term has passed once ``days_until_expiry`` is negative at ``as_of``
    (default ``at``), the same rule the expiration monitor classifies by.

    Raises:
        InvalidStateError: lease is not active.
        TermNotEndedError: the end date has not passed at ``as_of``.
    """
    _require_transition(lease, ACTION_EXPIRE, LeaseStatus.EXPIRED)
    evaluated_at = as_utc_instant(as_of if as_of is not None else at)
    if days_until_expiry(lease.end_date, evaluated_at) >= 0:
        raise TermNotEndedError(str(lease.id), lease.end_date, evaluated_at)
    return replace(lease, status=LeaseStatus.EXPIRED, updated_at=at)


logger.debug(
    "lease_lifecycle_workflow_registered",
    extra={
        "workflow_name": LEASE_LIFECYCLE_WORKFLOW.name,
        "state_count": len(LEASE_LIFECYCLE_WORKFLOW.states),
        "transition_count": len(LEASE_LIFECYCLE_WORKFLOW.transitions),
    },
)
