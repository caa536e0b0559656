"""
Pure domain layer.

Immutable value objects and deterministic functions with NO dependencies on
the ORM, the database or wall-clock time (time arrives through ``Clock``).
"""

from lease_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from lease_kernel.domain.events import LeaseStatusChanged
from lease_kernel.domain.expiration import (
    ExpirationClass,
    ExpirationEvent,
    classify_expiration,
    days_until_expiry,
)
from lease_kernel.domain.lease import Lease, LeaseInput, LeaseStatus, ParticipantRole
from lease_kernel.domain.lease_workflow import (
    LEASE_LIFECYCLE_WORKFLOW,
    apply_signature,
    expire_lease,
    terminate_lease,
)
from lease_kernel.domain.validation import validate_lease_input, validate_signature

__all__ = [
    "Clock",
    "DeterministicClock",
    "ExpirationClass",
    "ExpirationEvent",
    "LEASE_LIFECYCLE_WORKFLOW",
    "Lease",
    "LeaseInput",
    "LeaseStatus",
    "LeaseStatusChanged",
    "ParticipantRole",
    "SystemClock",
    "apply_signature",
    "classify_expiration",
    "days_until_expiry",
    "expire_lease",
    "terminate_lease",
    "validate_lease_input",
    "validate_signature",
]
