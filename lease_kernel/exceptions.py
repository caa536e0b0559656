"""
Typed Exception Hierarchy for the Lease Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The lease lifecycle is driven by two independent parties (landlord and
tenant) plus privileged actors (admin, expiration monitor).  Callers need to
tell "you already signed" apart from "you may not sign" without parsing
message strings.  Every error therefore:

  1. Has its own class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (lease id, field, expected vs. actual
     state) so the calling UI can render a specific, actionable message

Example:
    try:
        workflow.sign(lease_id, user_id, blob)
    except AlreadySignedError:
        pass  # no-op from the caller's perspective
    except InvalidStateError as e:
        show(f"Lease is {e.current_status}; signing needs {e.allowed_statuses}")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LeaseKernelError (base)
    |
    +-- ValidationError
    +-- NotFoundError
    +-- UnauthorizedError
    +-- AlreadySignedError
    +-- InvalidStateError
    +-- TermNotEndedError
    +-- ConcurrencyConflictError
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                   | When Raised                              | Retried?
-----------------------|------------------------------------------|---------
VALIDATION_FAILED      | Malformed creation input / blank blob    | never
LEASE_NOT_FOUND        | Lease ID doesn't exist                   | never
UNAUTHORIZED_SIGNER    | Signer is neither landlord nor tenant    | never
ALREADY_SIGNED         | Same party signs a second time           | never
INVALID_LEASE_STATE    | Action not legal in the current status   | never
CONCURRENCY_CONFLICT   | Version-checked write lost a race        | bounded
TERM_NOT_ENDED         | Expiry requested before the end date     | never
INVALID_CONFIGURATION  | Config file has an unknown/invalid value | never

ConcurrencyConflictError is the only transient error.  The operation layer
re-runs the whole read-decide-write sequence a bounded number of times and
only surfaces it once the attempts are exhausted.
"""

from datetime import date, datetime


class LeaseKernelError(Exception):
    """
    Base exception for all lease kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEASE_KERNEL_ERROR"


class ValidationError(LeaseKernelError):
    """Input failed a static lease invariant."""

    code: str = "VALIDATION_FAILED"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class NotFoundError(LeaseKernelError):
    """Lease with given ID was not found."""

    code: str = "LEASE_NOT_FOUND"

    def __init__(self, lease_id: str):
        self.lease_id = lease_id
        super().__init__(f"Lease not found: {lease_id}")


class UnauthorizedError(LeaseKernelError):
    """Signer is not a participant of the lease."""

    code: str = "UNAUTHORIZED_SIGNER"

    def __init__(self, lease_id: str, signer_id: str):
        self.lease_id = lease_id
        self.signer_id = signer_id
        super().__init__(
            f"User {signer_id} is not authorized to sign lease {lease_id}"
        )


class AlreadySignedError(LeaseKernelError):
    """The party has already signed this lease (signatures are write-once)."""

    code: str = "ALREADY_SIGNED"

    def __init__(self, lease_id: str, role: str):
        self.lease_id = lease_id
        self.role = role
        super().__init__(f"The {role} has already signed lease {lease_id}")


class InvalidStateError(LeaseKernelError):
    """Operation is not legal in the lease's current status."""

    code: str = "INVALID_LEASE_STATE"

    def __init__(
        self,
        lease_id: str,
        action: str,
        current_status: str,
        allowed_statuses: tuple[str, ...],
    ):
        self.lease_id = lease_id
        self.action = action
        self.current_status = current_status
        self.allowed_statuses = allowed_statuses
        super().__init__(
            f"Cannot {action} lease {lease_id} in status '{current_status}' "
            f"(allowed: {', '.join(allowed_statuses) or 'none'})"
        )


class TermNotEndedError(LeaseKernelError):
    """Expiry was requested for a lease whose term has not ended yet."""

    code: str = "TERM_NOT_ENDED"

    def __init__(self, lease_id: str, end_date: date, as_of: datetime):
        self.lease_id = lease_id
        self.end_date = end_date
        self.as_of = as_of
        super().__init__(
            f"Cannot expire lease {lease_id}: term ends {end_date}, "
            f"evaluated at {as_of.isoformat()}"
        )


class ConcurrencyConflictError(LeaseKernelError):
    """A version-checked write found the record changed since it was read."""

    code: str = "CONCURRENCY_CONFLICT"

    def __init__(self, lease_id: str, expected_version: int, attempts: int = 1):
        self.lease_id = lease_id
        self.expected_version = expected_version
        self.attempts = attempts
        super().__init__(
            f"Concurrent modification of lease {lease_id} "
            f"(expected version {expected_version}, attempts {attempts})"
        )


class ConfigurationError(LeaseKernelError):
    """Configuration value is unknown or out of range."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration '{key}': {reason}")
