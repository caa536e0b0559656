"""
SignatureWorkflow -- the dual-signature protocol that activates a lease.

Responsibility:
    Collects the landlord's and the tenant's signatures independently and
    moves the lease ``draft -> pending_signatures -> active``.  Either party
    may sign first; whoever signs second activates the lease.

Architecture position:
    Kernel > Services -- imperative shell around the pure
    ``domain.lease_workflow.apply_signature`` transition.

Invariants enforced:
    - Only the landlord or tenant of record may sign.
    - Signatures are write-once per party.
    - Signing is legal only in ``draft`` / ``pending_signatures``.
    - status == active iff both signatures are present.
    - No lost update: the read-decide-write sequence is committed with a
      version-checked ``compare_and_swap``.  If the other party's write
      landed in between, the whole sequence is re-run on the fresh record
      (bounded by ``LeaseConfig.max_write_attempts``).

Failure modes:
    - ValidationError: blank signature blob.
    - NotFoundError, UnauthorizedError, AlreadySignedError,
      InvalidStateError: surfaced as-is, never retried.
    - ConcurrencyConflictError: every attempt lost its race.

Usage:
    workflow = SignatureWorkflow(store, sink, clock, config)
    lease = workflow.sign(lease_id, landlord_id, "signed:landlord")
    assert lease.status == LeaseStatus.PENDING_SIGNATURES
"""

from __future__ import annotations

from uuid import UUID

from lease_kernel.config import LeaseConfig
from lease_kernel.domain.clock import Clock, SystemClock
from lease_kernel.domain.events import LeaseStatusChanged
from lease_kernel.domain.lease import Lease, LeaseStatus
from lease_kernel.domain.lease_workflow import apply_signature
from lease_kernel.domain.validation import validate_signature
from lease_kernel.exceptions import (
    AlreadySignedError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
)
from lease_kernel.logging_config import LogContext, get_logger
from lease_kernel.services.conflict_retry import run_with_conflict_retry
from lease_kernel.services.lease_store import LeaseRecordStore
from lease_kernel.services.notification_sink import (
    LoggingNotificationSink,
    NotificationSink,
    publish_safely,
)

logger = get_logger("services.signature_workflow")


class SignatureWorkflow:
    """Applies party signatures with optimistic-concurrency retry."""

    def __init__(
        self,
        store: LeaseRecordStore,
        sink: NotificationSink | None = None,
        clock: Clock | None = None,
        config: LeaseConfig | None = None,
    ):
        self._store = store
        self._sink = sink or LoggingNotificationSink()
        self._clock = clock or SystemClock()
        self._config = config or LeaseConfig.with_defaults()

    def sign(self, lease_id: UUID, signer_id: str, signature: str) -> Lease:
        """Record ``signer_id``'s signature on the lease.

        Preconditions:
            - ``signature`` is a non-blank opaque string.

        Postconditions:
            - The signer's signature field is set; the other is untouched.
            - status is ``active`` if both parties have now signed,
              otherwise ``pending_signatures``.

        Raises:
            ValidationError: blank signature.
            NotFoundError: no lease with this ID.
            UnauthorizedError: signer is neither landlord nor tenant.
            AlreadySignedError: signer's party already signed.
            InvalidStateError: lease is expired or terminated.
            ConcurrencyConflictError: retries exhausted.
        """
        validate_signature(signature)

        with LogContext.bind(lease_id=str(lease_id), actor_id=signer_id):
            def attempt() -> tuple[Lease, Lease]:
                current = self._store.get(lease_id)
                if current is None:
                    raise NotFoundError(str(lease_id))
                updated = apply_signature(
                    current, signer_id, signature, self._clock.now()
                )
                return current, self._store.compare_and_swap(updated, current.version)

            try:
                before, after = run_with_conflict_retry(
                    attempt,
                    lease_id=str(lease_id),
                    action="sign",
                    max_attempts=self._config.max_write_attempts,
                )
            except (UnauthorizedError, AlreadySignedError, InvalidStateError) as exc:
                logger.info(
                    "lease_signature_rejected",
                    extra={"error_code": exc.code, "error": str(exc)},
                )
                raise

            role = after.role_of(signer_id)
            logger.info(
                "lease_signed",
                extra={
                    "role": role.value if role else None,
                    "from_status": before.status.value,
                    "to_status": after.status.value,
                    "version": after.version,
                },
            )
            if after.status is LeaseStatus.ACTIVE:
                logger.info(
                    "lease_activated",
                    extra={
                        "landlord_id": after.landlord_id,
                        "tenant_id": after.tenant_id,
                        "property_id": after.property_id,
                    },
                )

        if after.status is not before.status:
            publish_safely(self._sink, LeaseStatusChanged.between(before, after))
        return after
