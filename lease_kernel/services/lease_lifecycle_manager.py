"""
LeaseLifecycleManager -- creation, retrieval, listing, termination, expiry.

Responsibility:
    Owns the initial transition (a validated request becomes a ``draft``
    lease) and the terminal ones (``active -> terminated`` on an explicit
    landlord/admin action, ``active -> expired`` when the expiration monitor
    finds the term has passed).  Signing lives in ``SignatureWorkflow``.

Architecture position:
    Kernel > Services -- imperative shell.  Pure decisions are delegated to
    ``domain.validation`` and ``domain.lease_workflow``; persistence to the
    injected ``LeaseRecordStore``; events to the injected
    ``NotificationSink``.

Failure modes:
    - ValidationError on malformed creation input (first violated field).
    - NotFoundError when the lease does not exist.
    - InvalidStateError when terminating/expiring anything but an active
      lease.  Terminating twice fails the second time.
    - ConcurrencyConflictError only after the bounded retry is exhausted.

Usage:
    manager = LeaseLifecycleManager(store, sink, clock, config)
    lease = manager.create(LeaseInput(...))
    manager.terminate(lease.id, reason="tenant relocated")
"""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable
from uuid import UUID, uuid4

from lease_kernel.config import LeaseConfig
from lease_kernel.domain.clock import Clock, SystemClock
from lease_kernel.domain.events import LeaseStatusChanged
from lease_kernel.domain.lease import Lease, LeaseInput, LeaseStatus, ParticipantRole
from lease_kernel.domain.lease_workflow import expire_lease, terminate_lease
from lease_kernel.domain.validation import validate_lease_input
from lease_kernel.exceptions import NotFoundError, ValidationError
from lease_kernel.logging_config import LogContext, get_logger
from lease_kernel.services.conflict_retry import run_with_conflict_retry
from lease_kernel.services.lease_store import LeaseRecordStore
from lease_kernel.services.notification_sink import (
    LoggingNotificationSink,
    NotificationSink,
    publish_safely,
)

logger = get_logger("services.lease_lifecycle_manager")


class LeaseLifecycleManager:
    """Creates leases and performs their non-signature transitions.

    Guarantees:
        - New leases are ``draft``, unsigned, version 1, with both timestamps
          taken from the injected clock.
        - Every status change is published as ``LeaseStatusChanged``.
        - No lease is ever deleted.
    """

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

    # =========================================================================
    # Creation / retrieval
    # =========================================================================

    def create(self, data: LeaseInput) -> Lease:
        """Validate ``data`` and persist it as a new draft lease.

        Raises:
            ValidationError: naming the first violated field.
        """
        try:
            valid = validate_lease_input(data, deposit_cap=self._config.deposit_cap)
        except ValidationError as exc:
            logger.info(
                "lease_creation_rejected",
                extra={"field": exc.field, "reason": exc.reason},
            )
            raise

        now = self._clock.now()
        lease = Lease(
            id=uuid4(),
            property_id=valid.property_id,
            landlord_id=valid.landlord_id,
            tenant_id=valid.tenant_id,
            rent_amount=valid.rent_amount,
            deposit=valid.deposit,
            start_date=valid.start_date,
            end_date=valid.end_date,
            terms=valid.terms,
            status=LeaseStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )
        self._store.insert(lease)

        logger.info(
            "lease_created",
            extra={
                "lease_id": str(lease.id),
                "property_id": lease.property_id,
                "landlord_id": lease.landlord_id,
                "tenant_id": lease.tenant_id,
                "rent_amount": str(lease.rent_amount),
                "start_date": lease.start_date.isoformat(),
                "end_date": lease.end_date.isoformat(),
            },
        )
        return lease

    def get(self, lease_id: UUID) -> Lease:
        """Return the lease; visibility is the caller's decision.

        Raises:
            NotFoundError: no lease with this ID.
        """
        lease = self._store.get(lease_id)
        if lease is None:
            raise NotFoundError(str(lease_id))
        return lease

    # =========================================================================
    # Terminal transitions
    # =========================================================================

    def terminate(self, lease_id: UUID, reason: str | None = None) -> Lease:
        """Terminate an active lease. Deliberately not idempotent.

        Raises:
            NotFoundError: no lease with this ID.
            InvalidStateError: status is not exactly ``active``.
        """
        with LogContext.bind(lease_id=str(lease_id)):
            before, after = self._transition(
                lease_id,
                "terminate",
                lambda lease: terminate_lease(lease, self._clock.now(), reason),
            )
            logger.info(
                "lease_terminated",
                extra={"reason": reason, "version": after.version},
            )
        publish_safely(self._sink, LeaseStatusChanged.between(before, after))
        return after

    def mark_expired(
        self, lease_id: UUID, as_of: date | datetime | None = None
    ) -> Lease:
        """Move an active lease whose term has passed to ``expired``.

        The end date is checked against ``as_of`` (default: now); the write
        itself is always stamped with the clock.

        Raises:
            NotFoundError: no lease with this ID.
            InvalidStateError: status is not exactly ``active``.
            TermNotEndedError: the end date has not passed at ``as_of``.
        """
        with LogContext.bind(lease_id=str(lease_id)):
            before, after = self._transition(
                lease_id,
                "expire",
                lambda lease: expire_lease(lease, self._clock.now(), as_of),
            )
            logger.info(
                "lease_expired",
                extra={"end_date": after.end_date.isoformat(), "version": after.version},
            )
        publish_safely(self._sink, LeaseStatusChanged.between(before, after))
        return after

    def _transition(
        self,
        lease_id: UUID,
        action: str,
        decide: Callable[[Lease], Lease],
    ) -> tuple[Lease, Lease]:
        def attempt() -> tuple[Lease, Lease]:
            current = self.get(lease_id)
            updated = decide(current)
            return current, self._store.compare_and_swap(updated, current.version)

        return run_with_conflict_retry(
            attempt,
            lease_id=str(lease_id),
            action=action,
            max_attempts=self._config.max_write_attempts,
        )

    # =========================================================================
    # Queries
    # =========================================================================

    def list_active_for_landlord(self, landlord_id: str) -> list[Lease]:
        """Active leases of a landlord, soonest end_date first."""
        return self._store.list_for_participant(
            landlord_id, ParticipantRole.LANDLORD, LeaseStatus.ACTIVE
        )

    def list_active_for_tenant(self, tenant_id: str) -> list[Lease]:
        """Active leases of a tenant, soonest end_date first."""
        return self._store.list_for_participant(
            tenant_id, ParticipantRole.TENANT, LeaseStatus.ACTIVE
        )

    def list_for_landlord(self, landlord_id: str) -> list[Lease]:
        """All leases of a landlord in any status, newest first."""
        return self._store.list_for_participant(landlord_id, ParticipantRole.LANDLORD)

    def list_for_tenant(self, tenant_id: str) -> list[Lease]:
        """All leases of a tenant in any status, newest first."""
        return self._store.list_for_participant(tenant_id, ParticipantRole.TENANT)

    def list_for_property(self, property_id: str) -> list[Lease]:
        """All leases of a property, newest start_date first."""
        return self._store.list_for_property(property_id)

    def list_active(self) -> list[Lease]:
        """Every active lease, soonest end_date first."""
        return self._store.list_by_status(LeaseStatus.ACTIVE)

    def list_expiring(
        self,
        as_of: date | None = None,
        window_days: int | None = None,
    ) -> list[Lease]:
        """Active leases ending between ``as_of`` and ``as_of + window`` inclusive."""
        as_of = as_of or self._clock.today()
        window = window_days if window_days is not None else self._config.expiring_window_days
        return self._store.list_by_status(
            LeaseStatus.ACTIVE,
            end_date_from=as_of,
            end_date_to=as_of + timedelta(days=window),
        )
