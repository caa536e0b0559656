"""
lease_services.lease_api -- collaborator-facing lease operations.

Responsibility:
    The six operations other parts of the marketplace call (dashboards,
    property pages, the scheduled expiration job).  A thin coordinator: every
    call is delegated to ``LeaseLifecycleManager``, ``SignatureWorkflow`` or
    ``ExpirationMonitor``; errors propagate unchanged.

Architecture position:
    Services layer -- composes kernel services.  ``build_lease_api`` is the
    one place where store, sink, clock and configuration are wired together.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from sqlalchemy.orm import Session, sessionmaker

from lease_kernel.config import LeaseConfig
from lease_kernel.db.engine import get_session_factory, init_engine_from_url
from lease_kernel.domain.clock import Clock, SystemClock
from lease_kernel.domain.expiration import ExpirationEvent
from lease_kernel.domain.lease import Lease, LeaseInput, ParticipantRole
from lease_kernel.logging_config import get_logger
from lease_kernel.services.expiration_monitor import ExpirationMonitor
from lease_kernel.services.lease_lifecycle_manager import LeaseLifecycleManager
from lease_kernel.services.lease_store import LeaseRecordStore, SqlLeaseRecordStore
from lease_kernel.services.notification_sink import (
    LoggingNotificationSink,
    NotificationSink,
)
from lease_kernel.services.signature_workflow import SignatureWorkflow

logger = get_logger("services.lease_api")


class LeaseApi:
    """Facade over the lease lifecycle services."""

    def __init__(
        self,
        store: LeaseRecordStore,
        sink: NotificationSink | None = None,
        clock: Clock | None = None,
        config: LeaseConfig | None = None,
    ):
        sink = sink or LoggingNotificationSink()
        clock = clock or SystemClock()
        config = config or LeaseConfig.with_defaults()

        self.manager = LeaseLifecycleManager(store, sink, clock, config)
        self.signatures = SignatureWorkflow(store, sink, clock, config)
        self.monitor = ExpirationMonitor(self.manager, sink, clock, config)

    def create_lease(self, data: LeaseInput) -> Lease:
        return self.manager.create(data)

    def get_lease(self, lease_id: UUID) -> Lease:
        return self.manager.get(lease_id)

    def sign_lease(self, lease_id: UUID, signer_id: str, signature: str) -> Lease:
        return self.signatures.sign(lease_id, signer_id, signature)

    def terminate_lease(self, lease_id: UUID, reason: str | None = None) -> Lease:
        return self.manager.terminate(lease_id, reason)

    def list_active_leases(
        self,
        participant_id: str,
        role: ParticipantRole | str,
    ) -> list[Lease]:
        """Active leases of a landlord or tenant, soonest end_date first.

        Raises:
            ValueError: ``role`` is not ``landlord`` or ``tenant``.
        """
        role = ParticipantRole(role)
        if role is ParticipantRole.LANDLORD:
            return self.manager.list_active_for_landlord(participant_id)
        return self.manager.list_active_for_tenant(participant_id)

    def scan_expirations(
        self,
        as_of: date | datetime | None = None,
    ) -> list[ExpirationEvent]:
        return self.monitor.scan(as_of)


def build_lease_api(
    config: LeaseConfig,
    session_factory: sessionmaker[Session] | None = None,
    sink: NotificationSink | None = None,
    clock: Clock | None = None,
) -> LeaseApi:
    """Wire a ``LeaseApi`` over the SQL store.

    When no ``session_factory`` is given the engine is initialised from
    ``config.database_url``.
    """
    if session_factory is None:
        init_engine_from_url(config.database_url)
        session_factory = get_session_factory()

    logger.info(
        "lease_api_built",
        extra={
            "sink": type(sink).__name__ if sink else LoggingNotificationSink.__name__,
            "expiring_window_days": config.expiring_window_days,
        },
    )
    return LeaseApi(SqlLeaseRecordStore(session_factory), sink, clock, config)
