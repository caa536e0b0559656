"""
LeaseRecordStore -- durable storage of Lease records.

Responsibility:
    Point reads, inserts, version-checked conditional updates and indexed
    range queries over leases.  Services depend on the abstract
    ``LeaseRecordStore`` and receive a concrete store by constructor
    injection.

Architecture position:
    Kernel > Services -- imperative shell.  ``SqlLeaseRecordStore`` wraps the
    ORM model and ``LeaseSelector``; ``InMemoryLeaseRecordStore`` is a
    thread-safe substitute with identical semantics.

Invariants enforced:
    - There is no blind overwrite.  After insert, the only write primitive
      is ``compare_and_swap``, which succeeds only if the stored version still
      equals the version the caller read, and bumps it by one.
    - Each call is its own transaction; nothing partial is ever visible.
    - Records are never deleted.

Failure modes:
    - ConcurrencyConflictError: the record changed since it was read.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import date
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session, sessionmaker

from lease_kernel.db.engine import session_scope
from lease_kernel.domain.lease import Lease, LeaseStatus, ParticipantRole
from lease_kernel.exceptions import ConcurrencyConflictError
from lease_kernel.logging_config import get_logger
from lease_kernel.models.lease import LeaseModel
from lease_kernel.selectors.lease_selector import LeaseSelector

logger = get_logger("services.lease_store")


class LeaseRecordStore(ABC):
    """Storage contract for lease records."""

    @abstractmethod
    def insert(self, lease: Lease) -> Lease:
        """Persist a new lease; returns it unchanged."""

    @abstractmethod
    def get(self, lease_id: UUID) -> Lease | None:
        """Point read; None if no such lease."""

    @abstractmethod
    def compare_and_swap(self, lease: Lease, expected_version: int) -> Lease:
        """Write ``lease`` iff the stored version is ``expected_version``.

        Returns:
            ``lease`` with ``version == expected_version + 1``.

        Raises:
            ConcurrencyConflictError: stored version differs (or row vanished).
        """

    @abstractmethod
    def list_for_participant(
        self,
        participant_id: str,
        role: ParticipantRole,
        status: LeaseStatus | None = None,
    ) -> list[Lease]:
        """Leases where ``participant_id`` holds ``role``.

        Filtered by status: soonest end_date first.  Unfiltered: newest
        created_at first.
        """

    @abstractmethod
    def list_for_property(self, property_id: str) -> list[Lease]:
        """Leases of one property, newest start_date first."""

    @abstractmethod
    def list_by_status(
        self,
        status: LeaseStatus,
        end_date_from: date | None = None,
        end_date_to: date | None = None,
    ) -> list[Lease]:
        """Leases in ``status`` with end_date in the inclusive range."""


class SqlLeaseRecordStore(LeaseRecordStore):
    """SQLAlchemy-backed store; one session per call."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def insert(self, lease: Lease) -> Lease:
        with session_scope(self._session_factory) as session:
            session.add(LeaseModel.from_dto(lease))
        return lease

    def get(self, lease_id: UUID) -> Lease | None:
        with session_scope(self._session_factory) as session:
            return LeaseSelector(session).get(lease_id)

    def compare_and_swap(self, lease: Lease, expected_version: int) -> Lease:
        stmt = (
            update(LeaseModel)
            .where(
                LeaseModel.id == lease.id,
                LeaseModel.version == expected_version,
            )
            .values(**LeaseModel.mutable_values(lease), version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        with session_scope(self._session_factory) as session:
            result = session.execute(stmt)
            if result.rowcount != 1:
                raise ConcurrencyConflictError(
                    lease_id=str(lease.id), expected_version=expected_version
                )
        return replace(lease, version=expected_version + 1)

    def list_for_participant(
        self,
        participant_id: str,
        role: ParticipantRole,
        status: LeaseStatus | None = None,
    ) -> list[Lease]:
        with session_scope(self._session_factory) as session:
            return LeaseSelector(session).for_participant(participant_id, role, status)

    def list_for_property(self, property_id: str) -> list[Lease]:
        with session_scope(self._session_factory) as session:
            return LeaseSelector(session).for_property(property_id)

    def list_by_status(
        self,
        status: LeaseStatus,
        end_date_from: date | None = None,
        end_date_to: date | None = None,
    ) -> list[Lease]:
        with session_scope(self._session_factory) as session:
            return LeaseSelector(session).by_status(status, end_date_from, end_date_to)


class InMemoryLeaseRecordStore(LeaseRecordStore):
    """Dict-backed store with the same version-check semantics, guarded by a lock."""

    def __init__(self) -> None:
        self._rows: dict[UUID, Lease] = {}
        self._lock = threading.Lock()

    def insert(self, lease: Lease) -> Lease:
        with self._lock:
            if lease.id in self._rows:
                raise ValueError(f"Lease {lease.id} already exists")
            self._rows[lease.id] = lease
        return lease

    def get(self, lease_id: UUID) -> Lease | None:
        with self._lock:
            return self._rows.get(lease_id)

    def compare_and_swap(self, lease: Lease, expected_version: int) -> Lease:
        with self._lock:
            current = self._rows.get(lease.id)
            if current is None or current.version != expected_version:
                raise ConcurrencyConflictError(
                    lease_id=str(lease.id), expected_version=expected_version
                )
            stored = replace(lease, version=expected_version + 1)
            self._rows[lease.id] = stored
        return stored

    def _snapshot(self) -> list[Lease]:
        with self._lock:
            return list(self._rows.values())

    def list_for_participant(
        self,
        participant_id: str,
        role: ParticipantRole,
        status: LeaseStatus | None = None,
    ) -> list[Lease]:
        rows = [
            lease for lease in self._snapshot()
            if lease.participant_id(role) == participant_id
        ]
        if status is not None:
            rows = [lease for lease in rows if lease.status is status]
            return sorted(rows, key=lambda l: (l.end_date, str(l.id)))
        rows.sort(key=lambda l: str(l.id))
        rows.sort(key=lambda l: l.created_at, reverse=True)
        return rows

    def list_for_property(self, property_id: str) -> list[Lease]:
        rows = [l for l in self._snapshot() if l.property_id == property_id]
        rows.sort(key=lambda l: str(l.id))
        rows.sort(key=lambda l: l.start_date, reverse=True)
        return rows

    def list_by_status(
        self,
        status: LeaseStatus,
        end_date_from: date | None = None,
        end_date_to: date | None = None,
    ) -> list[Lease]:
        rows = [
            l for l in self._snapshot()
            if l.status is status
            and (end_date_from is None or l.end_date >= end_date_from)
            and (end_date_to is None or l.end_date <= end_date_to)
        ]
        return sorted(rows, key=lambda l: (l.end_date, str(l.id)))
