"""
Pytest fixtures for the lease kernel test suite.

Provides:
- Structured log capture
- A deterministic clock, an in-memory store and a recording notification sink
- SQLite-backed record stores (file database under tmp_path so that
  threaded tests share it)
- Lease builders for the common lifecycle positions (draft, pending, active)
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from lease_kernel.config import LeaseConfig
from lease_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from lease_kernel.domain.clock import DeterministicClock
from lease_kernel.domain.lease import LeaseInput
from lease_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from lease_kernel.services.expiration_monitor import ExpirationMonitor
from lease_kernel.services.lease_lifecycle_manager import LeaseLifecycleManager
from lease_kernel.services.lease_store import (
    InMemoryLeaseRecordStore,
    SqlLeaseRecordStore,
)
from lease_kernel.services.notification_sink import RecordingNotificationSink
from lease_kernel.services.signature_workflow import SignatureWorkflow

LANDLORD_ID = "landlord-1"
TENANT_ID = "tenant-1"
PROPERTY_ID = "property-1"
TEST_NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture lease_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, manager):
            manager.create(...)
            assert any(r["message"] == "lease_created" for r in captured_logs())
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("lease_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(TEST_NOW)


@pytest.fixture
def config() -> LeaseConfig:
    return LeaseConfig.with_defaults()


@pytest.fixture
def sink() -> RecordingNotificationSink:
    return RecordingNotificationSink()


@pytest.fixture
def memory_store() -> InMemoryLeaseRecordStore:
    return InMemoryLeaseRecordStore()


@pytest.fixture
def sqlite_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'leases.db'}"


@pytest.fixture
def session_factory(sqlite_url):
    """Engine over a fresh SQLite file with the lease tables created."""
    init_engine_from_url(sqlite_url)
    create_tables()
    yield get_session_factory()
    reset_engine()


@pytest.fixture
def sql_store(session_factory) -> SqlLeaseRecordStore:
    return SqlLeaseRecordStore(session_factory)


# =============================================================================
# Services (in-memory store by default)
# =============================================================================


@pytest.fixture
def manager(memory_store, sink, clock, config) -> LeaseLifecycleManager:
    return LeaseLifecycleManager(memory_store, sink, clock, config)


@pytest.fixture
def signature_workflow(memory_store, sink, clock, config) -> SignatureWorkflow:
    return SignatureWorkflow(memory_store, sink, clock, config)


@pytest.fixture
def monitor(manager, sink, clock, config) -> ExpirationMonitor:
    return ExpirationMonitor(manager, sink, clock, config)


# =============================================================================
# Lease builders
# =============================================================================


def make_lease_input(**overrides) -> LeaseInput:
    """A valid one-year lease request; any field can be overridden."""
    values = dict(
        property_id=PROPERTY_ID,
        landlord_id=LANDLORD_ID,
        tenant_id=TENANT_ID,
        rent_amount=Decimal("1200.00"),
        deposit=Decimal("2400.00"),
        start_date=date(2025, 2, 1),
        end_date=date(2026, 1, 31),
        terms="Standard residential lease. No pets.",
    )
    values.update(overrides)
    return LeaseInput(**values)


@pytest.fixture(scope="session")
def lease_input():
    """Factory fixture around ``make_lease_input``."""
    return make_lease_input


@pytest.fixture
def draft_lease(manager):
    return manager.create(make_lease_input())


@pytest.fixture
def active_lease_factory(manager, signature_workflow):
    """Create a lease and have both parties sign it."""

    def _create(**overrides):
        lease = manager.create(make_lease_input(**overrides))
        signature_workflow.sign(lease.id, lease.landlord_id, "sig:landlord")
        return signature_workflow.sign(lease.id, lease.tenant_id, "sig:tenant")

    return _create


@pytest.fixture
def active_lease(active_lease_factory):
    return active_lease_factory()
