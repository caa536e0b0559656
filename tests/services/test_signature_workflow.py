"""
Dual-signature protocol: draft -> pending_signatures -> active.
"""

from uuid import uuid4

import pytest

from lease_kernel.domain.events import LeaseStatusChanged
from lease_kernel.domain.lease import LeaseStatus
from lease_kernel.exceptions import (
    AlreadySignedError,
    InvalidStateError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from lease_kernel.services.notification_sink import NotificationSink


class TestSigningSequence:
    def test_landlord_then_tenant_activates(self, signature_workflow, draft_lease, sink):
        pending = signature_workflow.sign(draft_lease.id, "landlord-1", "sig:L")
        assert pending.status is LeaseStatus.PENDING_SIGNATURES
        assert pending.landlord_signature == "sig:L"
        assert pending.tenant_signature is None

        active = signature_workflow.sign(draft_lease.id, "tenant-1", "sig:T")
        assert active.status is LeaseStatus.ACTIVE
        assert active.landlord_signature == "sig:L"
        assert active.tenant_signature == "sig:T"

        transitions = [(e.from_status, e.to_status) for e in sink.of_type(LeaseStatusChanged)]
        assert transitions == [
            (LeaseStatus.DRAFT, LeaseStatus.PENDING_SIGNATURES),
            (LeaseStatus.PENDING_SIGNATURES, LeaseStatus.ACTIVE),
        ]

    def test_tenant_may_sign_first(self, signature_workflow, draft_lease):
        signature_workflow.sign(draft_lease.id, "tenant-1", "sig:T")
        active = signature_workflow.sign(draft_lease.id, "landlord-1", "sig:L")
        assert active.status is LeaseStatus.ACTIVE

    def test_each_write_bumps_version(self, signature_workflow, draft_lease):
        first = signature_workflow.sign(draft_lease.id, "tenant-1", "sig:T")
        second = signature_workflow.sign(draft_lease.id, "landlord-1", "sig:L")
        assert (first.version, second.version) == (2, 3)

    def test_signing_timestamps_come_from_clock(self, signature_workflow, draft_lease, clock):
        clock.advance(30)
        lease = signature_workflow.sign(draft_lease.id, "tenant-1", "sig:T")
        assert lease.tenant_signed_at == clock.now()
        assert lease.updated_at == clock.now()

    def test_activation_is_logged(self, signature_workflow, draft_lease, captured_logs):
        signature_workflow.sign(draft_lease.id, "landlord-1", "sig:L")
        signature_workflow.sign(draft_lease.id, "tenant-1", "sig:T")

        messages = [r["message"] for r in captured_logs()]
        assert messages.count("lease_signed") == 2
        activated = next(r for r in captured_logs() if r["message"] == "lease_activated")
        assert activated["lease_id"] == str(draft_lease.id)
        assert activated["actor_id"] == "tenant-1"


class TestRejections:
    def test_stranger_cannot_sign(self, signature_workflow, draft_lease, manager):
        with pytest.raises(UnauthorizedError):
            signature_workflow.sign(draft_lease.id, "stranger", "sig:X")
        assert manager.get(draft_lease.id) == draft_lease

    def test_signer_must_match_stored_id_exactly(
        self, signature_workflow, manager, lease_input
    ):
        lease = manager.create(lease_input(landlord_id=" landlord-1"))

        with pytest.raises(UnauthorizedError):
            signature_workflow.sign(lease.id, "landlord-1", "sig:L")

        signed = signature_workflow.sign(lease.id, " landlord-1", "sig:L")
        assert signed.landlord_signature == "sig:L"

    def test_stranger_on_active_lease_is_unauthorized(self, signature_workflow, active_lease):
        with pytest.raises(UnauthorizedError):
            signature_workflow.sign(active_lease.id, "stranger", "sig:X")

    def test_double_signature_leaves_record_untouched(
        self, signature_workflow, draft_lease, manager
    ):
        pending = signature_workflow.sign(draft_lease.id, "tenant-1", "sig:T")

        with pytest.raises(AlreadySignedError):
            signature_workflow.sign(draft_lease.id, "tenant-1", "sig:T-again")

        assert manager.get(draft_lease.id) == pending

    def test_party_that_signed_cannot_resign_active_lease(self, signature_workflow, active_lease):
        with pytest.raises(AlreadySignedError):
            signature_workflow.sign(active_lease.id, "landlord-1", "sig:L2")

    def test_blank_signature_rejected(self, signature_workflow, draft_lease):
        with pytest.raises(ValidationError) as exc_info:
            signature_workflow.sign(draft_lease.id, "tenant-1", "   ")
        assert exc_info.value.field == "signature"

    def test_unknown_lease(self, signature_workflow):
        with pytest.raises(NotFoundError):
            signature_workflow.sign(uuid4(), "tenant-1", "sig:T")

    def test_unsigned_party_cannot_sign_terminated_lease(
        self, signature_workflow, manager, draft_lease, memory_store
    ):
        from dataclasses import replace

        # A terminated lease with a missing signature only arises from legacy data.
        memory_store.compare_and_swap(
            replace(draft_lease, status=LeaseStatus.TERMINATED), draft_lease.version
        )
        with pytest.raises(InvalidStateError) as exc_info:
            signature_workflow.sign(draft_lease.id, "tenant-1", "sig:T")
        assert exc_info.value.current_status == "terminated"

    def test_rejection_is_logged(self, signature_workflow, draft_lease, captured_logs):
        with pytest.raises(UnauthorizedError):
            signature_workflow.sign(draft_lease.id, "stranger", "sig:X")

        record = next(r for r in captured_logs() if r["message"] == "lease_signature_rejected")
        assert record["error_code"] == "UNAUTHORIZED_SIGNER"
        assert record["actor_id"] == "stranger"


class _BrokenSink(NotificationSink):
    def publish(self, event):
        raise ConnectionError("notification service unavailable")


class TestNotificationFailure:
    def test_failed_delivery_does_not_undo_signature(
        self, memory_store, clock, config, lease_input, captured_logs
    ):
        from lease_kernel.services.lease_lifecycle_manager import LeaseLifecycleManager
        from lease_kernel.services.signature_workflow import SignatureWorkflow

        sink = _BrokenSink()
        manager = LeaseLifecycleManager(memory_store, sink, clock, config)
        workflow = SignatureWorkflow(memory_store, sink, clock, config)
        lease = manager.create(lease_input())

        signed = workflow.sign(lease.id, "landlord-1", "sig:L")

        assert signed.status is LeaseStatus.PENDING_SIGNATURES
        assert manager.get(lease.id).landlord_signature == "sig:L"
        failures = [r for r in captured_logs() if r["message"] == "lease_notification_failed"]
        assert failures[0]["exc_type"] == "ConnectionError"
