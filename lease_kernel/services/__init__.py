"""Services for the lease kernel (write side)."""

from lease_kernel.services.expiration_monitor import ExpirationMonitor
from lease_kernel.services.lease_lifecycle_manager import LeaseLifecycleManager
from lease_kernel.services.lease_store import (
    InMemoryLeaseRecordStore,
    LeaseRecordStore,
    SqlLeaseRecordStore,
)
from lease_kernel.services.notification_sink import (
    LoggingNotificationSink,
    NotificationSink,
    RecordingNotificationSink,
)
from lease_kernel.services.signature_workflow import SignatureWorkflow

__all__ = [
    "ExpirationMonitor",
    "InMemoryLeaseRecordStore",
    "LeaseLifecycleManager",
    "LeaseRecordStore",
    "LoggingNotificationSink",
    "NotificationSink",
    "RecordingNotificationSink",
    "SignatureWorkflow",
    "SqlLeaseRecordStore",
]
