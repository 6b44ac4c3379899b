"""
Run lifecycle notifications.

Captures run and job snapshots when the host reports a lifecycle event
and POSTs them, together with executor utilization, to a configured URI.
"""

from runnotifier.notifications.config import (
    ConfigurationStore,
    MemorySettings,
    SettingsBackend,
    ValidationErrorKind,
    ValidationResult,
    check_uri,
)
from runnotifier.notifications.events import (
    ExecutorPoolSnapshot,
    JobSnapshot,
    LifecyclePhase,
    NotificationEnvelope,
    RunSnapshot,
)
from runnotifier.notifications.host import (
    HostSnapshotProvider,
    JobRecord,
    NodeInfo,
    RunRecord,
    StaticHost,
)
from runnotifier.notifications.notifier import DeliveryError, DeliveryErrorKind, RunNotifier
from runnotifier.notifications.scheduler import DeliveryScheduler

__all__ = [
    "ConfigurationStore",
    "DeliveryError",
    "DeliveryErrorKind",
    "DeliveryScheduler",
    "ExecutorPoolSnapshot",
    "HostSnapshotProvider",
    "JobRecord",
    "JobSnapshot",
    "LifecyclePhase",
    "MemorySettings",
    "NodeInfo",
    "NotificationEnvelope",
    "RunNotifier",
    "RunRecord",
    "RunSnapshot",
    "SettingsBackend",
    "StaticHost",
    "ValidationErrorKind",
    "ValidationResult",
    "check_uri",
]
