"""
Notification events - snapshots of a run and its host, and the envelope
that goes over the wire.

Run and job snapshots are taken when the lifecycle event fires. The
executor pool is snapshotted later, right before the envelope is built.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from runnotifier.notifications.host import HostJob, HostRun, NodeInfo, absolute_uri


class LifecyclePhase(str, Enum):
    STARTED = "started"
    COMPLETED = "completed"
    FINALIZED = "finalized"


def utc_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-01-31T09:15:00.250Z."""
    now = now or datetime.now(timezone.utc)
    return (
        now.astimezone(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class _Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class RunSnapshot(_Snapshot):
    """A run as it looked when the lifecycle event fired."""

    build_status_summary: str = Field(default="", alias="buildStatusSummary")
    name: str
    duration: int = 0
    status: LifecyclePhase
    uri: Optional[str] = None

    @classmethod
    def capture(
        cls, phase: LifecyclePhase, run: HostRun, root_url: str | None
    ) -> RunSnapshot:
        return cls(
            build_status_summary=run.build_status_summary or "",
            name=run.display_name,
            duration=int(run.duration or 0),
            status=phase,
            uri=absolute_uri(root_url, run.url),
        )


class JobSnapshot(_Snapshot):
    """The parent job of a run, at event time."""

    name: str
    uri: Optional[str] = None

    @classmethod
    def capture(cls, job: HostJob, root_url: str | None) -> JobSnapshot:
        return cls(name=job.display_name, uri=absolute_uri(root_url, job.url))


class ExecutorPoolSnapshot(_Snapshot):
    """Executor utilization across online nodes."""

    total_executors: int = Field(default=0, alias="totalExecutors")
    busy_executors: int = Field(default=0, alias="busyExecutors")

    @classmethod
    def from_nodes(cls, nodes: list[NodeInfo]) -> ExecutorPoolSnapshot:
        online = [n for n in nodes if n.online]
        return cls(
            total_executors=sum(n.num_executors for n in online),
            busy_executors=sum(n.busy_executors for n in online),
        )


class NotificationEnvelope(_Snapshot):
    """The JSON document POSTed for one delivery attempt."""

    total_executors: int = Field(default=0, alias="totalExecutors")
    busy_executors: int = Field(default=0, alias="busyExecutors")
    timestamp: str = Field(default_factory=lambda: utc_timestamp(), alias="datetime")
    run: RunSnapshot
    job: JobSnapshot

    @classmethod
    def build(
        cls, pool: ExecutorPoolSnapshot, run: RunSnapshot, job: JobSnapshot
    ) -> NotificationEnvelope:
        return cls(
            total_executors=pool.total_executors,
            busy_executors=pool.busy_executors,
            run=run,
            job=job,
        )

    def to_payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
