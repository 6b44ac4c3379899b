"""
RunNotifier - turns run lifecycle events into delayed HTTP notifications.

Snapshots of the run and job are taken synchronously in the host's event
callback. Delivery happens later on the scheduler: the target URI and the
executor pool are read fresh, the envelope is POSTed, and any failure is
logged and discarded.
"""

from __future__ import annotations

import asyncio
import json
import logging
from enum import Enum
from functools import partial

import httpx

from runnotifier.notifications.config import ConfigurationStore
from runnotifier.notifications.events import (
    ExecutorPoolSnapshot,
    JobSnapshot,
    LifecyclePhase,
    NotificationEnvelope,
    RunSnapshot,
)
from runnotifier.notifications.host import (
    HostJob,
    HostRun,
    HostSnapshotProvider,
    NodeInfo,
)
from runnotifier.notifications.scheduler import DeliveryScheduler

logger = logging.getLogger(__name__)

# Seconds between the event and delivery. After completion the host may
# still count the run's executor as busy for a moment.
PHASE_DELAYS: dict[LifecyclePhase, float] = {
    LifecyclePhase.STARTED: 0.0,
    LifecyclePhase.COMPLETED: 1.0,
    LifecyclePhase.FINALIZED: 1.0,
}

DELIVERY_TIMEOUT = 5.0
CONTENT_TYPE = "application/json; charset=utf-8"


class DeliveryErrorKind(str, Enum):
    SERIALIZATION = "serialization_failure"
    CONNECTION = "connection_failure"
    PROTOCOL = "protocol_failure"
    TIMEOUT = "timeout"


class DeliveryError(Exception):
    """A notification could not be delivered."""

    def __init__(self, kind: DeliveryErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.args[0]}"


class RunNotifier:
    """Lifecycle listener that POSTs run status to the configured target."""

    def __init__(
        self,
        store: ConfigurationStore,
        host: HostSnapshotProvider,
        *,
        scheduler: DeliveryScheduler | None = None,
        timeout: float = DELIVERY_TIMEOUT,
    ) -> None:
        self.store = store
        self.host = host
        self.scheduler = scheduler or DeliveryScheduler()
        self.timeout = timeout

    # -- host entry points ---------------------------------------------------

    def on_run_started(self, run: HostRun, job: HostJob | None = None) -> bool:
        return self.notify(LifecyclePhase.STARTED, run, job)

    def on_run_completed(self, run: HostRun, job: HostJob | None = None) -> bool:
        return self.notify(LifecyclePhase.COMPLETED, run, job)

    def on_run_finalized(self, run: HostRun) -> bool:
        return self.notify(LifecyclePhase.FINALIZED, run)

    def notify(
        self, phase: LifecyclePhase, run: HostRun, job: HostJob | None = None
    ) -> bool:
        """Capture snapshots now and schedule one delivery attempt."""
        try:
            root_url = self.host.root_url()
            run_snapshot = RunSnapshot.capture(phase, run, root_url)
            job_snapshot = JobSnapshot.capture(job or run.parent, root_url)
        except Exception:
            logger.exception("Unable to capture %s event", phase.value)
            return False

        return self.scheduler.submit(
            PHASE_DELAYS[phase],
            partial(self.deliver, run_snapshot, job_snapshot),
            label=f"{phase.value} notification for {run_snapshot.name}",
        )

    def close(self, timeout: float | None = None) -> None:
        """Wait for in-flight deliveries and stop the scheduler."""
        self.scheduler.shutdown(wait=True, timeout=timeout)

    # -- delivery ------------------------------------------------------------

    async def deliver(self, run: RunSnapshot, job: JobSnapshot) -> None:
        """Build the envelope and send it. Never raises."""
        uri = self.store.get()
        if not uri:
            logger.debug("No notification target configured, skipping %s", run.name)
            return

        try:
            # The host query may block; keep it off the delivery loop.
            nodes = await asyncio.to_thread(self.host.list_online_nodes)
            body = self._encode(nodes, run, job)
            await self._post(uri, body)
        except DeliveryError as exc:
            logger.warning(
                "Unable to send %s notification for %s: %s",
                run.status.value,
                run.name,
                exc,
            )
        except Exception:
            logger.exception(
                "Unexpected error sending %s notification for %s",
                run.status.value,
                run.name,
            )
        else:
            logger.debug("Sent %s notification for %s to %s", run.status.value, run.name, uri)

    def _encode(
        self, nodes: list[NodeInfo], run: RunSnapshot, job: JobSnapshot
    ) -> bytes:
        pool = ExecutorPoolSnapshot.from_nodes(nodes)
        envelope = NotificationEnvelope.build(pool, run, job)
        try:
            return json.dumps(envelope.to_payload(), ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise DeliveryError(DeliveryErrorKind.SERIALIZATION, str(exc)) from exc

    async def _post(self, uri: str, body: bytes) -> None:
        client = httpx.AsyncClient(timeout=self.timeout)
        try:
            resp = await client.post(
                uri, content=body, headers={"Content-Type": CONTENT_TYPE}
            )
            resp.raise_for_status()
        except httpx.TimeoutException as exc:
            raise DeliveryError(DeliveryErrorKind.TIMEOUT, str(exc) or "timed out") from exc
        except (httpx.HTTPStatusError, httpx.ProtocolError, httpx.UnsupportedProtocol) as exc:
            raise DeliveryError(DeliveryErrorKind.PROTOCOL, str(exc)) from exc
        except httpx.HTTPError as exc:
            raise DeliveryError(DeliveryErrorKind.CONNECTION, str(exc)) from exc
        finally:
            await client.aclose()
