"""
Host-side interfaces the notifier consumes.

The host owns runs, jobs and compute nodes. The notifier only needs a
narrow view of them: display data for runs and jobs at event time, and
executor counts plus the root URL at delivery time.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Protocol

from pydantic import BaseModel


class NodeInfo(BaseModel):
    """Executor capacity of one compute node."""

    name: str = ""
    num_executors: int = 0
    busy_executors: int = 0
    online: bool = True


class HostJob(Protocol):
    display_name: str
    url: str


class HostRun(Protocol):
    display_name: str
    build_status_summary: str
    duration: int  # milliseconds, 0 while running
    url: str
    parent: HostJob


class HostSnapshotProvider(ABC):
    """Read-only queries against the host's current state."""

    @abstractmethod
    def list_online_nodes(self) -> list[NodeInfo]:
        ...

    @abstractmethod
    def root_url(self) -> str | None:
        ...


def absolute_uri(root_url: str | None, relative: str) -> str | None:
    """Join a host-relative URL onto the root URL; None without a root."""
    if root_url is None:
        return None
    return root_url + relative


@dataclass
class JobRecord:
    display_name: str
    url: str = ""


@dataclass
class RunRecord:
    display_name: str
    parent: JobRecord
    build_status_summary: str = ""
    duration: int = 0
    url: str = ""


class StaticHost(HostSnapshotProvider):
    """Host provider backed by a mutable in-memory node list."""

    def __init__(
        self,
        nodes: list[NodeInfo] | None = None,
        root_url: Optional[str] = None,
    ) -> None:
        self._lock = threading.Lock()
        self._nodes: list[NodeInfo] = list(nodes or [])
        self._root_url = root_url

    def set_nodes(self, nodes: list[NodeInfo]) -> None:
        with self._lock:
            self._nodes = list(nodes)

    def list_online_nodes(self) -> list[NodeInfo]:
        with self._lock:
            return [n for n in self._nodes if n.online]

    def root_url(self) -> str | None:
        return self._root_url
