"""
Notification target configuration.

Holds the single URI notifications are POSTed to, validates candidates,
and persists accepted values through a pluggable settings backend.
"""

from __future__ import annotations

import logging
import re
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")

# RFC 3986 unreserved + reserved characters, plus well-formed percent escapes.
_URI_CHARS = re.compile(r"^(?:[A-Za-z0-9\-._~:/?#\[\]@!$&'()*+,;=]|%[0-9A-Fa-f]{2})*$")
_HOST_LABEL = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$")


class ValidationErrorKind(str, Enum):
    INVALID_FORMAT = "invalid_format"
    UNSUPPORTED_SCHEME = "unsupported_scheme"
    MISSING_HOST = "missing_host"


class ValidationResult(BaseModel):
    """Outcome of a URI check: ok, or an error kind with a user-facing message."""

    model_config = ConfigDict(frozen=True)

    kind: Optional[ValidationErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.kind is None

    @classmethod
    def success(cls) -> ValidationResult:
        return cls()

    @classmethod
    def error(cls, kind: ValidationErrorKind, message: str) -> ValidationResult:
        return cls(kind=kind, message=message)


def _is_server_host(hostname: str) -> bool:
    """True for an IP literal or a DNS name; False for registry-style names like exa_mple."""
    if ":" in hostname:
        return True
    labels = hostname[:-1].split(".") if hostname.endswith(".") else hostname.split(".")
    return all(_HOST_LABEL.match(label) for label in labels)


def check_uri(candidate: str | None) -> ValidationResult:
    """Validate a notification target. Blank values are always accepted."""
    value = (candidate or "").strip()
    if not value:
        return ValidationResult.success()

    if not _URI_CHARS.match(value):
        bad = next(
            (ch for ch in value if not _URI_CHARS.match(ch) and ch != "%"), "%"
        )
        return ValidationResult.error(
            ValidationErrorKind.INVALID_FORMAT,
            f"Invalid URI format: illegal character {bad!r} in URI",
        )
    try:
        parts = urlsplit(value)
        parts.port  # raises on a malformed port
    except ValueError as exc:
        return ValidationResult.error(
            ValidationErrorKind.INVALID_FORMAT, f"Invalid URI format: {exc}"
        )

    if parts.scheme and parts.scheme.lower() not in ALLOWED_SCHEMES:
        return ValidationResult.error(
            ValidationErrorKind.UNSUPPORTED_SCHEME,
            "Only http:// and https:// URIs supported",
        )
    if not parts.hostname or not _is_server_host(parts.hostname):
        return ValidationResult.error(
            ValidationErrorKind.MISSING_HOST, "URI must contain a host component"
        )
    return ValidationResult.success()


class SettingsBackend(ABC):
    """Durable storage for the target URI."""

    @abstractmethod
    def load(self) -> str | None:
        """Return the persisted URI, or None if nothing was saved."""
        ...

    @abstractmethod
    def save(self, uri: str) -> None:
        """Persist the URI. An empty string clears it."""
        ...


class MemorySettings(SettingsBackend):
    """In-process backend, used when nothing needs to survive a restart."""

    def __init__(self, uri: str | None = None) -> None:
        self.uri = uri

    def load(self) -> str | None:
        return self.uri

    def save(self, uri: str) -> None:
        self.uri = uri


class ConfigurationStore:
    """Single-writer, multi-reader holder of the notification target."""

    def __init__(self, backend: SettingsBackend | None = None) -> None:
        self.backend = backend or MemorySettings()
        self._write_lock = threading.Lock()
        self._uri: str | None = (self.backend.load() or "").strip() or None

    def get(self) -> str | None:
        """Current target, or None when unconfigured."""
        return self._uri

    def check(self, candidate: str | None) -> ValidationResult:
        """Live validation feedback; same rules as :meth:`update`."""
        return check_uri(candidate)

    def update(self, candidate: str | None) -> ValidationResult:
        """Validate, persist and publish a new target."""
        result = check_uri(candidate)
        if not result.ok:
            logger.info("Rejected notification target %r: %s", candidate, result.message)
            return result

        value = (candidate or "").strip()
        with self._write_lock:
            self.backend.save(value)
            self._uri = value or None

        if value:
            logger.info("Notification target set to %s", value)
        else:
            logger.info("Notification target cleared")
        return result
