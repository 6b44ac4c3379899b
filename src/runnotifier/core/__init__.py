"""
Core configuration for runnotifier.

Provides:
- Path constants (RUNNOTIFIER_HOME, RUNNOTIFIER_CONFIG_FILE)
- Configuration models (RunNotifierConfig, DeliveryConfig)
- Config loading/saving functions and a YAML-backed settings backend
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from runnotifier.notifications.config import SettingsBackend

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

RUNNOTIFIER_HOME: Path = Path.home() / ".runnotifier"
RUNNOTIFIER_CONFIG_FILE: Path = RUNNOTIFIER_HOME / "config.yaml"


# ---------------------------------------------------------------------------
# Configuration models
# ---------------------------------------------------------------------------


class DeliveryConfig(BaseModel):
    """Sizing of the background delivery scheduler."""

    max_pending: int = 100
    workers: int = 4


class RunNotifierConfig(BaseModel):
    """Main configuration for runnotifier."""

    uri: str = ""
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)


# ---------------------------------------------------------------------------
# Config loading/saving
# ---------------------------------------------------------------------------


def load_config(path: Path | None = None) -> RunNotifierConfig:
    """Load configuration from YAML file, or return defaults."""
    path = path or RUNNOTIFIER_CONFIG_FILE
    if path.exists():
        try:
            data = yaml.safe_load(path.read_text()) or {}
            return RunNotifierConfig(**data)
        except (OSError, yaml.YAMLError, TypeError, ValidationError):
            logger.warning("Ignoring unreadable config file %s", path, exc_info=True)
    return RunNotifierConfig()


def save_config(config: RunNotifierConfig, path: Path | None = None) -> None:
    """Save configuration to YAML file, replacing it atomically."""
    path = path or RUNNOTIFIER_CONFIG_FILE
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "w") as fh:
            yaml.dump(config.model_dump(), fh, default_flow_style=False)
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


class YamlSettings(SettingsBackend):
    """Persists the notification target inside the YAML config file."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path

    def load(self) -> str | None:
        return load_config(self.path).uri or None

    def save(self, uri: str) -> None:
        config = load_config(self.path)
        config.uri = uri
        save_config(config, self.path)


__all__ = [
    "RUNNOTIFIER_HOME",
    "RUNNOTIFIER_CONFIG_FILE",
    "DeliveryConfig",
    "RunNotifierConfig",
    "YamlSettings",
    "load_config",
    "save_config",
]
