"""
SLA Configuration Loading
=========================

Loads the resolution-hours table from YAML and hot-reloads it with watchdog.

File format:

    resolution_hours:
      CRITICAL: 4
      HIGH: 8
      MEDIUM: 24
      LOW: 72
"""

import threading
from pathlib import Path
from typing import Optional

import yaml
from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from zordon_hub.core import ConfigurationException
from zordon_hub.shared.infrastructure.logging import get_logger
from zordon_hub.sla.domain import SLAPolicy

logger = get_logger(__name__)


class PolicyFileHandler(FileSystemEventHandler):
    """Watchdog event handler for SLA config file changes."""

    def __init__(self, manager: "SLAConfigManager", config_path: Path):
        self.manager = manager
        self.config_path = config_path
        super().__init__()

    def on_modified(self, event):
        if event.is_directory:
            return
        if Path(event.src_path).resolve() == self.config_path.resolve():
            logger.info("SLA config file changed", extra={"path": str(event.src_path)})
            self.manager.reload()


class SLAConfigManager:
    """
    Thread-safe holder of the current SLAPolicy.

    Reloads only change due dates of tickets created afterwards; existing
    tickets keep the due date computed at creation.
    """

    def __init__(self):
        self._policy: SLAPolicy = SLAPolicy()
        self._lock = threading.Lock()
        self._path: Optional[Path] = None
        self._observer = None

    def load(self, path: Path) -> SLAPolicy:
        """
        Initial configuration load.

        Raises:
            ConfigurationException: the file exists but cannot be parsed
        """
        self._path = Path(path)
        try:
            self._policy = self._load_from_file(self._path)
        except (OSError, TypeError, ValueError, yaml.YAMLError) as e:
            raise ConfigurationException(
                f"Invalid SLA config file {self._path}", {"error": str(e)}
            )
        return self._policy

    @staticmethod
    def _load_from_file(path: Path) -> SLAPolicy:
        if not path.exists():
            logger.warning("SLA config file not found, using defaults", extra={"path": str(path)})
            return SLAPolicy()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        return SLAPolicy(**data)

    def reload(self) -> bool:
        """Reload configuration from file; keeps the old policy on failure."""
        if self._path is None:
            return False

        try:
            new_policy = self._load_from_file(self._path)
        except (OSError, TypeError, ValueError, yaml.YAMLError) as e:
            logger.error("Failed to reload SLA config", extra={"error": str(e)})
            return False

        with self._lock:
            self._policy = new_policy
        logger.info("SLA configuration reloaded", extra={"hours": new_policy.resolution_hours})
        return True

    def start_watching(self) -> None:
        """Start watching the config file; no-op when the file is absent."""
        if self._path is None:
            raise RuntimeError("Config not loaded. Call load() first.")

        if not self._path.exists():
            logger.info("SLA config file absent, skipping watch", extra={"path": str(self._path)})
            return

        try:
            self._observer = Observer()
            self._observer.schedule(
                PolicyFileHandler(self, self._path),
                str(self._path.resolve().parent),
                recursive=False
            )
            self._observer.start()
            logger.info("Watching SLA config file", extra={"path": str(self._path)})
        except OSError as e:
            logger.warning("File watching not available, using static config", extra={"error": str(e)})
            self._observer = None

    def stop_watching(self) -> None:
        if self._observer is not None:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

    @property
    def policy(self) -> SLAPolicy:
        with self._lock:
            return self._policy
