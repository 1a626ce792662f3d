"""Cleanup ledger: temp workspaces registered by jobs, removed once by the coordinator."""

from __future__ import annotations

import logging
import shutil
import threading
from pathlib import Path

logger = logging.getLogger(__name__)


class CleanupLedger:
    """Mutex-guarded, append-only list of temp workspace paths.

    Job runners call ``register()`` as soon as a workspace exists. The
    coordinator calls ``cleanup()`` once, after every job has returned;
    entries are handed out by ``drain()`` exactly once.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._paths: list[Path] = []
        self._drained = False

    def register(self, path: Path) -> None:
        with self._lock:
            if self._drained:
                raise RuntimeError(f"Ledger already drained, cannot register {path}")
            self._paths.append(Path(path))
        logger.debug(f"Registered temp workspace {path}")

    def pending(self) -> list[Path]:
        with self._lock:
            return list(self._paths)

    def drain(self) -> list[Path]:
        with self._lock:
            paths, self._paths = self._paths, []
            self._drained = True
        return paths

    def cleanup(self) -> list[Path]:
        """Remove every registered workspace. Returns the paths actually removed."""
        removed = []
        for path in self.drain():
            logger.info(f"Cleaning up temporary directory: {path}")
            try:
                shutil.rmtree(path)
            except OSError as e:
                logger.warning(f"Failed to remove temporary directory {path}: {e}")
                continue
            removed.append(path)
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)
