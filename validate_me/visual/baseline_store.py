"""Baseline store — filename-keyed directory of accepted reference screenshots."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from validate_me.visual.errors import NotFoundError, StorageError

logger = logging.getLogger(__name__)


class BaselineStore:
    """Owns the on-disk baseline images and the diff artifact directory."""

    def __init__(self, baseline_dir: Path, diff_dir: Path):
        self.baseline_dir = Path(baseline_dir)
        self.diff_dir = Path(diff_dir)

    def ensure_ready(self) -> None:
        """Create the baseline and diff directories if they are missing."""
        for directory in (self.baseline_dir, self.diff_dir):
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise StorageError(f"Cannot create storage directory {directory}: {e}") from e
        logger.debug("Baseline store ready (baselines=%s, diffs=%s)",
                     self.baseline_dir, self.diff_dir)

    def path_for(self, filename: str) -> Path:
        return self.baseline_dir / filename

    def has_baseline(self, filename: str) -> bool:
        try:
            return self.path_for(filename).is_file()
        except OSError as e:
            raise StorageError(f"Cannot check baseline {filename}: {e}") from e

    def adopt(self, captured_path: str | Path, filename: str) -> Path:
        """Copy a capture into the store, replacing any existing baseline."""
        source = Path(captured_path)
        if not source.is_file():
            raise NotFoundError(f"Capture not found: {source}")
        dest = self.path_for(filename)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, dest)
        except OSError as e:
            raise StorageError(f"Cannot write baseline {dest}: {e}") from e
        logger.debug("Stored baseline %s from %s", filename, source)
        return dest

    def remove(self, filename: str) -> bool:
        """Delete a baseline. Returns False if there was nothing to delete."""
        path = self.path_for(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Baseline %s does not exist, nothing to delete", filename)
            return False
        except OSError as e:
            raise StorageError(f"Cannot delete baseline {path}: {e}") from e
        logger.info("Deleted baseline: %s", filename)
        return True

    def list_all(self) -> list[str]:
        """Return the filenames of all PNG baselines currently stored."""
        if not self.baseline_dir.is_dir():
            return []
        return sorted(
            p.name for p in self.baseline_dir.iterdir()
            if p.is_file() and p.suffix.lower() == ".png"
        )
