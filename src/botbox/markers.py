"""Version markers and staleness comparison.

A marker is a one-line text file inside the managed directory holding the
fingerprint of the bundle that was last synced (`.version`,
`.scripts-version`, `.prompts-version`, `.design-docs-version`).

Public API:
    MarkerStore: Read and write markers for a managed directory
    Staleness: UP_TO_DATE / STALE / MISSING
    compare: Decide staleness from the current hash and the stored marker
"""

import logging
import os
from enum import Enum
from pathlib import Path

from botbox.bundles import Bundle
from botbox.errors import BundleIOError

logger = logging.getLogger(__name__)

__all__ = ["MarkerStore", "Staleness", "compare"]


class Staleness(str, Enum):
    """Sync state of one bundle in a target project."""

    UP_TO_DATE = "up-to-date"
    STALE = "stale"
    MISSING = "missing"


def compare(current_hash: str, stored: str | None) -> Staleness:
    """Compare the current bundle fingerprint with the stored marker.

    Args:
        current_hash: Fingerprint of the bundle as shipped now
        stored: Marker content, or None if no marker exists

    Returns:
        MISSING when never synced, UP_TO_DATE when equal, STALE otherwise
    """
    if stored is None:
        return Staleness.MISSING
    if stored == current_hash:
        return Staleness.UP_TO_DATE
    return Staleness.STALE


class MarkerStore:
    """Read and write bundle markers inside a managed directory."""

    def __init__(self, managed_dir: Path):
        self.managed_dir = managed_dir

    def path_for(self, bundle: Bundle) -> Path:
        return self.managed_dir / bundle.marker_name

    def read(self, bundle: Bundle) -> str | None:
        """Read the stored marker for a bundle.

        Returns:
            The stored hash, or None if the marker does not exist

        Raises:
            BundleIOError: If the marker exists but cannot be read
        """
        path = self.path_for(bundle)
        try:
            return path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise BundleIOError("read marker", path, e) from e

    def write(self, bundle: Bundle, value: str) -> None:
        """Write a marker atomically (temp file + rename).

        Raises:
            BundleIOError: If the marker cannot be written
        """
        path = self.path_for(bundle)
        temp_path = path.parent / f".{path.name}.tmp"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(f"{value}\n", encoding="utf-8")
            os.replace(temp_path, path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise BundleIOError("write marker", path, e) from e

        logger.debug(f"Wrote {bundle.name} marker: {value}")
