"""JSON file storage shared by the persisted smartreport artifacts.

Writes go to a sibling temporary file first and are moved into place with
``os.replace``, so a reader never observes a half-written snapshot.
"""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class MemoryStore:
    """JSON-backed storage for a single snapshot file."""

    def __init__(self, file_path: Path) -> None:
        """Initialize the store.

        Args:
            file_path: Location of the JSON snapshot.
        """
        self._file_path = file_path

    def save(self, data: dict[str, Any]) -> None:
        """Atomically replace the snapshot with *data*.

        Raises:
            OSError: If the snapshot could not be written. The previous
                snapshot, if any, is left untouched.
        """
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._file_path.with_name(f".{self._file_path.name}.tmp")

        try:
            temp_path.write_text(
                json.dumps(data, indent=2, ensure_ascii=False),
                encoding="utf-8",
            )
            os.replace(temp_path, self._file_path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

        logger.info("Saved snapshot to %s", self._file_path)

    def load(self) -> dict[str, Any] | None:
        """Load the snapshot.

        Returns:
            The stored mapping, or ``None`` if the file is missing, unreadable,
            or does not contain a JSON object.
        """
        if not self._file_path.exists():
            logger.debug("No snapshot found at %s", self._file_path)
            return None

        try:
            data = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.warning("Failed to load snapshot from %s: %s", self._file_path, exc)
            return None

        if not isinstance(data, dict):
            logger.warning("Ignoring snapshot at %s: expected a JSON object", self._file_path)
            return None

        logger.debug("Loaded snapshot from %s", self._file_path)
        return data

    def clear(self) -> None:
        """Delete the snapshot file."""
        if self._file_path.exists():
            self._file_path.unlink()
            logger.info("Cleared snapshot at %s", self._file_path)

    @property
    def file_path(self) -> Path:
        """Path to the JSON snapshot."""
        return self._file_path
