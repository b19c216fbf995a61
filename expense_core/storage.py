"""Persistence adapter for the expense manager collections."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .exceptions import PersistenceError

logger = logging.getLogger(__name__)


class JSONStorage:
    """File-based JSON storage, one file per logical key, with crash-safe writes.

    The adapter has no domain knowledge: it round-trips lists of JSON objects.
    """

    def __init__(self, base_path: Path) -> None:
        self._base_path = Path(base_path)
        self._base_path.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self._base_path / f"{key}.json"

    def load(self, key: str) -> Optional[List[Dict[str, Any]]]:
        """Return the stored records for ``key``, or ``None`` if nothing was ever saved."""
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise PersistenceError(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            raise PersistenceError(f"Unable to read from {path}") from exc

        if not isinstance(payload, list):
            raise PersistenceError(f"Expected list payload in {path}")
        return payload

    def save(self, key: str, records: Iterable[Dict[str, Any]]) -> None:
        path = self.path_for(key)
        temp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with temp_path.open("w", encoding="utf-8") as handle:
                json.dump(list(records), handle, indent=2, ensure_ascii=False)
                handle.flush()
            # Atomic on POSIX; a crash leaves either the old or the new file.
            temp_path.replace(path)
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Unable to write to {path}") from exc
        logger.debug("Saved %s to %s", key, path)

    @property
    def base_path(self) -> Path:
        return self._base_path
