"""Durable key/value storage for the client cache, one JSON file per key."""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")


class LocalStorage:
    """Plays the role of a browser's localStorage for the Python client.

    Reads never raise: a missing, unreadable or corrupt entry comes back as
    ``None`` and is overwritten by the next successful write.
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir.expanduser()

    def _path(self, key: str) -> Path:
        return self._base_dir / f"{_UNSAFE.sub('_', key)}.json"

    def get_json(self, key: str) -> Any | None:
        path = self._path(key)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError):
            logger.warning("Discarding unreadable cache entry %s", key)
            return None

    def set_json(self, key: str, value: Any) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        content = json.dumps(value, separators=(",", ":"))

        fd = os.open(tmp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
