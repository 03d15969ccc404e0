"""Persist the relay's configuration as small JSON files on local disk."""
from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

PRINTER_KEY = "selectedPrinter"

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class ConfigStore:
    """Key/value store with one ``<key>.json`` file per entry.

    Reads see whatever was last written to disk; writes are serialised by a
    lock and replace the file atomically, so the last write wins.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid config key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Any:
        path = self._path(key)
        if not path.is_file():
            return None
        return json.loads(path.read_text(encoding="utf-8"))["value"]

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        payload = json.dumps({"key": key, "value": value})
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(payload)
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        logger.info("Config %s updated", key)

    def get_printer(self) -> Optional[str]:
        return self.get(PRINTER_KEY) or None

    def set_printer(self, name: str) -> None:
        self.set(PRINTER_KEY, name)
