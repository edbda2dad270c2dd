"""Filesystem blob cache rooted at the project ``.cache`` directory."""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import logging
import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)

CACHE_DIR_NAME = ".cache"
PROJECT_ROOT_MARKER = "pyproject.toml"


def _default_clock() -> datetime:
    return datetime.now(timezone.utc)


def find_project_root(start: Path | None = None, *, marker: str = PROJECT_ROOT_MARKER) -> Path | None:
    """Walk upward from ``start`` and return the first directory holding ``marker``."""

    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / marker).is_file():
            return candidate
    return None


def cache_directory(start: Path | None = None) -> Path:
    """Return the cache root, creating it when missing.

    ``<project root>/.cache`` when a project root is found, otherwise a
    ``.cache`` directory relative to the working directory.
    """

    root = find_project_root(start)
    directory = root / CACHE_DIR_NAME if root is not None else Path(CACHE_DIR_NAME)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


class FileCache:
    """Durable key to bytes store.

    Each key maps to one file named after the SHA-256 of the key. Writes go
    through a temporary file and :func:`os.replace`, so concurrent readers
    see either the old or the new blob and the last writer wins.
    """

    def __init__(
        self,
        root: Path | str | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._root = Path(root) if root is not None else cache_directory()
        self._root.mkdir(parents=True, exist_ok=True)
        self._clock = clock or _default_clock

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._root / f"{digest}.json"

    def set(self, key: str, data: bytes, ttl: timedelta | None = None) -> None:
        expires_at = None
        if ttl is not None:
            if ttl <= timedelta(0):
                raise ValueError("ttl must be positive")
            expires_at = (self._clock() + ttl).isoformat()
        envelope = {
            "key": key,
            "expires_at": expires_at,
            "data": base64.b64encode(data).decode("ascii"),
        }
        target = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=".tmp-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(envelope, handle)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            envelope = json.loads(path.read_text(encoding="utf-8"))
            expires_at = envelope.get("expires_at")
            expired = bool(expires_at) and datetime.fromisoformat(expires_at) <= self._clock()
            data = None if expired else base64.b64decode(envelope["data"], validate=True)
        except FileNotFoundError:
            return None
        except (OSError, ValueError, KeyError, TypeError, AttributeError, binascii.Error):
            logger.warning("cache.file.corrupt", extra={"path": str(path)})
            return None

        if expired:
            path.unlink(missing_ok=True)
            return None
        return data

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def delete(self, key: str) -> bool:
        path = self._path(key)
        if not path.exists():
            return False
        path.unlink(missing_ok=True)
        return True


__all__ = ["CACHE_DIR_NAME", "FileCache", "cache_directory", "find_project_root"]
