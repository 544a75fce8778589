# src/lmsync/cache/directory_adapter.py
"""Directory-backed cache adapter (CACHE_BACKEND=directory, default).

Durable store for long-lived processes. Layout under the cache root:

    activities/<fingerprint>.html   one file per "activity:" key
    courses/<id>.json               one file per "course:" key
    <sanitized-key>                 loose files for anything else (cancel.flag)

The layout is kept stable so existing cache directories stay readable.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import Callable

from lmsync.cache.base_cache_adapter import BaseCacheAdapter

logger = logging.getLogger(__name__)

# Known prefix -> (subdirectory, file suffix)
_NAMESPACES: dict[str, tuple[str, str]] = {
    "activity:": ("activities", ".html"),
    "course:": ("courses", ".json"),
}

_UNSAFE_CHARS = re.compile(r"[^a-z0-9\-_.]", re.IGNORECASE)


def sanitize_key(key: str) -> str:
    """Map an arbitrary key onto a safe file name."""
    return _UNSAFE_CHARS.sub("_", key)


class DirectoryCacheAdapter(BaseCacheAdapter):
    """File-per-entry cache adapter rooted at a directory.

    File I/O runs in worker threads via asyncio.to_thread.
    """

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._read, self._entry_path(key))

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, self._entry_path(key), value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._entry_path(key).unlink, missing_ok=True)

    async def has(self, key: str) -> bool:
        return await asyncio.to_thread(self._entry_path(key).is_file)

    async def clear(self, prefix: str | None = None) -> None:
        await asyncio.to_thread(self._clear, prefix)

    async def keys(self, prefix: str | None = None) -> list[str]:
        return await asyncio.to_thread(self._list_keys, prefix)

    # ------------------------------------------------------------------
    # Blocking helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _read(path: Path) -> str | None:
        if not path.is_file():
            return None
        return path.read_text(encoding="utf-8")

    @staticmethod
    def _write(path: Path, value: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        # Write then rename so readers never observe a half-written entry.
        tmp_path = path.with_name(f".{path.name}.tmp")
        tmp_path.write_text(value, encoding="utf-8")
        os.replace(tmp_path, path)

    def _clear(self, prefix: str | None) -> None:
        if not prefix:
            for directory, _ in _NAMESPACES.values():
                self._unlink_files(self._root / directory)
            self._unlink_files(self._root)
            logger.debug("Cleared cache directory %s", self._root)
            return

        namespace = self._namespace_for(prefix)
        if namespace is not None:
            ns_prefix, (directory, suffix) = namespace
            stem_prefix = sanitize_key(prefix[len(ns_prefix):])
            self._unlink_files(
                self._root / directory,
                lambda p: p.name.endswith(suffix) and p.stem.startswith(stem_prefix),
            )
            return

        name_prefix = sanitize_key(prefix)
        self._unlink_files(self._root, lambda p: p.name.startswith(name_prefix))

    def _list_keys(self, prefix: str | None) -> list[str]:
        found: list[str] = []
        for ns_prefix, (directory, suffix) in _NAMESPACES.items():
            ns_dir = self._root / directory
            if not ns_dir.is_dir():
                continue
            for path in sorted(ns_dir.glob(f"*{suffix}")):
                found.append(f"{ns_prefix}{path.stem}")
        for path in sorted(self._root.iterdir()):
            if path.is_file() and not path.name.startswith("."):
                found.append(path.name)
        if prefix:
            found = [k for k in found if k.startswith(prefix)]
        return found

    def _entry_path(self, key: str) -> Path:
        """Return file path for a cache key."""
        namespace = self._namespace_for(key)
        if namespace is not None:
            ns_prefix, (directory, suffix) = namespace
            return self._root / directory / f"{sanitize_key(key[len(ns_prefix):])}{suffix}"
        return self._root / sanitize_key(key)

    @staticmethod
    def _namespace_for(key: str) -> tuple[str, tuple[str, str]] | None:
        for ns_prefix, layout in _NAMESPACES.items():
            if key.startswith(ns_prefix):
                return ns_prefix, layout
        return None

    @staticmethod
    def _unlink_files(
        directory: Path, predicate: Callable[[Path], bool] | None = None
    ) -> None:
        if not directory.is_dir():
            return
        for path in directory.iterdir():
            if path.is_file() and (predicate is None or predicate(path)):
                path.unlink()
