"""
Cache Store

Persisted key-value state shared by every pipeline run: known contract names,
custom text signatures and token metadata. Runs read it at start and merge
their discoveries back at the end. Merges only ever add or replace entries.
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from ..utils.exceptions import CacheStoreError
from ..utils.logging import get_logger

logger = get_logger("cache")

KNOWN_ADDRESSES = "contractAddresses"
CUSTOM_SIGNATURES = "textSignatures"
TOKEN_NAMES = "tokenNames"
TOKEN_DECIMALS = "tokenDecimals"

CACHE_KEYS = {
    KNOWN_ADDRESSES: dict,
    CUSTOM_SIGNATURES: list,
    TOKEN_NAMES: dict,
    TOKEN_DECIMALS: dict,
}

_locks: Dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    with _locks_guard:
        return _locks.setdefault(str(path), threading.Lock())


def empty_state() -> Dict[str, Any]:
    return {key: factory() for key, factory in CACHE_KEYS.items()}


def merge_state(current: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Additive merge: mappings gain/replace keys, lists gain unseen items."""
    merged = {key: (dict(value) if isinstance(value, dict) else list(value)) for key, value in current.items()}
    for key, value in updates.items():
        if key not in CACHE_KEYS:
            raise CacheStoreError(f"Unknown cache key: {key}")
        if CACHE_KEYS[key] is dict:
            merged.setdefault(key, {}).update(value)
        else:
            existing = merged.setdefault(key, [])
            seen = set(existing)
            for item in value:
                if item not in seen:
                    existing.append(item)
                    seen.add(item)
    return merged


class CacheStore:
    """JSON file backed cache under ``cache_dir``."""

    def __init__(self, cache_dir: str = ".arbitrace_cache", file_name: str = "cache.json"):
        self.path = Path(cache_dir) / file_name
        self._lock = _lock_for(self.path.resolve())

    def _read(self) -> Dict[str, Any]:
        state = empty_state()
        try:
            if not self.path.is_file():
                return state
            with open(self.path, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CacheStoreError(f"Could not read cache: {e}", path=str(self.path))
        if not isinstance(data, dict):
            raise CacheStoreError("Cache file is not a JSON object", path=str(self.path))
        for key, factory in CACHE_KEYS.items():
            if isinstance(data.get(key), factory):
                state[key] = data[key]
        return state

    def _write(self, state: Dict[str, Any]) -> None:
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".cache-", suffix=".json")
            with os.fdopen(fd, "w") as f:
                json.dump(state, f, indent=2, sort_keys=True)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise CacheStoreError(f"Could not write cache: {e}", path=str(self.path))

    def load(self) -> Dict[str, Any]:
        with self._lock:
            return self._read()

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self.load().get(key, default)

    def merge(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``updates`` into the persisted state atomically and return the result."""
        with self._lock:
            merged = merge_state(self._read(), updates)
            self._write(merged)
        logger.debug(f"Cache merged into {self.path}")
        return merged
