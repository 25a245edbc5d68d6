"""JSON file cache with per-kind TTLs.

Entries live at ``<base_dir>/<kind>/<sha1 of key>.json`` as
``{"stored_at": <epoch seconds>, "value": ...}``. Any read or write problem is
logged and treated as a miss; the cache never affects results.
"""

import hashlib
import json
import logging
import os
import shutil
import threading
import time


logger = logging.getLogger(__name__)

DEFAULT_TTL = {
    "default": 3600,
    "repository": 7200,
    "search": 1800,
    "skills": 86400,
    "trending": 3600,
}


class CacheManager:
    def __init__(self, base_dir="cache", ttl=None, enabled=True, clock=time.time):
        self.base_dir = base_dir
        self.ttl = dict(DEFAULT_TTL)
        self.ttl.update(ttl or {})
        self.enabled = enabled
        self._clock = clock
        self._lock = threading.Lock()
        self._counts = {"hits": 0, "misses": 0, "sets": 0, "deletes": 0}

    @classmethod
    def from_config(cls, config):
        cache_config = config.get("cache", {})
        return cls(
            base_dir=cache_config.get("dir", "cache"),
            ttl=cache_config.get("ttl"),
            enabled=bool(cache_config.get("enabled", True)),
        )

    def ttl_for(self, kind):
        return self.ttl.get(kind, self.ttl["default"])

    def get(self, kind, key_parts):
        if not self.enabled:
            return None
        path = self._path(kind, key_parts)
        if not os.path.exists(path):
            self._count("misses")
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                entry = json.load(f)
            stored_at = float(entry["stored_at"])
            value = entry["value"]
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("Unreadable cache entry %s: %s", path, exc)
            self._count("misses")
            return None
        if self._clock() - stored_at > self.ttl_for(kind):
            self._count("misses")
            return None
        self._count("hits")
        return value

    def set(self, kind, key_parts, value):
        if not self.enabled:
            return False
        path = self._path(kind, key_parts)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump({"stored_at": self._clock(), "value": value}, f, ensure_ascii=True)
        except (OSError, TypeError, ValueError) as exc:
            logger.warning("Could not write cache entry %s: %s", path, exc)
            return False
        self._count("sets")
        return True

    def invalidate(self, kind, key_parts):
        path = self._path(kind, key_parts)
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.warning("Could not delete cache entry %s: %s", path, exc)
            return False
        self._count("deletes")
        return True

    def clear(self, kind=None):
        target = os.path.join(self.base_dir, kind) if kind else self.base_dir
        if not os.path.isdir(target):
            return 0
        removed = sum(len(files) for _, _, files in os.walk(target))
        try:
            shutil.rmtree(target)
        except OSError as exc:
            logger.warning("Could not clear cache %s: %s", target, exc)
            return 0
        self._count("deletes", removed)
        return removed

    def stats(self):
        with self._lock:
            counts = dict(self._counts)
        lookups = counts["hits"] + counts["misses"]
        counts["hit_rate"] = round(counts["hits"] / lookups, 4) if lookups else 0.0
        counts["enabled"] = self.enabled
        counts["dir"] = self.base_dir
        counts["entries"] = self._count_entries()
        return counts

    def _count_entries(self):
        if not os.path.isdir(self.base_dir):
            return 0
        return sum(
            1 for _, _, files in os.walk(self.base_dir) for name in files if name.endswith(".json")
        )

    def _count(self, name, amount=1):
        with self._lock:
            self._counts[name] += amount

    def _path(self, kind, key_parts):
        raw = json.dumps(key_parts, sort_keys=True, default=str, ensure_ascii=True)
        digest = hashlib.sha1(raw.encode("utf-8")).hexdigest()
        return os.path.join(self.base_dir, kind, f"{digest}.json")
