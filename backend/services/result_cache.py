"""Content-addressed cache for structured model results.

Keys hash (normalized payload text, target id, schema version). Entries are
checked lazily on read: a schema-version mismatch, an expired TTL, a cleared
validity flag or a payload that no longer validates against the current
result model is dropped and reported as a miss. There is no sweeper.
"""

import hashlib
import logging
import re
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from pydantic import BaseModel, ValidationError

from config import settings
from models.schemas.cache_entry import CacheEntry
from models.schemas.dimension_result import DimensionResult
from models.schemas.guidance import GuidancePlan
from services.rubric import SCHEMA_VERSION

logger = logging.getLogger(__name__)

GUIDANCE_TARGET = "guidance"

_WHITESPACE = re.compile(r"\s+")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_text(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip().lower()


def input_digest(*parts: str) -> str:
    """SHA-256 over the normalized input text (instructions + payload)."""
    normalized = "\n".join(normalize_text(p) for p in parts)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def make_key(digest: str, target_id: str, schema_version: str = SCHEMA_VERSION) -> str:
    return hashlib.sha256(f"{digest}|{target_id}|{schema_version}".encode("utf-8")).hexdigest()


def _result_model(target_id: str) -> type[BaseModel]:
    return GuidancePlan if target_id == GUIDANCE_TARGET else DimensionResult


class ResultCache:
    """Thread-safe in-process cache. Last writer wins on a key."""

    def __init__(
        self,
        ttl_days: int | None = None,
        schema_version: str = SCHEMA_VERSION,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.schema_version = schema_version
        self._ttl = timedelta(days=ttl_days if ttl_days is not None else settings.cache_ttl_days)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._invalidations = 0

    def get(self, digest: str, target_id: str) -> CacheEntry | None:
        key = make_key(digest, target_id, self.schema_version)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            reason = self._stale_reason(entry)
            if reason:
                del self._entries[key]
                self._invalidations += 1
                self._misses += 1
                logger.warning("Cache entry for %s invalidated: %s", target_id, reason)
                return None
            self._hits += 1
            return entry

    def get_result(self, digest: str, target_id: str) -> BaseModel | None:
        """Like get(), but returns the validated result model."""
        entry = self.get(digest, target_id)
        if entry is None:
            return None
        return _result_model(target_id).model_validate(entry.value)

    def put(self, digest: str, target_id: str, result: BaseModel | dict[str, Any]) -> CacheEntry:
        value = result.model_dump(mode="json") if isinstance(result, BaseModel) else dict(result)
        entry = CacheEntry(
            key=make_key(digest, target_id, self.schema_version),
            target_id=target_id,
            schema_version=self.schema_version,
            value=value,
            created_at=self._clock(),
        )
        with self._lock:
            self._entries[entry.key] = entry
        return entry

    def store_entry(self, entry: CacheEntry) -> None:
        """Insert a prebuilt entry as-is (used when restoring or migrating)."""
        with self._lock:
            self._entries[entry.key] = entry

    def invalidate(self, digest: str, target_id: str) -> bool:
        key = make_key(digest, target_id, self.schema_version)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            self._entries[key] = entry.model_copy(update={"valid": False})
            return True

    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "invalidations": self._invalidations,
            }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _stale_reason(self, entry: CacheEntry) -> str:
        if entry.schema_version != self.schema_version:
            return f"schema version {entry.schema_version} != {self.schema_version}"
        if not entry.valid:
            return "marked invalid"
        if self._clock() - entry.created_at > self._ttl:
            return "expired"
        try:
            _result_model(entry.target_id).model_validate(entry.value)
        except ValidationError:
            return "failed shape check"
        return ""
