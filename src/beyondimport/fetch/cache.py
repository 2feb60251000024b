"""Keyed raw-document cache with an explicit per-kind TTL check on read."""

from __future__ import annotations

from collections.abc import Callable
import logging
import time

from beyondimport.config import ImportSettings
from beyondimport.models import Channel, ContentKind, RawDocument, is_empty

logger = logging.getLogger(__name__)

CacheKey = tuple[str, Channel]


class DocumentCache:
    """Map ``(content_id, channel)`` to ``(document, expires_at)``; expired entries are evicted lazily."""

    def __init__(
        self,
        ttl_for_kind: Callable[[ContentKind], float],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_for_kind = ttl_for_kind
        self._clock = clock
        self._entries: dict[CacheKey, tuple[RawDocument, float]] = {}

    @classmethod
    def from_settings(cls, settings: ImportSettings, clock: Callable[[], float] = time.monotonic) -> "DocumentCache":
        return cls(ttl_for_kind=settings.ttl_for_kind, clock=clock)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, content_id: str, channel: Channel) -> RawDocument | None:
        key = (content_id, channel)
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Cache miss: id=%s channel=%s", content_id, channel.value)
            return None
        document, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            logger.debug("Cache expired: id=%s channel=%s", content_id, channel.value)
            return None
        logger.debug("Cache hit: id=%s channel=%s", content_id, channel.value)
        return document

    def put(self, document: RawDocument) -> bool:
        """Store a document; empty payloads and non-positive TTLs are not cached."""

        if is_empty(document.payload):
            return False
        ttl = self._ttl_for_kind(document.content_kind)
        if ttl <= 0:
            return False
        self._entries[(document.content_id, document.channel)] = (document, self._clock() + ttl)
        return True

    def invalidate(self, content_id: str, channel: Channel | None = None) -> int:
        keys = [key for key in self._entries if key[0] == content_id and (channel is None or key[1] is channel)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def purge_expired(self) -> int:
        now = self._clock()
        expired = [key for key, (_document, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)
