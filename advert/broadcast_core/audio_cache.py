"""
Decoded audio cache for Sound adverts.

Maps resolved absolute file paths to decoded audio handles so each file is
decoded once per configuration. The cache is cleared on every config reload
and on shutdown.

Thread safety:
- get_or_decode() decodes a path at most once; concurrent callers for the
  same path wait for the first decode and reuse its result.
- A failed decode is not cached, so the next dispatch tries again.
- clear() starts a new generation. A decode that was in flight when the cache
  was cleared returns its handle to its caller but is not stored.
"""

import itertools
import logging
import threading
from typing import Callable, Dict, Generic, TypeVar

logger = logging.getLogger(__name__)

CHANNEL_PREFIX = "advert"

T = TypeVar("T")


class AudioCache(Generic[T]):
    """Thread-safe get-or-decode cache keyed by resolved path."""

    def __init__(self):
        self._lock = threading.Lock()
        self._sources: Dict[str, T] = {}
        self._decode_locks: Dict[str, threading.Lock] = {}
        self._generation = 0

    def get_or_decode(self, path: str, decode: Callable[[str], T]) -> T:
        """
        Return the cached handle for a path, decoding it on first use.

        Args:
            path: Resolved absolute path
            decode: Decoder called with the path on a cache miss

        Returns:
            Decoded audio handle

        Raises:
            Exception: Whatever decode raises; nothing is cached in that case
        """
        with self._lock:
            source = self._sources.get(path)
            if source is not None:
                return source
            decode_lock = self._decode_locks.setdefault(path, threading.Lock())
            generation = self._generation

        with decode_lock:
            with self._lock:
                source = self._sources.get(path)
                if source is not None:
                    return source

            source = decode(path)
            logger.debug(f"[AUDIO] Decoded {path}")

            with self._lock:
                if generation == self._generation:
                    self._sources[path] = source
                    if self._decode_locks.get(path) is decode_lock:
                        del self._decode_locks[path]
                else:
                    logger.debug(f"[AUDIO] Cache cleared during decode, not caching {path}")
            return source

    def clear(self) -> None:
        """Drop every cached handle."""
        with self._lock:
            count = len(self._sources)
            self._sources.clear()
            self._decode_locks.clear()
            self._generation += 1
        if count:
            logger.debug(f"[AUDIO] Cleared {count} decoded sources")

    def __contains__(self, path: object) -> bool:
        with self._lock:
            return path in self._sources

    def __len__(self) -> int:
        with self._lock:
            return len(self._sources)


class ChannelCounter:
    """Hands out unique playback channel ids: advert.1, advert.2, ..."""

    def __init__(self, prefix: str = CHANNEL_PREFIX):
        self.prefix = prefix
        self._counter = itertools.count(1)
        self._lock = threading.Lock()

    def next_channel_id(self) -> str:
        with self._lock:
            value = next(self._counter)
        return f"{self.prefix}.{value}"
