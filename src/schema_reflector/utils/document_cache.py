from __future__ import annotations

import copy
import logging
import threading
from typing import Any, Callable, Hashable, Optional

from cachetools import LRUCache

from ..schema import Schema

logger = logging.getLogger(__name__)


class ConfigScopedKey:
    """
    Cache key pairing a root type identity with the config object that reflected it.

    Inputs:
        config: Reflector configuration; compared by identity and kept alive by
            the key so its id cannot be reused while the entry is cached.
        identity: Root TypeDescriptor identity.
    Outputs:
        Hashable key; two keys match only for the same config object and type.
    """

    __slots__ = ("config", "identity")

    def __init__(self, config: Any, identity: Hashable) -> None:
        self.config = config
        self.identity = identity

    def __hash__(self) -> int:
        return hash((id(self.config), self.identity))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigScopedKey):
            return NotImplemented
        return self.config is other.config and self.identity == other.identity

    def __repr__(self) -> str:
        return f"ConfigScopedKey({self.identity!r})"


class DocumentCache:
    """
    Thread-safe LRU cache of finished schema documents keyed by root type
    and reflector config.

    Inputs:
        maxsize: Maximum number of documents kept (default 128).
    Outputs:
        DocumentCache instance

    Notes:
        All operations are synchronized with an RLock; a document is built at
        most once per key even when several threads ask for it together.
        Stored and returned documents are deep copies, so callers may edit the
        result without corrupting later hits.

    Example use:
        >>> from schema_reflector import Reflector
        >>> cache = DocumentCache(maxsize=16)
        >>> reflector = Reflector(cache=cache)
        >>> first = reflector.reflect(int)
        >>> len(cache)
        1
    """

    def __init__(self, maxsize: int = 128) -> None:
        self._store: LRUCache = LRUCache(maxsize=max(1, int(maxsize)))
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Optional[Schema]:
        """
        Return a private copy of the cached document for ``key``.

        Inputs:
            key: Root type identity.
        Outputs:
            Schema copy, or None when absent.
        """
        with self._lock:
            document = self._store.get(key)
            if document is None:
                return None
            return copy.deepcopy(document)

    def get_or_build(self, key: Hashable, build: Callable[[], Schema]) -> Schema:
        """
        Return the cached document for ``key``, building and storing it on a miss.

        Inputs:
            key: Root type identity.
            build: Zero-argument callable producing the document.
        Outputs:
            Schema copy owned by the caller.

        Example use:
            >>> cache = DocumentCache()
            >>> cache.get_or_build("k", lambda: Schema(type="string")).type
            'string'
        """
        with self._lock:
            document = self._store.get(key)
            if document is not None:
                self.hits += 1
                return copy.deepcopy(document)
            self.misses += 1
            document = build()
            self._store[key] = copy.deepcopy(document)
            logger.debug("Cached schema document for %r (%d entries)", key, len(self._store))
            return document

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __contains__(self, key: Any) -> bool:
        with self._lock:
            return key in self._store
