"""Per-entity lock discipline for ledger and register mutations."""

import logging
import threading
import weakref
from contextlib import contextmanager
from typing import Hashable, Iterable, Iterator

from src.common.utils.name_utils import normalize_name

logger = logging.getLogger(__name__)


def stock_key(product_name: str, variant_name: str) -> tuple[str, str, str]:
    return ("stock", normalize_name(product_name), normalize_name(variant_name))


def person_key(person_name: str) -> tuple[str, str]:
    return ("person", normalize_name(person_name))


class _KeyLock:
    """Re-entrant lock that can be weakly referenced."""

    __slots__ = ("_lock", "__weakref__")

    def __init__(self) -> None:
        self._lock = threading.RLock()

    def acquire(self) -> bool:
        return self._lock.acquire()

    def release(self) -> None:
        self._lock.release()


class KeyedLockManager:
    """
    Hands out one re-entrant lock per key.

    Multi-key acquisitions always happen in sorted key order, so two submissions
    touching overlapping keys serialize instead of deadlocking. A key's lock lives only
    while some thread holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[Hashable, _KeyLock] = weakref.WeakValueDictionary()
        self._registry_lock = threading.Lock()

    def _lock_for(self, key: Hashable) -> _KeyLock:
        with self._registry_lock:
            lock = self._locks.get(key)
            if lock is None:
                lock = _KeyLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, keys: Iterable[Hashable]) -> Iterator[None]:
        ordered = sorted(set(keys), key=repr)
        acquired: list[_KeyLock] = []
        try:
            for key in ordered:
                lock = self._lock_for(key)
                lock.acquire()
                acquired.append(lock)
            logger.debug(f"Holding {len(acquired)} lock(s)")
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()

    def known_keys(self) -> int:
        with self._registry_lock:
            return len(self._locks)
