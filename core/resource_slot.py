"""
Resource Slot
=============

An optional, exclusively owned resource behind a mutex.

The slot is always either empty or holds one live resource. Every access goes
through a scoped helper so the lock is released on early return or error:

- acquire(factory)  - create the resource if the slot is empty
- release(closer)   - take the resource out and close it
- borrow(timeout)   - scoped access to the current resource (may be None)
"""

import logging
import threading
from contextlib import contextmanager
from typing import Callable, Generic, Iterator, Optional, Tuple, TypeVar

from .errors import LockContentionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ResourceSlot(Generic[T]):
    """Lock-guarded ``Optional[T]`` with take/replace semantics"""

    def __init__(self, name: str):
        self.name = name
        self._lock = threading.Lock()
        self._resource: Optional[T] = None

    def is_present(self) -> bool:
        """Unlocked snapshot, good enough for status reporting"""
        return self._resource is not None

    def acquire(self, factory: Callable[[], T]) -> Tuple[T, bool]:
        """
        Fill the slot if it is empty.

        Args:
            factory: Creates the resource; exceptions propagate and the slot
                stays empty

        Returns:
            (resource, created) - created is False if the slot was already filled
        """
        with self._lock:
            if self._resource is not None:
                return self._resource, False
            resource = factory()
            self._resource = resource
            logger.debug(f"[{self.name}] resource acquired")
            return resource, True

    def release(self, closer: Optional[Callable[[T], None]] = None) -> bool:
        """
        Take the resource out of the slot and close it.

        Closing errors are logged; the slot ends empty either way.

        Returns:
            True if a resource was actually held
        """
        with self._lock:
            resource = self._resource
            self._resource = None
            if resource is None:
                return False
            if closer is not None:
                try:
                    closer(resource)
                except Exception as e:
                    logger.warning(f"[{self.name}] error while closing resource: {e}")
            logger.debug(f"[{self.name}] resource released")
            return True

    @contextmanager
    def borrow(self, timeout: Optional[float] = None) -> Iterator[Optional[T]]:
        """
        Scoped access to the current resource.

        Args:
            timeout: Seconds to wait for the lock (None = block)

        Yields:
            The resource, or None if the slot is empty

        Raises:
            LockContentionError: If the lock is not acquired in time
        """
        acquired = self._lock.acquire(timeout=-1 if timeout is None else timeout)
        if not acquired:
            raise LockContentionError(f"{self.name} lock busy")
        try:
            yield self._resource
        finally:
            self._lock.release()
