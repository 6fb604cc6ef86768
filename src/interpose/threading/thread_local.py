"""
Some threading related utilities.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Dict, Hashable, Iterator, Optional, TypeVar, Generic

T = TypeVar("T")

class ThreadLocal(Generic[T]):
    """
    A thread local value holder
    """
    # constructor

    def __init__(self, default_factory: Optional[Callable[[], T]] = None):
        self.local = threading.local()
        self.factory = default_factory

    # public

    def get(self) -> Optional[T]:
        if not hasattr(self.local, "value"):
            if self.factory is not None:
                self.local.value = self.factory()
            else:
                return None

        return self.local.value

class CallDepth:
    """
    Counts, per thread, how many calls identified by a key are currently active.
    """
    __slots__ = [
        "counters"
    ]

    # constructor

    def __init__(self):
        self.counters : ThreadLocal[Dict[Hashable, int]] = ThreadLocal(dict)

    # public

    def depth(self, key: Hashable) -> int:
        """
        return the number of active calls for the key on the current thread
        """
        return self.counters.get().get(key, 0)

    @contextmanager
    def enter(self, key: Hashable) -> Iterator[int]:
        """
        Mark a call for the key as active for the duration of the with block.

        Yields:
            int: the number of calls for the key that were already active on this thread
        """
        counters = self.counters.get()
        depth = counters.get(key, 0)

        counters[key] = depth + 1
        try:
            yield depth
        finally:
            if depth == 0:
                del counters[key]
            else:
                counters[key] = depth
