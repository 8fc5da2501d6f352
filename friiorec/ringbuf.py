"""Fixed-size FIFO ring buffer for handing data between threads.

A producer reserves a slot with :meth:`RingBuffer.push_slot`, fills it
asynchronously and marks it with :meth:`RingBuffer.set_ready`.  The consumer
takes slots in reservation order.  A reserved slot that is not ready by its
deadline is skipped, after its timeout handler has been called.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

__all__ = ["RingBufferOverflowError", "InterruptedError_", "RingBuffer"]

T = TypeVar("T")


class RingBufferOverflowError(RuntimeError):
    """The buffer ran out of free slots; it stays unusable afterwards."""


class InterruptedError_(RuntimeError):
    """A waiting consumer was interrupted."""


@dataclass
class _Node(Generic[T]):
    data: T
    deadline: float = 0.0
    timeout_handler: Optional[Callable[[T], None]] = None
    is_wait: bool = False
    is_ready: bool = False

    def reset(self) -> None:
        self.deadline = time.monotonic()
        self.timeout_handler = None
        self.is_wait = False
        self.is_ready = False


class RingBuffer(Generic[T]):
    """Ring of ``size`` slots, each holding one object made by ``factory``."""

    def __init__(self, size: int, factory: Callable[[], T]) -> None:
        if size <= 0:
            raise ValueError("ring buffer size must be positive")
        self._nodes = [_Node(factory()) for _ in range(size)]
        for node in self._nodes:
            node.reset()
        self._by_id = {id(node.data): node for node in self._nodes}
        if len(self._by_id) != size:
            raise ValueError("factory must create a distinct object per slot")
        self._push = 0
        self._pop = 0
        self._overflow = False
        self._interrupted = False
        self._wait_count = 0
        self._ready_count = 0
        self._lock = threading.Lock()
        self._cond = threading.Condition(self._lock)

    def _next(self, index: int, step: int = 1) -> int:
        return (index + step) % len(self._nodes)

    def _check_overflow(self) -> None:
        if self._overflow:
            raise RingBufferOverflowError("RingBuf was overflowed.")

    def is_overflow(self) -> bool:
        """Whether the buffer has overflowed."""
        with self._lock:
            return self._overflow

    def wait_count(self) -> int:
        """Number of reserved slots not yet marked ready."""
        with self._lock:
            return self._wait_count - self._ready_count

    def ready_count(self) -> int:
        """Number of slots ready to be read."""
        with self._lock:
            return self._ready_count

    def push_slot(
        self,
        timeout_msec: int,
        timeout_handler: Optional[Callable[[T], None]] = None,
    ) -> T:
        """Reserve the next slot and return its data object."""
        with self._lock:
            self._check_overflow()
            if self._pop in (self._next(self._push), self._next(self._push, 2)):
                self._overflow = True
                raise RingBufferOverflowError("RingBuf is overflow.")
            node = self._nodes[self._push]
            node.deadline = time.monotonic() + timeout_msec / 1000.0
            node.timeout_handler = timeout_handler
            node.is_wait = True
            self._wait_count += 1
            self._push = self._next(self._push)
            return node.data

    def set_ready(self, item: T) -> None:
        """Mark a reserved slot, identified by its data object, as filled."""
        with self._lock:
            self._check_overflow()
            try:
                node = self._by_id[id(item)]
            except KeyError:
                raise ValueError("object does not belong to this buffer") from None
            # A slot that already timed out is no longer waiting; ignore it.
            if node.is_wait and not node.is_ready:
                node.is_ready = True
                self._ready_count += 1
            self._cond.notify()

    def _peek_locked(self) -> Optional[T]:
        self._check_overflow()
        while self._pop != self._push:
            node = self._nodes[self._pop]
            if node.is_ready:
                data = node.data
                node.reset()
                self._pop = self._next(self._pop)
                self._ready_count -= 1
                self._wait_count -= 1
                return data
            if node.deadline > time.monotonic():
                return None
            if node.timeout_handler is not None:
                node.timeout_handler(node.data)
            node.reset()
            self._pop = self._next(self._pop)
            self._wait_count -= 1
        return None

    def peek(self) -> Optional[T]:
        """Take the next ready item without blocking, or return None."""
        with self._lock:
            return self._peek_locked()

    def pop(self, timeout_msec: int) -> Optional[T]:
        """Take the next ready item, waiting up to ``timeout_msec``; None on timeout."""
        with self._lock:
            self._check_overflow()
            while True:
                if self._interrupted:
                    raise InterruptedError_("interrupted!")
                data = self._peek_locked()
                if data is not None:
                    return data
                if not self._cond.wait(timeout_msec / 1000.0):
                    return None

    def pop_blocking(self) -> T:
        """Take the next ready item, waiting as long as it takes."""
        while True:
            data = self.pop(100)
            if data is not None:
                return data

    def interrupt(self) -> None:
        """Wake and interrupt any waiting consumer, now and in future."""
        with self._lock:
            self._interrupted = True
            self._cond.notify()