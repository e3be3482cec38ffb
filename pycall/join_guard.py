from __future__ import annotations

import threading
from typing import Any, Callable, Generic, Optional, TypeVar

from .errors import GuardDischargedError
from .logs import get_logger

T = TypeVar("T")

logger = get_logger("join_guard")


class _Outcome(Generic[T]):
    # The worker thread only references this holder, never the guard itself,
    # so dropping the last guard reference runs __del__ while the thread lives.
    __slots__ = ("result", "error")

    def __init__(self) -> None:
        self.result: Optional[T] = None
        self.error: Optional[BaseException] = None


class JoinGuard(Generic[T]):
    """
    Owns a worker thread until it is joined or detached.

    A guard that is neither joined nor detached waits for its thread when it
    is released, either on leaving a ``with`` block or when it is garbage
    collected. That wait is what keeps a background interpreter run from being
    silently abandoned.
    """

    def __init__(self, thread: Optional[threading.Thread] = None, outcome: Optional[_Outcome[T]] = None) -> None:
        self._thread = thread
        self._outcome: _Outcome[T] = outcome if outcome is not None else _Outcome()
        self._joined = False
        self._detached = False

    @classmethod
    def spawn(cls, fn: Callable[..., T], *args: Any, name: Optional[str] = None) -> JoinGuard[T]:
        outcome: _Outcome[T] = _Outcome()

        def target() -> None:
            try:
                outcome.result = fn(*args)
            except BaseException as e:
                outcome.error = e

        thread = threading.Thread(target=target, name=name or "pycall-guard", daemon=False)
        thread.start()
        return cls(thread, outcome)

    # -----------------------
    # State
    # -----------------------

    @property
    def joined(self) -> bool:
        return self._joined

    @property
    def detached(self) -> bool:
        return self._detached

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _take(self) -> Optional[threading.Thread]:
        if self._joined or self._detached:
            raise GuardDischargedError("JoinGuard was already joined or detached")
        thread, self._thread = self._thread, None
        return thread

    # -----------------------
    # Discharge
    # -----------------------

    def join(self) -> Optional[T]:
        """Wait for the thread; return its result or re-raise what it raised."""
        thread = self._take()
        self._joined = True
        if thread is not None:
            thread.join()
        if self._outcome.error is not None:
            err, self._outcome.error = self._outcome.error, None
            raise err
        return self._outcome.result

    def detach(self) -> Optional[threading.Thread]:
        """Give up the wait-on-release obligation and hand back the thread."""
        thread = self._take()
        self._detached = True
        return thread

    def _release(self) -> None:
        if self._joined or self._detached:
            return
        thread, self._thread = self._thread, None
        self._joined = True
        if thread is None:
            return
        if thread is not threading.current_thread():
            logger.debug("waiting for unjoined thread %s", thread.name)
            thread.join()
        if self._outcome.error is not None:
            logger.error(
                "unjoined background task failed: %s: %s",
                type(self._outcome.error).__name__,
                self._outcome.error,
            )
            self._outcome.error = None

    def __enter__(self) -> JoinGuard[T]:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._release()

    def __del__(self) -> None:
        self._release()
