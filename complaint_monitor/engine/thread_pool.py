"""Worker pool running fetch cycles off the scheduler thread."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable


class ThreadPoolManager:
    """Own the shared executor used for fetch cycles."""

    def __init__(self, default_workers: int = 8) -> None:
        self.default_workers = default_workers
        self._executor: ThreadPoolExecutor | None = None
        self._lock = Lock()

    def get(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.default_workers, thread_name_prefix="cycle"
                )
            return self._executor

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        return self.get().submit(fn, *args)

    def shutdown(self, wait: bool = False) -> None:
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)


__all__ = ["ThreadPoolManager"]
