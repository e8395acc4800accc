from __future__ import annotations

import threading

from complaint_monitor.engine import ThreadPoolManager


def test_submit_runs_on_named_worker_thread() -> None:
    manager = ThreadPoolManager(default_workers=2)
    try:
        future = manager.submit(lambda value: (value * 2, threading.current_thread().name), 21)
        result, thread_name = future.result(timeout=5)
    finally:
        manager.shutdown(wait=True)
    assert result == 42
    assert thread_name.startswith("cycle")


def test_executor_is_lazy_and_recreated_after_shutdown() -> None:
    manager = ThreadPoolManager(default_workers=1)
    first = manager.get()
    assert manager.get() is first
    manager.shutdown(wait=True)
    second = manager.get()
    assert second is not first
    manager.shutdown(wait=True)
    manager.shutdown()
