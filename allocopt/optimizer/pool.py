"""Thread pool for independent optimizer scenario evaluations."""

from __future__ import annotations

import atexit
import logging
import queue
import threading
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


class ScenarioPoolClosed(RuntimeError):
    """Raised when work is submitted after shutdown."""


@dataclass(slots=True)
class ScenarioJob:
    job_id: str
    fn: Callable[[], Any]
    done: threading.Event
    result: Any = None
    error: BaseException | None = None


class ScenarioPool:
    """Small worker pool; :meth:`map` blocks until every scenario has finished."""

    def __init__(self, workers: int = 4, *, name: str = "scenarios", logger: Optional[logging.Logger] = None) -> None:
        self.name = name
        self.workers = max(1, int(workers or 1))
        self._queue: queue.Queue[Optional[ScenarioJob]] = queue.Queue()
        self._threads: list[threading.Thread] = []
        self._shutdown = threading.Event()
        self._lock = threading.Lock()
        self._started = False
        self._logger = logger or logging.getLogger(f"allocopt.pool.{name}")

    def __enter__(self) -> "ScenarioPool":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.shutdown()

    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            if self._shutdown.is_set():
                raise ScenarioPoolClosed(f"pool '{self.name}' is shut down")
            self._started = True
            for idx in range(self.workers):
                thread = threading.Thread(
                    target=self._worker_loop,
                    name=f"{self.name}-worker-{idx + 1}",
                    daemon=True,
                )
                self._threads.append(thread)
                thread.start()
            atexit.register(self.shutdown)
            self._logger.debug("Pool '%s' started with %s workers", self.name, self.workers)

    def map(self, fn: Callable[[T], R], items: Iterable[T]) -> List[R]:
        """Evaluate ``fn`` over ``items`` concurrently; results keep input order.

        The first failing item (in input order) re-raises its exception once all
        jobs have settled.
        """
        if self._shutdown.is_set():
            raise ScenarioPoolClosed(f"pool '{self.name}' is shut down")
        if not self._started:
            self.start()
        jobs = [
            ScenarioJob(job_id=uuid.uuid4().hex, fn=_bind(fn, item), done=threading.Event())
            for item in items
        ]
        for job in jobs:
            self._queue.put(job)
        for job in jobs:
            job.done.wait()
        for job in jobs:
            if job.error is not None:
                raise job.error
        return [job.result for job in jobs]

    def shutdown(self) -> None:
        if self._shutdown.is_set():
            return
        self._shutdown.set()
        atexit.unregister(self.shutdown)
        for _ in self._threads:
            self._queue.put(None)
        for thread in self._threads:
            thread.join(timeout=2)
        self._threads.clear()
        self._logger.debug("Pool '%s' stopped", self.name)

    def stats(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "workers": len(self._threads),
            "queued": self._queue.qsize(),
            "started": self._started,
            "shutdown": self._shutdown.is_set(),
        }

    def _worker_loop(self) -> None:
        while True:
            job = self._queue.get()
            if job is None:
                self._queue.task_done()
                break
            try:
                job.result = job.fn()
            except Exception as exc:  # noqa: BLE001 - handed back to the caller
                job.error = exc
            finally:
                job.done.set()
                self._queue.task_done()


def _bind(fn: Callable[[T], R], item: T) -> Callable[[], R]:
    return lambda: fn(item)
