"""
Background loads with a single completion callback.

A submitted function runs on a thread pool. Its callback is invoked exactly
once with a `ServiceResult`: the function's return value, the error it
raised, a CANCELLED error if the task was cancelled before it started, or a
TIMEOUT error if it did not finish within the bound.
"""

import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Generic, Optional, TypeVar

from cellblock.core.logging import get_logger
from cellblock.services.base.service_result import ServiceResult

T = TypeVar("T")

CompletionCallback = Callable[[ServiceResult[Any]], None]


class TaskStatus(str, Enum):
    """Task status enumeration"""
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"
    CANCELLED = "cancelled"
    TIMEOUT = "timeout"


class BackgroundTask(Generic[T]):
    """Handle for a submitted load."""

    def __init__(
        self,
        name: str,
        fn: Callable[[], T],
        on_complete: Optional[CompletionCallback],
        timeout: float,
    ):
        self.task_id = str(uuid.uuid4())
        self.name = name
        self.timeout = timeout
        self.status = TaskStatus.PENDING
        self.submitted_at = datetime.now(timezone.utc)
        self.started_at: Optional[datetime] = None
        self.completed_at: Optional[datetime] = None

        self._fn = fn
        self._on_complete = on_complete
        self._result: Optional[ServiceResult[T]] = None
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._future: Optional[Future] = None
        self._timer: Optional[threading.Timer] = None
        self._logger = get_logger(self.__class__.__name__)

    def __repr__(self) -> str:
        return f"<BackgroundTask(name={self.name}, id={self.task_id}, status={self.status.value})>"

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def cancel(self) -> bool:
        """Cancel the task if it has not started. Returns True on success."""
        with self._lock:
            if self.status != TaskStatus.PENDING:
                return False
            self.status = TaskStatus.CANCELLED
        if self._future is not None:
            self._future.cancel()
        self._finish(TaskStatus.CANCELLED, ServiceResult.cancelled(f"Task {self.name} was cancelled"))
        return True

    def result(self, timeout: Optional[float] = None) -> ServiceResult[T]:
        """
        Block until the task completes and return its result.

        Waits at most `timeout` seconds (the task's own bound by default)
        and returns a TIMEOUT failure if the task is still running.
        """
        wait_for = self.timeout if timeout is None else timeout
        if not self._done.wait(wait_for):
            return ServiceResult.timed_out(wait_for)
        assert self._result is not None
        return self._result

    # ------------------------------------------------------------------ #
    # Internals, called by the loader
    # ------------------------------------------------------------------ #

    def _run(self) -> None:
        with self._lock:
            if self.status != TaskStatus.PENDING:
                return
            self.status = TaskStatus.RUNNING
            self.started_at = datetime.now(timezone.utc)

        try:
            value = self._fn()
        except Exception as exc:
            self._logger.warning(
                f"Background task failed: {self.name}",
                task_id=self.task_id,
                error=str(exc),
            )
            self._finish(TaskStatus.FAILURE, ServiceResult.from_exception(exc))
        else:
            self._finish(TaskStatus.SUCCESS, ServiceResult.success(value))

    def _expire(self) -> None:
        self._finish(TaskStatus.TIMEOUT, ServiceResult.timed_out(self.timeout))

    def _finish(self, status: TaskStatus, result: ServiceResult[T]) -> None:
        with self._lock:
            if self._result is not None:
                if status != TaskStatus.TIMEOUT:
                    self._logger.info(
                        f"Background task finished after its deadline: {self.name}",
                        task_id=self.task_id,
                        late_status=status.value,
                    )
                return
            self._result = result
            self.status = status
            self.completed_at = datetime.now(timezone.utc)
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()
        self._done.set()

        if self._on_complete is None:
            return
        try:
            self._on_complete(result)
        except Exception as exc:
            self._logger.error(
                f"Completion callback failed: {self.name}",
                task_id=self.task_id,
                error=str(exc),
                exc_info=True,
            )


class BackgroundLoader:
    """
    Runs loads on a bounded thread pool.

    Usage:
        >>> loader = BackgroundLoader(max_workers=2, timeout=30)
        >>> task = loader.submit(stats.dashboard, on_complete=show_dashboard)
        >>> task.cancel()  # only effective before the load starts
    """

    def __init__(self, max_workers: int = 4, timeout: float = 30.0):
        self.timeout = timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix="cellblock-loader",
        )
        self._tasks: Dict[str, BackgroundTask[Any]] = {}
        self._lock = threading.Lock()
        self._closed = False
        self._logger = get_logger(self.__class__.__name__)

    def submit(
        self,
        fn: Callable[[], T],
        on_complete: Optional[CompletionCallback] = None,
        *,
        name: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> BackgroundTask[T]:
        task: BackgroundTask[T] = BackgroundTask(
            name=name or getattr(fn, "__name__", "task"),
            fn=fn,
            on_complete=on_complete,
            timeout=self.timeout if timeout is None else timeout,
        )
        with self._lock:
            if self._closed:
                raise RuntimeError("BackgroundLoader has been shut down")
            self._tasks[task.task_id] = task

        timer = threading.Timer(task.timeout, task._expire)
        timer.daemon = True
        task._timer = timer
        timer.start()

        task._future = self._executor.submit(task._run)
        task._future.add_done_callback(lambda _: self._forget(task.task_id))
        self._logger.debug(f"Background task submitted: {task.name}", task_id=task.task_id)
        return task

    def _forget(self, task_id: str) -> None:
        with self._lock:
            self._tasks.pop(task_id, None)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return sum(1 for t in self._tasks.values() if t.status == TaskStatus.PENDING)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; pending tasks are cancelled, running ones finish."""
        with self._lock:
            self._closed = True
            tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "BackgroundLoader":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
