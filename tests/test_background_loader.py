"""
Background loads: one callback per task with a typed result.
"""
import threading

import pytest

from cellblock.core.exceptions import ErrorCode, InvalidOperationError
from cellblock.services.background import BackgroundLoader, TaskStatus

WAIT = 5.0


class CallbackRecorder:
    def __init__(self):
        self.results = []
        self.called = threading.Event()

    def __call__(self, result):
        self.results.append(result)
        self.called.set()

    def wait(self):
        assert self.called.wait(WAIT), "callback was not invoked"
        return self.results[0]


@pytest.fixture
def loader():
    instance = BackgroundLoader(max_workers=1, timeout=WAIT)
    yield instance
    instance.shutdown(wait=True)


class TestCompletion:
    def test_success_value_delivered(self, loader):
        callback = CallbackRecorder()
        task = loader.submit(lambda: 42, callback, name="answer")

        result = callback.wait()
        assert result.is_success
        assert result.data == 42
        assert task.result().data == 42
        assert task.status == TaskStatus.SUCCESS

    def test_error_is_typed(self, loader):
        def fail():
            raise InvalidOperationError("cannot load", cell_number="C-1")

        callback = CallbackRecorder()
        task = loader.submit(fail, callback)

        result = callback.wait()
        assert result.is_failure
        assert result.error.code == ErrorCode.INVALID_OPERATION
        assert result.error.details["cell_number"] == "C-1"
        assert task.status == TaskStatus.FAILURE
        with pytest.raises(InvalidOperationError):
            result.unwrap()

    def test_unexpected_error_is_internal(self, loader):
        def fail():
            raise KeyError("missing")

        callback = CallbackRecorder()
        loader.submit(fail, callback)
        result = callback.wait()
        assert result.error.code == ErrorCode.INTERNAL_ERROR
        assert result.error.details["exception_type"] == "KeyError"

    def test_callback_error_is_contained(self, loader):
        def broken(result):
            raise RuntimeError("ui gone")

        task = loader.submit(lambda: "ok", broken)
        assert task.result().data == "ok"

    def test_without_callback(self, loader):
        task = loader.submit(lambda: [1, 2, 3])
        assert task.result().data == [1, 2, 3]
        assert task.done


class TestCancellation:
    def test_cancel_before_start(self, loader):
        gate = threading.Event()
        started = threading.Event()
        blocker = loader.submit(lambda: started.set() or gate.wait(WAIT))
        assert started.wait(WAIT)

        callback = CallbackRecorder()
        ran = []
        queued = loader.submit(lambda: ran.append(1), callback)

        assert queued.cancel() is True
        result = callback.wait()
        assert result.error.code == ErrorCode.CANCELLED
        assert queued.status == TaskStatus.CANCELLED

        gate.set()
        assert blocker.result().is_success
        assert ran == []
        assert len(callback.results) == 1

    def test_cancel_after_completion(self, loader):
        task = loader.submit(lambda: 1)
        task.result()
        assert task.cancel() is False
        assert task.status == TaskStatus.SUCCESS

    def test_shutdown_cancels_pending(self):
        loader = BackgroundLoader(max_workers=1, timeout=WAIT)
        gate = threading.Event()
        started = threading.Event()
        loader.submit(lambda: started.set() or gate.wait(WAIT))
        assert started.wait(WAIT)
        callback = CallbackRecorder()
        loader.submit(lambda: None, callback)

        threading.Timer(0.05, gate.set).start()
        loader.shutdown(wait=True)
        assert callback.wait().error.code == ErrorCode.CANCELLED

        with pytest.raises(RuntimeError):
            loader.submit(lambda: None)


class TestTimeout:
    def test_slow_task_times_out_once(self, loader):
        gate = threading.Event()
        callback = CallbackRecorder()
        task = loader.submit(lambda: gate.wait(WAIT), callback, timeout=0.05)

        result = callback.wait()
        assert result.error.code == ErrorCode.TIMEOUT
        assert task.status == TaskStatus.TIMEOUT

        gate.set()
        loader.shutdown(wait=True)
        assert len(callback.results) == 1
        assert task.result().error.code == ErrorCode.TIMEOUT

    def test_result_wait_bound(self, loader):
        gate = threading.Event()
        task = loader.submit(lambda: gate.wait(WAIT))
        assert task.result(timeout=0.01).error.code == ErrorCode.TIMEOUT
        gate.set()
        assert task.result().is_success


class TestDashboardLoad:
    def test_dashboard_through_container_loader(self, container, cells):
        cells.create("A", "Double", 2, "Medium")
        cells.admit("A", 1)

        callback = CallbackRecorder()
        container.loader.submit(container.statistics.dashboard, callback)
        dashboard = callback.wait().unwrap()
        assert dashboard.occupancy.as_list() == [2, 1, 1]
