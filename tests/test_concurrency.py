"""
Concurrent writers on the same cells never lose updates or overflow.
"""
import threading
from concurrent.futures import ThreadPoolExecutor

from cellblock.core.exceptions import CapacityExceededError, InvalidOperationError
from cellblock.schemas.common.enums import CellStatus


def _run_all(fn, count):
    barrier = threading.Barrier(count)

    def worker(i):
        barrier.wait()
        return fn(i)

    with ThreadPoolExecutor(max_workers=count) as pool:
        return list(pool.map(worker, range(count)))


class TestConcurrentAdmits:
    def test_admits_never_overflow(self, cells):
        cells.create("C-1", "General", 5, "Minimum")

        def admit(_):
            try:
                cells.admit("C-1", 1)
                return "ok"
            except CapacityExceededError:
                return "full"

        outcomes = _run_all(admit, 10)
        assert outcomes.count("ok") == 5
        assert outcomes.count("full") == 5

        cell = cells.get("C-1")
        assert cell.current_occupancy == 5
        assert cell.status == CellStatus.FULL

    def test_mixed_admit_release_keeps_count(self, cells):
        cells.create("C-1", "General", 20, "Minimum")
        cells.admit("C-1", 10)

        def work(i):
            if i % 2:
                cells.admit("C-1", 1)
            else:
                cells.release("C-1", 1)

        _run_all(work, 16)
        assert cells.get("C-1").current_occupancy == 10


class TestConcurrentTransfers:
    def test_opposite_transfers_do_not_deadlock(self, cells):
        cells.create("A", "General", 10, "Minimum")
        cells.create("B", "General", 10, "Minimum")
        cells.admit("A", 5)
        cells.admit("B", 5)

        def transfer(i):
            source, target = ("A", "B") if i % 2 else ("B", "A")
            try:
                cells.transfer(source, target)
            except (CapacityExceededError, InvalidOperationError):
                pass

        _run_all(transfer, 12)
        total = cells.get("A").current_occupancy + cells.get("B").current_occupancy
        assert total == 10
