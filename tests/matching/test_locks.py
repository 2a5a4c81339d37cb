from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

from drivematch.matching.errors import CapacityExceededError
from drivematch.matching.locks import KeyedLocks
from tests.factories import CTX, make_draft


def test_registry_releases_idle_keys() -> None:
    locks = KeyedLocks()
    with locks.hold("m-1"):
        assert locks.active_keys() == frozenset({"m-1"})
    assert locks.active_keys() == frozenset()


def test_distinct_keys_do_not_contend() -> None:
    locks = KeyedLocks()
    acquired = threading.Event()

    def other() -> None:
        with locks.hold("m-2"):
            acquired.set()

    with locks.hold("m-1"):
        worker = threading.Thread(target=other)
        worker.start()
        assert acquired.wait(timeout=2)
        worker.join(timeout=2)


def test_same_key_serializes_holders() -> None:
    locks = KeyedLocks()
    inside = 0
    peak = 0
    guard = threading.Lock()

    def critical() -> None:
        nonlocal inside, peak
        with locks.hold("m-1"):
            with guard:
                inside += 1
                peak = max(peak, inside)
            threading.Event().wait(0.005)
            with guard:
                inside -= 1

    with ThreadPoolExecutor(max_workers=8) as pool:
        for _ in range(16):
            pool.submit(critical)

    assert peak == 1
    assert locks.active_keys() == frozenset()


def test_concurrent_adds_never_overfill_instructor(service) -> None:
    matching = service.create(CTX, make_draft())
    student_ids = [f"c-{index}" for index in range(20)]

    def add(student_id: str) -> bool:
        try:
            service.add_student(CTX, matching.id, student_id, "i-b", "B")
        except CapacityExceededError:
            return False
        return True

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(add, student_ids))

    stored = service.get(CTX, matching.id)
    assert sum(results) == 10
    assert stored.count_for_instructor("i-b") == 10
    assert len({item.student_id for item in stored.assignments}) == 10
