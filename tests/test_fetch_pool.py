import threading
import time

from competitor_ads.fetch_pool import map_bounded


def test_serial_run_stays_on_calling_thread() -> None:
    caller = threading.get_ident()
    seen: list[int] = []

    def work(item: int) -> int:
        seen.append(threading.get_ident())
        return item * 2

    assert map_bounded(work, [1, 2, 3], max_workers=1) == [2, 4, 6]
    assert set(seen) == {caller}


def test_parallel_run_keeps_input_order_and_bound() -> None:
    lock = threading.Lock()
    active = 0
    peak = 0

    def work(item: int) -> int:
        nonlocal active, peak
        with lock:
            active += 1
            peak = max(peak, active)
        # Later items finish first.
        time.sleep(0.01 * (10 - item))
        with lock:
            active -= 1
        return item

    items = list(range(10))
    assert map_bounded(work, items, max_workers=3) == items
    assert peak <= 3


def test_empty_input() -> None:
    assert map_bounded(lambda item: item, [], max_workers=4) == []
