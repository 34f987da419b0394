import threading
import time

from paperdb.storage.key_locker import KeyLocker


def test_lock_is_released_and_discarded():
    locker = KeyLocker()
    with locker.locked("a"):
        assert len(locker) == 1
    assert len(locker) == 0


def test_same_key_is_mutually_exclusive():
    locker = KeyLocker()
    inside = []
    overlaps = []

    def worker():
        with locker.locked("k"):
            inside.append(1)
            if len(inside) > 1:
                overlaps.append(True)
            time.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert overlaps == []
    assert len(locker) == 0


def test_different_keys_do_not_block():
    locker = KeyLocker()
    entered = threading.Event()

    def other():
        with locker.locked("b"):
            entered.set()

    with locker.locked("a"):
        t = threading.Thread(target=other)
        t.start()
        assert entered.wait(timeout=2)
        t.join()


def test_lock_released_on_exception():
    locker = KeyLocker()
    try:
        with locker.locked("a"):
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert len(locker) == 0
    with locker.locked("a"):
        pass
