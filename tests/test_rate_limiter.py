import threading
import time

from limits.storage import MemoryStorage

from ats_proxy.services.rate_limiter import FixedWindowRateLimiter


def test_hundredth_request_admitted_hundred_and_first_rejected():
    limiter = FixedWindowRateLimiter(max_requests=100, window_seconds=900)
    results = [limiter.admit("1.2.3.4") for _ in range(101)]
    assert all(results[:100])
    assert results[100] is False


def test_clients_are_counted_separately():
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=900)
    assert limiter.admit("10.0.0.1")
    assert limiter.admit("10.0.0.2")
    assert not limiter.admit("10.0.0.1")


def test_window_resets_wholesale_after_expiry():
    limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=1)
    assert limiter.admit("ip")
    assert limiter.admit("ip")
    assert not limiter.admit("ip")

    time.sleep(1.2)
    assert limiter.admit("ip")
    assert limiter.remaining("ip") == 1


def test_rejected_requests_do_not_restore_quota():
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60)
    limiter.admit("ip")
    limiter.admit("ip")
    limiter.admit("ip")
    assert limiter.remaining("ip") == 0
    assert not limiter.admit("ip")


def test_remaining_and_reset_seconds():
    limiter = FixedWindowRateLimiter(max_requests=5, window_seconds=900)
    assert limiter.remaining("ip") == 5
    assert limiter.seconds_until_reset("ip") == 0

    limiter.admit("ip")
    limiter.admit("ip")
    assert limiter.remaining("ip") == 3
    assert 890 <= limiter.seconds_until_reset("ip") <= 900


def test_reset_clears_all_windows():
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60)
    limiter.admit("ip")
    assert not limiter.admit("ip")
    limiter.reset()
    assert limiter.admit("ip")


def test_limiters_sharing_storage_share_counts():
    storage = MemoryStorage()
    first = FixedWindowRateLimiter(max_requests=2, window_seconds=60, storage=storage)
    second = FixedWindowRateLimiter(max_requests=2, window_seconds=60, storage=storage)
    assert first.admit("ip")
    assert second.admit("ip")
    assert not first.admit("ip")


def test_concurrent_admits_never_exceed_limit():
    limiter = FixedWindowRateLimiter(max_requests=100, window_seconds=900)
    admitted = []
    lock = threading.Lock()

    def worker():
        for _ in range(50):
            ok = limiter.admit("same-ip")
            with lock:
                admitted.append(ok)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(admitted) == 400
    assert admitted.count(True) <= 100
    assert limiter.remaining("same-ip") == 0
    assert not limiter.admit("same-ip")
