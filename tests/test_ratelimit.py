from __future__ import annotations

import threading

import pytest

from catpost_mediator.core.errors import RateLimited
from catpost_mediator.core.ratelimit import RateLimiter, SlidingWindow


class _Clock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_thirteenth_request_rejected_then_readmitted() -> None:
    clock = _Clock()
    window = SlidingWindow(60.0, 12, clock)
    for _ in range(12):
        assert window.hit("a")[0]
    assert not window.hit("a")[0]

    clock.now += 60.0
    assert window.hit("a")[0]


def test_rejected_attempts_still_spend_slots() -> None:
    clock = _Clock()
    window = SlidingWindow(60.0, 12, clock)
    for _ in range(12):
        window.hit("a")
    clock.now += 30.0
    assert not window.hit("a")[0]
    # the first twelve age out, the rejected one at +30s is still counted
    clock.now += 30.0
    for _ in range(11):
        assert window.hit("a")[0]
    assert not window.hit("a")[0]


def test_wait_reports_oldest_timestamp_expiry() -> None:
    clock = _Clock()
    window = SlidingWindow(60.0, 2, clock)
    assert window.hit("a") == (True, pytest.approx(60.0))
    clock.now += 20.0
    window.hit("a")
    assert window.hit("a") == (False, pytest.approx(40.0))


def test_keys_are_independent() -> None:
    clock = _Clock()
    window = SlidingWindow(60.0, 1, clock)
    assert window.hit("a")[0]
    assert not window.hit("a")[0]
    assert window.hit("b")[0]
    assert len(window) == 2


def test_limiter_requires_both_keyspaces() -> None:
    clock = _Clock()
    limiter = RateLimiter(60.0, 2, clock)
    limiter.check("tok-a", "10.0.0.1")
    limiter.check("tok-a", "10.0.0.2")
    with pytest.raises(RateLimited) as exc:
        limiter.check("tok-a", "10.0.0.3")
    assert exc.value.status_code == 429
    assert exc.value.retry_after == 60

    # a different token on a fresh address is unaffected
    limiter.check("tok-b", "10.0.0.4")

    limiter.check("tok-c", "10.0.0.5")
    limiter.check("tok-c", "10.0.0.5")
    with pytest.raises(RateLimited) as by_address:
        limiter.check("tok-d", "10.0.0.5")
    assert str(by_address.value) == str(exc.value)


def test_concurrent_hits_on_one_key_are_counted_exactly() -> None:
    window = SlidingWindow(60.0, 50, _Clock())
    results: list = []
    lock = threading.Lock()

    def worker() -> None:
        for _ in range(10):
            outcome, _ = window.hit("shared")
            with lock:
                results.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sum(1 for r in results if r) == 50
    assert len(results) == 100


def test_retry_after_is_the_same_whichever_keyspace_trips() -> None:
    clock = _Clock()
    limiter = RateLimiter(60.0, 2, clock)
    limiter.check("tok-a", "10.0.0.1")
    limiter.check("tok-a", "10.0.0.2")
    clock.now += 30.0
    with pytest.raises(RateLimited) as by_token:
        limiter.check("tok-a", "10.0.0.3")

    clock = _Clock()
    limiter = RateLimiter(60.0, 2, clock)
    limiter.check("tok-b", "10.0.0.9")
    limiter.check("tok-c", "10.0.0.9")
    clock.now += 30.0
    with pytest.raises(RateLimited) as by_address:
        limiter.check("tok-d", "10.0.0.9")

    assert by_token.value.retry_after == by_address.value.retry_after == 60
