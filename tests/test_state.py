import threading
from concurrent.futures import ThreadPoolExecutor

from scout.state import FoundState

def _race(n, fn):
    barrier = threading.Barrier(n)

    def call():
        barrier.wait()
        return fn()

    with ThreadPoolExecutor(max_workers=n) as executor:
        futures = [executor.submit(call) for _ in range(n)]
        return [f.result() for f in futures]

def test_try_confirm_host_wins_exactly_once_under_contention():
    state = FoundState()
    results = _race(128, lambda: state.try_confirm_host("203.0.113.5:554"))
    assert results.count(True) == 1
    assert state.found_count == 1
    assert state.is_host_confirmed("203.0.113.5:554")
    assert state.try_confirm_host("203.0.113.5:554") is False

def test_try_confirm_host_respects_limit():
    state = FoundState()
    assert state.try_confirm_host("198.51.100.1:554", limit=2)
    assert state.try_confirm_host("198.51.100.2:554", limit=2)
    assert not state.try_confirm_host("198.51.100.3:554", limit=2)
    assert state.found_count == 2
    assert state.quota_reached(2)
    assert not state.quota_reached(0)
    assert not state.is_host_confirmed("198.51.100.3:554")

def test_limit_holds_under_contention():
    state = FoundState()
    counter = iter(range(1000))
    lock = threading.Lock()

    def confirm():
        with lock:
            n = next(counter)
        return state.try_confirm_host(f"198.51.100.{n}:554", limit=5)

    results = _race(100, confirm)
    assert results.count(True) == 5
    assert state.found_count == 5

def test_try_confirm_path_and_attempted():
    state = FoundState()
    assert not state.is_path_confirmed("h:554", "/live")
    assert state.try_confirm_path("h:554", "/live")
    assert not state.try_confirm_path("h:554", "/live")
    assert state.try_confirm_path("other:554", "/live")
    assert state.is_path_confirmed("h:554", "/live")

    results = _race(100, lambda: state.mark_attempted("h:554"))
    assert results.count(True) == 1

def test_warn_once():
    state = FoundState()
    assert state.warn_once("h:554")
    assert not state.warn_once("h:554")
    assert state.warn_once("g:554")
