"""Tests for the in-memory TTL cache."""

from __future__ import annotations

import threading
import time

import pytest

from repoloc.models import FileStat
from repoloc.stores import ReadWriteLock, TTLCache
from tests._fixtures.doubles import FakeClock

FILES = (FileStat(path="main.go", language="Go", code=3, comments=1, blanks=0),)


def test_get_returns_value_until_ttl_elapses(clock: FakeClock) -> None:
    cache = TTLCache(clock=clock)
    cache.set("repo|", FILES, 60)

    clock.advance(59.999)
    assert cache.get("repo|") == FILES

    clock.advance(0.001)
    assert cache.get("repo|") is None


def test_expired_entry_is_absent_before_any_sweep(clock: FakeClock) -> None:
    cache = TTLCache(clock=clock)
    cache.set("repo|", FILES, 10)
    clock.advance(11)

    assert cache.get("repo|") is None
    # Still physically stored until a sweep runs.
    assert len(cache) == 1


@pytest.mark.parametrize("ttl", [0, -5])
def test_non_positive_ttl_installs_already_expired_entry(clock: FakeClock, ttl: int) -> None:
    cache = TTLCache(clock=clock)
    cache.set("repo|", FILES, ttl)

    assert len(cache) == 1
    assert cache.get("repo|") is None


def test_set_replaces_existing_entry_and_expiry(clock: FakeClock) -> None:
    cache = TTLCache(clock=clock)
    cache.set("repo|", FILES, 5)
    clock.advance(4)
    replacement = (FileStat(path="lib.rs", language="Rust", code=1, comments=0, blanks=0),)
    cache.set("repo|", replacement, 5)
    clock.advance(4)

    assert cache.get("repo|") == replacement


def test_set_stores_an_immutable_copy(clock: FakeClock) -> None:
    cache = TTLCache(clock=clock)
    files = list(FILES)
    cache.set("repo|", files, 60)
    files.clear()

    assert cache.get("repo|") == FILES


def test_clear_discards_every_entry(clock: FakeClock) -> None:
    cache = TTLCache(clock=clock)
    cache.set("a|", FILES, 60)
    cache.set("b|main", FILES, 60)

    cache.clear()

    assert cache.get("a|") is None
    assert cache.get("b|main") is None
    assert len(cache) == 0


def test_set_tagged_with_pre_clear_generation_is_dropped(clock: FakeClock) -> None:
    cache = TTLCache(clock=clock)
    generation = cache.generation

    cache.clear()

    assert cache.generation == generation + 1
    assert cache.set("repo|", FILES, 60, generation=generation) is False
    assert cache.get("repo|") is None
    assert cache.set("repo|", FILES, 60, generation=cache.generation) is True
    assert cache.get("repo|") == FILES


def test_sweep_removes_only_expired_entries(clock: FakeClock) -> None:
    cache = TTLCache(clock=clock)
    cache.set("short|", FILES, 5)
    cache.set("long|", FILES, 500)
    clock.advance(10)

    removed = cache.sweep()

    assert removed == 1
    assert len(cache) == 1
    assert cache.get("long|") == FILES


def test_background_sweeper_reclaims_expired_entries() -> None:
    cache = TTLCache(sweep_interval=0.01)
    cache.set("gone|", FILES, 0)
    with cache:
        assert cache.running
        deadline = time.monotonic() + 2.0
        while len(cache) and time.monotonic() < deadline:
            time.sleep(0.01)
    assert len(cache) == 0
    assert not cache.running


def test_read_lock_allows_concurrent_readers() -> None:
    lock = ReadWriteLock()
    barrier = threading.Barrier(2, timeout=2.0)
    errors: list[BaseException] = []

    def reader() -> None:
        try:
            with lock.read():
                barrier.wait()
        except BaseException as exc:  # pragma: no cover - surfaced by assertion
            errors.append(exc)

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(5.0)

    assert errors == []


def test_write_lock_waits_for_active_readers() -> None:
    lock = ReadWriteLock()
    wrote = threading.Event()

    def writer() -> None:
        with lock.write():
            wrote.set()

    with lock.read():
        thread = threading.Thread(target=writer)
        thread.start()
        assert not wrote.wait(0.1)

    assert wrote.wait(2.0)
    thread.join(2.0)
