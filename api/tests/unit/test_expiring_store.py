from __future__ import annotations

import pytest

from app.shared.utils.expiring_store import ExpiringStore


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_pop_is_single_use() -> None:
    store: ExpiringStore[str] = ExpiringStore(ttl_seconds=600, clock=FakeClock())
    store.put("state1", "verifier1")

    assert store.pop("state1") == "verifier1"
    assert store.pop("state1") is None


def test_entries_expire_after_ttl() -> None:
    clock = FakeClock()
    store: ExpiringStore[str] = ExpiringStore(ttl_seconds=600, clock=clock)
    store.put("state1", "verifier1")

    clock.now += 599
    assert store.get("state1") == "verifier1"

    clock.now += 1
    assert store.get("state1") is None
    assert store.pop("state1") is None


def test_put_purges_expired_entries() -> None:
    clock = FakeClock()
    store: ExpiringStore[str] = ExpiringStore(ttl_seconds=10, clock=clock)
    store.put("a", "1")
    clock.now += 11
    store.put("b", "2")

    assert len(store) == 1
    assert store.get("b") == "2"


def test_invalid_ttl() -> None:
    with pytest.raises(ValueError):
        ExpiringStore(ttl_seconds=0)
