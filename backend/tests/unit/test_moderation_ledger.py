from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

import pytest
from prometheus_client import REGISTRY

from jobboard.moderation.domain.ledger import (
    InMemoryLedgerStore,
    LedgerState,
    LedgerStoreError,
    ViolationLedger,
    normalize_actor_id,
)

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class BrokenStore:
    name = "broken"

    def __init__(self) -> None:
        self.writes = 0

    async def get(self, actor_id):
        raise LedgerStoreError("boom")

    async def set(self, actor_id, document):
        self.writes += 1
        raise LedgerStoreError("boom")

    async def delete(self, actor_id):
        raise LedgerStoreError("boom")

    @asynccontextmanager
    async def lock(self, actor_id):
        raise LedgerStoreError("lock unavailable")
        yield  # pragma: no cover


def _store_errors(store: str, op: str) -> float:
    return REGISTRY.get_sample_value("jobboard_moderation_store_errors_total", {"store": store, "op": op}) or 0.0


@pytest.mark.asyncio
async def test_record_violation_returns_active_count() -> None:
    ledger = ViolationLedger(InMemoryLedgerStore())
    assert await ledger.record_violation("u1", ["merde"], T0) == 1
    assert await ledger.record_violation("u1", ["putain"], T0 + timedelta(minutes=5)) == 2
    assert await ledger.active_violation_count("u1", T0 + timedelta(minutes=6)) == 2


@pytest.mark.asyncio
async def test_ledgers_are_partitioned_per_actor() -> None:
    ledger = ViolationLedger(InMemoryLedgerStore())
    await ledger.record_violation("u1", ["merde"], T0)
    assert await ledger.active_violation_count("u2", T0) == 0


@pytest.mark.asyncio
async def test_violations_decay_after_reset_horizon() -> None:
    store = InMemoryLedgerStore()
    ledger = ViolationLedger(store)
    await ledger.record_violation("u1", ["merde"], T0)
    assert await ledger.active_violation_count("u1", T0 + timedelta(hours=23, minutes=59)) == 1
    assert await ledger.active_violation_count("u1", T0 + timedelta(hours=25)) == 0
    # pruning happened in the same pass and the empty document was removed
    assert await store.get("u1") is None


@pytest.mark.asyncio
async def test_prune_keeps_recent_records() -> None:
    ledger = ViolationLedger(InMemoryLedgerStore())
    await ledger.record_violation("u1", ["a"], T0)
    await ledger.record_violation("u1", ["b"], T0 + timedelta(hours=20))
    assert await ledger.prune_expired("u1", T0 + timedelta(hours=25)) == 1
    state = await ledger.load("u1", T0 + timedelta(hours=25))
    assert [record.triggered_terms for record in state.violations] == [("b",)]


@pytest.mark.asyncio
async def test_clear_removes_document() -> None:
    store = InMemoryLedgerStore()
    ledger = ViolationLedger(store)
    await ledger.record_violation("u1", ["merde"], T0)
    await ledger.clear("u1")
    assert await store.get("u1") is None


@pytest.mark.asyncio
async def test_corrupt_document_fails_open() -> None:
    store = InMemoryLedgerStore()
    await store.set("u1", {"violations": [{"timestamp": "not-a-date", "triggeredWords": []}]})
    ledger = ViolationLedger(store)
    before = _store_errors("memory", "get")
    assert await ledger.active_violation_count("u1", T0) == 0
    assert _store_errors("memory", "get") == before + 1


@pytest.mark.asyncio
async def test_store_failures_fail_open() -> None:
    store = BrokenStore()
    ledger = ViolationLedger(store)
    assert await ledger.record_violation("u1", ["merde"], T0) == 1
    assert store.writes == 1
    assert await ledger.active_violation_count("u1", T0) == 0
    await ledger.clear("u1")
    async with ledger.lock("u1"):
        pass
    assert _store_errors("broken", "lock") >= 1


def test_ledger_state_round_trips_through_mapping() -> None:
    state = LedgerState.from_mapping(
        {
            "violations": [{"timestamp": "2026-03-02T09:00:00Z", "triggeredWords": ["merde"]}],
            "suspension": None,
        }
    )
    assert state.violations[0].timestamp == T0
    assert state.violations[0].reason == "banned_terms"
    assert LedgerState.from_mapping(state.to_mapping()) == state


@pytest.mark.parametrize("document", [[], {"violations": "x"}, {"violations": [{"timestamp": 5}]}])
def test_ledger_state_rejects_invalid_shapes(document) -> None:
    with pytest.raises(LedgerStoreError):
        LedgerState.from_mapping(document)


def test_normalize_actor_id() -> None:
    assert normalize_actor_id(42) == "42"
    assert normalize_actor_id(" abc ") == "abc"
    for bad in ("", "   ", None, True, 1.5):
        with pytest.raises(ValueError):
            normalize_actor_id(bad)


class DriverErrorStore(InMemoryLedgerStore):
    name = "driver"

    async def get(self, actor_id):
        raise ConnectionError("backend down")

    async def delete(self, actor_id):
        raise OSError("disk gone")


@pytest.mark.asyncio
async def test_non_store_exceptions_fail_open() -> None:
    ledger = ViolationLedger(DriverErrorStore())
    before = _store_errors("driver", "get")
    assert await ledger.active_violation_count("u1", T0) == 0
    assert await ledger.record_violation("u1", ["merde"], T0) == 1
    await ledger.clear("u1")
    assert _store_errors("driver", "get") == before + 2
    assert _store_errors("driver", "delete") >= 1


@pytest.mark.asyncio
async def test_load_does_not_write_back() -> None:
    store = InMemoryLedgerStore()
    ledger = ViolationLedger(store)
    await ledger.record_violation("u1", ["merde"], T0)
    state = await ledger.load("u1", T0 + timedelta(hours=25))
    assert state.violations == []
    assert await store.get("u1") is not None
