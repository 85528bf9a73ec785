import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from jobboard.infra.redis import RedisProxy
from jobboard.moderation.domain.config import EscalationPolicy
from jobboard.moderation.domain.ledger import LedgerStoreError, ViolationLedger
from jobboard.moderation.domain.suspension import SuspensionStateMachine
from jobboard.moderation.infra.file_store import FileLedgerStore
from jobboard.moderation.infra.redis_store import RedisLedgerStore

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class DownRedis:
    async def get(self, key):
        raise RedisConnectionError("down")

    async def set(self, key, value, ex=None):
        raise RedisConnectionError("down")

    async def delete(self, key):
        raise RedisConnectionError("down")


@pytest.mark.asyncio
async def test_redis_store_round_trip_with_ttl(fake_redis) -> None:
    store = RedisLedgerStore(RedisProxy(fake_redis), namespace="profanity", ttl=timedelta(hours=25))
    await store.set("u1", {"violations": [], "suspension": None})
    assert await store.get("u1") == {"violations": [], "suspension": None}
    assert 0 < await fake_redis.ttl("mod:profanity:u1") <= 25 * 3600
    await store.delete("u1")
    assert await store.get("u1") is None


@pytest.mark.asyncio
async def test_redis_store_corrupt_document_raises(fake_redis) -> None:
    store = RedisLedgerStore(fake_redis)
    await fake_redis.set(store.key("u1"), "{not json")
    with pytest.raises(LedgerStoreError):
        await store.get("u1")


@pytest.mark.asyncio
async def test_redis_store_wraps_connection_errors() -> None:
    store = RedisLedgerStore(DownRedis())  # type: ignore[arg-type]
    with pytest.raises(LedgerStoreError):
        await store.get("u1")
    with pytest.raises(LedgerStoreError):
        await store.set("u1", {})
    with pytest.raises(LedgerStoreError):
        await store.delete("u1")


@pytest.mark.asyncio
async def test_redis_lock_serializes_concurrent_violations(fake_redis) -> None:
    store = RedisLedgerStore(fake_redis, lock_timeout=2.0)
    machine = SuspensionStateMachine(ViolationLedger(store), EscalationPolicy())
    outcomes = await asyncio.gather(
        *(machine.register_violation("u1", ["merde"], T0) for _ in range(4))
    )
    assert sorted(outcome.warning_count for outcome in outcomes) == [1, 2, 3, 4]
    assert sum(outcome.suspension_tripped for outcome in outcomes) == 1
    state = await machine.state("u1", T0)
    assert state.suspended is True


@pytest.mark.asyncio
async def test_redis_ledger_fails_open_when_redis_is_down() -> None:
    ledger = ViolationLedger(RedisLedgerStore(DownRedis()))  # type: ignore[arg-type]
    assert await ledger.active_violation_count("u1", T0) == 0
    assert await ledger.record_violation("u1", ["merde"], T0) == 1


@pytest.mark.asyncio
async def test_file_store_persists_between_instances(tmp_path) -> None:
    path = tmp_path / "profile" / "ledger.json"
    ledger = ViolationLedger(FileLedgerStore(path))
    await ledger.record_violation("u1", ["merde"], T0)
    await ledger.record_violation("u2", ["putain"], T0)

    reopened = ViolationLedger(FileLedgerStore(path))
    assert await reopened.active_violation_count("u1", T0 + timedelta(minutes=1)) == 1
    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert sorted(on_disk) == ["u1", "u2"]

    await reopened.clear("u1")
    assert sorted(json.loads(path.read_text(encoding="utf-8"))) == ["u2"]


@pytest.mark.asyncio
async def test_file_store_corruption_fails_open_and_recovers(tmp_path) -> None:
    path = tmp_path / "ledger.json"
    path.write_text("{{{ definitely not json", encoding="utf-8")
    store = FileLedgerStore(path)
    with pytest.raises(LedgerStoreError):
        await store.get("u1")

    ledger = ViolationLedger(store)
    assert await ledger.active_violation_count("u1", T0) == 0
    assert await ledger.record_violation("u1", ["merde"], T0) == 1
    assert await ledger.active_violation_count("u1", T0) == 1


@pytest.mark.asyncio
async def test_file_store_rejects_non_object_documents(tmp_path) -> None:
    path = tmp_path / "ledger.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(LedgerStoreError):
        await FileLedgerStore(path).get("u1")


@pytest.mark.asyncio
async def test_file_store_undecodable_bytes_fail_open(tmp_path) -> None:
    path = tmp_path / "ledger.json"
    path.write_bytes(b'{"u1": \xff\xfe garbage')
    store = FileLedgerStore(path)
    with pytest.raises(LedgerStoreError):
        await store.get("u1")

    ledger = ViolationLedger(store)
    assert await ledger.active_violation_count("u1", T0) == 0
    assert await ledger.record_violation("u1", ["merde"], T0) == 1
    assert sorted(json.loads(path.read_text(encoding="utf-8"))) == ["u1"]


@pytest.mark.asyncio
async def test_client_gate_allows_over_undecodable_ledger(tmp_path) -> None:
    from jobboard.client import ClientGate
    from jobboard.moderation.domain.verdicts import Allowed

    path = tmp_path / "ledger.json"
    path.write_bytes(b'{"u1": \xff\xfe garbage')
    verdict = await ClientGate.from_path(path).check("u1", "Bonjour à tous les recruteurs", T0)
    assert isinstance(verdict, Allowed)
