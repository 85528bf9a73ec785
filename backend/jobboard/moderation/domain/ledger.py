"""Per-actor violation ledger with rolling-window pruning."""

from __future__ import annotations

import asyncio
import copy
import logging
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncContextManager, AsyncIterator, Dict, List, Mapping, Protocol, Tuple

from jobboard.obs import metrics

logger = logging.getLogger(__name__)


class LedgerStoreError(RuntimeError):
    """Raised by ledger stores when a document cannot be read or written."""


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_actor_id(actor_id: object) -> str:
    if isinstance(actor_id, bool) or not isinstance(actor_id, (str, int)):
        raise ValueError("actor id must be a string or an integer")
    value = str(actor_id).strip()
    if not value:
        raise ValueError("actor id must not be blank")
    return value


def _parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, str):
        try:
            value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError as exc:
            raise LedgerStoreError(f"invalid timestamp {raw!r}") from exc
    else:
        raise LedgerStoreError("timestamp must be an ISO-8601 string")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True, slots=True)
class ViolationRecord:
    timestamp: datetime
    triggered_terms: Tuple[str, ...] = ()
    reason: str = "banned_terms"

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "triggeredWords": list(self.triggered_terms),
            "reason": self.reason,
        }

    @classmethod
    def from_mapping(cls, data: Any) -> "ViolationRecord":
        if not isinstance(data, Mapping):
            raise LedgerStoreError("violation record must be a mapping")
        terms = data.get("triggeredWords") or ()
        if isinstance(terms, str) or not isinstance(terms, (list, tuple)):
            raise LedgerStoreError("triggeredWords must be a list")
        return cls(
            timestamp=_parse_timestamp(data.get("timestamp")),
            triggered_terms=tuple(str(term) for term in terms),
            reason=str(data.get("reason") or "banned_terms"),
        )


@dataclass(frozen=True, slots=True)
class SuspensionRecord:
    timestamp: datetime
    reason: str

    def until(self, duration: timedelta) -> datetime:
        return self.timestamp + duration

    def to_mapping(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp.isoformat(), "reason": self.reason}

    @classmethod
    def from_mapping(cls, data: Any) -> "SuspensionRecord":
        if not isinstance(data, Mapping):
            raise LedgerStoreError("suspension record must be a mapping")
        return cls(timestamp=_parse_timestamp(data.get("timestamp")), reason=str(data.get("reason") or ""))


@dataclass(slots=True)
class LedgerState:
    """Mutable snapshot of one actor's ledger document."""

    violations: List[ViolationRecord] = field(default_factory=list)
    suspension: SuspensionRecord | None = None

    @property
    def is_empty(self) -> bool:
        return not self.violations and self.suspension is None

    def to_mapping(self) -> Dict[str, Any]:
        return {
            "violations": [record.to_mapping() for record in self.violations],
            "suspension": self.suspension.to_mapping() if self.suspension else None,
        }

    @classmethod
    def from_mapping(cls, data: Any) -> "LedgerState":
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise LedgerStoreError("ledger document must be a mapping")
        raw_violations = data.get("violations") or []
        if not isinstance(raw_violations, list):
            raise LedgerStoreError("violations must be a list")
        raw_suspension = data.get("suspension")
        return cls(
            violations=[ViolationRecord.from_mapping(item) for item in raw_violations],
            suspension=SuspensionRecord.from_mapping(raw_suspension) if raw_suspension else None,
        )


class LedgerStore(Protocol):
    """Persistence for ledger documents, partitioned by actor id."""

    name: str

    async def get(self, actor_id: str) -> Mapping[str, Any] | None:
        ...

    async def set(self, actor_id: str, document: Mapping[str, Any]) -> None:
        ...

    async def delete(self, actor_id: str) -> None:
        ...

    def lock(self, actor_id: str) -> AsyncContextManager[None]:
        ...


class InMemoryLedgerStore:
    """Process-local store; one asyncio lock per actor."""

    name = "memory"

    def __init__(self) -> None:
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    async def get(self, actor_id: str) -> Mapping[str, Any] | None:
        document = self._documents.get(actor_id)
        return copy.deepcopy(document) if document is not None else None

    async def set(self, actor_id: str, document: Mapping[str, Any]) -> None:
        self._documents[actor_id] = copy.deepcopy(dict(document))

    async def delete(self, actor_id: str) -> None:
        self._documents.pop(actor_id, None)

    @asynccontextmanager
    async def lock(self, actor_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(actor_id, asyncio.Lock())
        async with lock:
            yield


class ViolationLedger:
    """Reads and writes actor ledgers, failing open on storage errors.

    Reads prune records older than the reset horizon in memory only; pruned
    documents are written back by callers holding the per-actor lock. Any store
    failure is logged and counted, and reads then see an empty ledger.
    """

    def __init__(self, store: LedgerStore, *, reset_horizon: timedelta = timedelta(hours=24)) -> None:
        self._store = store
        self._reset_horizon = reset_horizon

    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def reset_horizon(self) -> timedelta:
        return self._reset_horizon

    def is_active(self, record: ViolationRecord, now: datetime) -> bool:
        return now - record.timestamp < self._reset_horizon

    def prune(self, state: LedgerState, now: datetime) -> bool:
        """Drop records older than the reset horizon; return whether any were dropped."""
        active = [record for record in state.violations if self.is_active(record, now)]
        if len(active) == len(state.violations):
            return False
        state.violations = active
        return True

    async def read(self, actor_id: str) -> LedgerState:
        try:
            return LedgerState.from_mapping(await self._store.get(actor_id))
        except Exception:
            self._store_failed("get", actor_id)
            return LedgerState()

    async def load(self, actor_id: str, now: datetime) -> LedgerState:
        """Return the actor's active records without writing anything back."""
        state = await self.read(actor_id)
        self.prune(state, now)
        return state

    async def save(self, actor_id: str, state: LedgerState) -> bool:
        try:
            if state.is_empty:
                await self._store.delete(actor_id)
            else:
                await self._store.set(actor_id, state.to_mapping())
        except Exception:
            self._store_failed("set", actor_id)
            return False
        return True

    async def record_violation(
        self,
        actor_id: str,
        triggered_terms: Tuple[str, ...] | List[str],
        now: datetime,
        *,
        reason: str = "banned_terms",
    ) -> int:
        """Append a violation and return the active count including it."""
        async with self.lock(actor_id):
            state = await self.load(actor_id, now)
            state.violations.append(ViolationRecord(now, tuple(triggered_terms), reason))
            await self.save(actor_id, state)
        return len(state.violations)

    async def active_violation_count(self, actor_id: str, now: datetime) -> int:
        return await self.prune_expired(actor_id, now)

    async def prune_expired(self, actor_id: str, now: datetime) -> int:
        """Persist the pruned ledger and return the active count."""
        async with self.lock(actor_id):
            state = await self.read(actor_id)
            if self.prune(state, now):
                await self.save(actor_id, state)
        return len(state.violations)

    async def clear(self, actor_id: str) -> None:
        try:
            await self._store.delete(actor_id)
        except Exception:
            self._store_failed("delete", actor_id)

    @asynccontextmanager
    async def lock(self, actor_id: str) -> AsyncIterator[None]:
        """Hold the store's per-actor lock; proceed unlocked if it cannot be taken."""
        async with AsyncExitStack() as stack:
            try:
                await stack.enter_async_context(self._store.lock(actor_id))
            except Exception:
                self._store_failed("lock", actor_id)
            yield

    def _store_failed(self, op: str, actor_id: str) -> None:
        logger.exception(
            "moderation ledger %s failed; failing open",
            op,
            extra={"store": self._store.name, "op": op, "actor_id": actor_id},
        )
        metrics.inc_moderation_store_error(self._store.name, op)
