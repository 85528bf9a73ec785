"""Wiring for the moderation services used by the API and the client SDK."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from redis.asyncio import Redis

from jobboard.infra.redis import RedisProxy, create_redis_proxy
from jobboard.moderation.domain.config import ModerationConfig, ModerationConfigError, load_moderation_config
from jobboard.moderation.domain.gate import Clock, EnforcementGate
from jobboard.moderation.domain.ledger import InMemoryLedgerStore, LedgerStore, ViolationLedger, utcnow
from jobboard.moderation.domain.matcher import TermMatcher
from jobboard.moderation.domain.spam import SpamHeuristic
from jobboard.moderation.domain.suspension import AdminNotifier, SuspensionStateMachine
from jobboard.moderation.infra.redis_store import RedisLedgerStore
from jobboard.settings import Settings


@dataclass(slots=True)
class ModerationServices:
    config: ModerationConfig
    store: LedgerStore
    gate: EnforcementGate
    redis: Optional[RedisProxy] = None

    @property
    def machine(self) -> SuspensionStateMachine:
        return self.gate.machine

    @property
    def ledger(self) -> ViolationLedger:
        return self.gate.machine.ledger


def resolve_config(settings: Settings, config: Optional[ModerationConfig] = None) -> ModerationConfig:
    """Load the shared YAML lexicon and apply the environment overrides."""
    base = config or load_moderation_config(settings.moderation_config_path)
    return base.with_overrides(
        warning_threshold=settings.moderation_warning_threshold,
        suspension_seconds=settings.moderation_suspension_seconds,
        reset_horizon_seconds=settings.moderation_reset_horizon_seconds,
    )


def build_store(
    settings: Settings,
    config: ModerationConfig,
    *,
    redis: Redis | RedisProxy | None = None,
) -> LedgerStore:
    backend = settings.moderation_ledger_backend
    if backend == "memory":
        return InMemoryLedgerStore()
    if backend == "redis":
        escalation = config.escalation
        return RedisLedgerStore(
            redis if redis is not None else create_redis_proxy(settings.redis_url),
            namespace=settings.moderation_ledger_namespace,
            ttl=escalation.reset_horizon + escalation.suspension,
            lock_timeout=settings.moderation_lock_timeout_seconds,
        )
    raise ModerationConfigError(f"unknown moderation ledger backend {backend!r}")


def build_gate(
    config: ModerationConfig,
    store: LedgerStore,
    *,
    name: str = "server",
    spam_gate_enabled: bool = True,
    clock: Clock = utcnow,
    notifier: Optional[AdminNotifier] = None,
) -> EnforcementGate:
    ledger = ViolationLedger(store, reset_horizon=config.escalation.reset_horizon)
    machine = SuspensionStateMachine(ledger, config.escalation, notifier=notifier, gate=name)
    return EnforcementGate(
        matcher=TermMatcher(config.banned_terms, config.min_reverse_token_length),
        machine=machine,
        spam=SpamHeuristic(config),
        spam_gate_enabled=spam_gate_enabled,
        clock=clock,
        name=name,
    )


def build_services(
    settings: Settings,
    *,
    config: Optional[ModerationConfig] = None,
    store: Optional[LedgerStore] = None,
    redis: Redis | RedisProxy | None = None,
    clock: Clock = utcnow,
    notifier: Optional[AdminNotifier] = None,
) -> ModerationServices:
    resolved = resolve_config(settings, config)
    if store is None:
        if redis is None and settings.moderation_ledger_backend == "redis":
            redis = create_redis_proxy(settings.redis_url)
        store = build_store(settings, resolved, redis=redis)
    gate = build_gate(
        resolved,
        store,
        name="server",
        spam_gate_enabled=settings.moderation_spam_gate_enabled,
        clock=clock,
        notifier=notifier,
    )
    proxy = redis if isinstance(redis, RedisProxy) else (RedisProxy(redis) if redis is not None else None)
    return ModerationServices(config=resolved, store=store, gate=gate, redis=proxy)
