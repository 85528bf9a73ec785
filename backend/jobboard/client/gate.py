"""Client-side enforcement gate backed by a local ledger file."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from jobboard.client.dialog import WarningDialog
from jobboard.moderation.domain.config import ModerationConfig
from jobboard.moderation.domain.container import build_gate
from jobboard.moderation.domain.gate import REASON_BANNED_TERMS, Clock
from jobboard.moderation.domain.ledger import LedgerStore, normalize_actor_id, utcnow
from jobboard.moderation.domain.suspension import ActorState, AdminNotifier
from jobboard.moderation.domain.verdicts import Rejected, Verdict
from jobboard.moderation.infra.file_store import FileLedgerStore


class ClientGate:
    """Pre-submission check that mirrors the server gate with a local ledger.

    The server stays authoritative: a rejection it returns for text this gate
    allowed is recorded locally through :meth:`record_server_rejection`.
    """

    def __init__(
        self,
        store: LedgerStore,
        config: Optional[ModerationConfig] = None,
        *,
        clock: Clock = utcnow,
        notifier: Optional[AdminNotifier] = None,
        spam_gate_enabled: bool = True,
    ) -> None:
        self._config = config or ModerationConfig.default()
        self._gate = build_gate(
            self._config,
            store,
            name="client",
            spam_gate_enabled=spam_gate_enabled,
            clock=clock,
            notifier=notifier,
        )

    @classmethod
    def from_path(cls, path: str | Path, config: Optional[ModerationConfig] = None, **kwargs) -> "ClientGate":
        return cls(FileLedgerStore(path), config, **kwargs)

    @property
    def config(self) -> ModerationConfig:
        return self._config

    async def check(self, actor_id: str | int, text: object, now: Optional[datetime] = None) -> Verdict:
        return await self._gate.check(actor_id, text, now)

    def dialog_for(self, verdict: Verdict) -> Optional[WarningDialog]:
        return WarningDialog.from_verdict(verdict, warning_threshold=self._config.escalation.warning_threshold)

    async def state(self, actor_id: str | int, now: Optional[datetime] = None) -> ActorState:
        return await self._gate.machine.state(normalize_actor_id(actor_id), self._gate.now(now))

    async def record_server_rejection(
        self,
        actor_id: str | int,
        triggered_terms: Sequence[str],
        now: Optional[datetime] = None,
    ) -> Rejected:
        """Count a server ``BANNED_CONTENT`` answer as a local violation."""
        outcome = await self._gate.machine.register_violation(
            normalize_actor_id(actor_id),
            tuple(triggered_terms),
            self._gate.now(now),
            reason=REASON_BANNED_TERMS,
        )
        return Rejected(
            reason=REASON_BANNED_TERMS,
            triggered_terms=tuple(triggered_terms),
            warning_count=outcome.warning_count,
            suspension_tripped=outcome.suspension_tripped,
            remaining=outcome.state.remaining,
        )

    async def reset(self, actor_id: str | int) -> None:
        await self._gate.reset(actor_id)
