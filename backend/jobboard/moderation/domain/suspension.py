"""Escalation from warnings to a temporary suspension."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol, Sequence

from jobboard.moderation.domain.config import EscalationPolicy
from jobboard.moderation.domain.ledger import LedgerState, SuspensionRecord, ViolationLedger, ViolationRecord
from jobboard.obs import metrics
from jobboard.obs.audit import audit_logger

logger = logging.getLogger(__name__)


class SuspensionStatus(str, Enum):
    CLEAR = "clear"
    WARNED = "warned"
    SUSPENDED = "suspended"


@dataclass(frozen=True, slots=True)
class ActorState:
    status: SuspensionStatus
    warning_count: int = 0
    suspension: SuspensionRecord | None = None
    suspended_until: datetime | None = None
    remaining: timedelta = timedelta(0)

    @property
    def suspended(self) -> bool:
        return self.status is SuspensionStatus.SUSPENDED


@dataclass(frozen=True, slots=True)
class ViolationOutcome:
    state: ActorState
    suspension_tripped: bool = False

    @property
    def warning_count(self) -> int:
        return self.state.warning_count


class AdminNotifier(Protocol):
    async def notify(self, actor_id: str, *, violation_count: int, suspension: SuspensionRecord) -> None:
        ...


class LoggingAdminNotifier:
    """Reports suspensions on the audit log for the moderation team."""

    async def notify(self, actor_id: str, *, violation_count: int, suspension: SuspensionRecord) -> None:
        audit_logger.warning(
            "admin notify: repeated violations",
            extra={
                "event": "moderation.suspension_started",
                "actor_id": actor_id,
                "violation_count": violation_count,
                "reason": suspension.reason,
                "suspended_at": suspension.timestamp.isoformat(),
            },
        )


def format_remaining(remaining: timedelta) -> str:
    """Render a remaining duration as whole minutes, rounded up."""
    minutes = max(0, math.ceil(remaining.total_seconds() / 60))
    return f"{minutes} minute{'s' if minutes > 1 else ''}"


class SuspensionStateMachine:
    """Derives Clear / Warned / Suspended from an actor's ledger.

    Expiry is lazy: a suspension whose end has passed is removed on the next
    read, together with the violations recorded up to the moment it started, so
    the actor restarts from a count of zero.
    """

    def __init__(
        self,
        ledger: ViolationLedger,
        policy: EscalationPolicy | None = None,
        *,
        notifier: AdminNotifier | None = None,
        gate: str = "server",
    ) -> None:
        self._ledger = ledger
        self._policy = policy or EscalationPolicy()
        self._notifier = notifier or LoggingAdminNotifier()
        self._gate = gate

    @property
    def ledger(self) -> ViolationLedger:
        return self._ledger

    @property
    def policy(self) -> EscalationPolicy:
        return self._policy

    async def state(self, actor_id: str, now: datetime) -> ActorState:
        ledger_state = await self._ledger.read(actor_id)
        if self._settle(ledger_state, now):
            # re-read under the lock so a concurrent violation is not overwritten
            async with self._ledger.lock(actor_id):
                ledger_state = await self._ledger.read(actor_id)
                if self._settle(ledger_state, now):
                    await self._ledger.save(actor_id, ledger_state)
        return self._describe(ledger_state, now)

    async def register_violation(
        self,
        actor_id: str,
        triggered_terms: Sequence[str],
        now: datetime,
        *,
        reason: str = "banned_terms",
    ) -> ViolationOutcome:
        async with self._ledger.lock(actor_id):
            ledger_state = await self._ledger.read(actor_id)
            self._settle(ledger_state, now)
            ledger_state.violations.append(ViolationRecord(now, tuple(triggered_terms), reason))
            tripped = (
                ledger_state.suspension is None
                and len(ledger_state.violations) >= self._policy.warning_threshold
            )
            if tripped:
                ledger_state.suspension = SuspensionRecord(now, self._policy.suspension_reason)
            await self._ledger.save(actor_id, ledger_state)

        metrics.inc_moderation_violation(self._gate, reason)
        if tripped and ledger_state.suspension is not None:
            metrics.inc_moderation_suspension(self._gate)
            await self._notify(actor_id, len(ledger_state.violations), ledger_state.suspension)
        return ViolationOutcome(state=self._describe(ledger_state, now), suspension_tripped=tripped)

    async def reset(self, actor_id: str) -> None:
        async with self._ledger.lock(actor_id):
            await self._ledger.clear(actor_id)

    async def remaining_suspension(self, actor_id: str, now: datetime) -> timedelta:
        return (await self.state(actor_id, now)).remaining

    def _settle(self, ledger_state: LedgerState, now: datetime) -> bool:
        pruned = self._ledger.prune(ledger_state, now)
        expired = self._expire(ledger_state, now)
        return pruned or expired

    def _expire(self, ledger_state: LedgerState, now: datetime) -> bool:
        suspension = ledger_state.suspension
        if suspension is None or now < suspension.until(self._policy.suspension):
            return False
        ledger_state.suspension = None
        ledger_state.violations = [
            record for record in ledger_state.violations if record.timestamp > suspension.timestamp
        ]
        return True

    def _describe(self, ledger_state: LedgerState, now: datetime) -> ActorState:
        count = len(ledger_state.violations)
        suspension = ledger_state.suspension
        if suspension is not None:
            until = suspension.until(self._policy.suspension)
            return ActorState(
                status=SuspensionStatus.SUSPENDED,
                warning_count=count,
                suspension=suspension,
                suspended_until=until,
                remaining=max(timedelta(0), until - now),
            )
        if count:
            return ActorState(status=SuspensionStatus.WARNED, warning_count=count)
        return ActorState(status=SuspensionStatus.CLEAR)

    async def _notify(self, actor_id: str, count: int, suspension: SuspensionRecord) -> None:
        try:
            await self._notifier.notify(actor_id, violation_count=count, suspension=suspension)
        except Exception:  # pragma: no cover
            logger.exception("moderation admin notification failed", extra={"actor_id": actor_id})
