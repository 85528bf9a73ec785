"""Enforcement gate shared by the client SDK and the API middleware."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from jobboard.moderation.domain.matcher import TermMatcher
from jobboard.moderation.domain.ledger import normalize_actor_id, utcnow
from jobboard.moderation.domain.spam import SpamHeuristic
from jobboard.moderation.domain.suspension import SuspensionStateMachine
from jobboard.moderation.domain.verdicts import Allowed, Rejected, Suspended, Verdict
from jobboard.obs import metrics

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

REASON_BANNED_TERMS = "banned_terms"
REASON_SPAM = "spam"


class EnforcementGate:
    """Runs suspension, banned-term and spam checks for one actor submission.

    A suspended actor is refused before any content inspection. Text that is
    not a non-blank string passes. Banned terms are recorded as a violation;
    otherwise the spam heuristic grades the text and a ``remove`` action is
    recorded as a violation when spam gating is enabled.
    """

    def __init__(
        self,
        *,
        matcher: TermMatcher,
        machine: SuspensionStateMachine,
        spam: SpamHeuristic | None = None,
        spam_gate_enabled: bool = True,
        clock: Clock = utcnow,
        name: str = "server",
    ) -> None:
        self._matcher = matcher
        self._machine = machine
        self._spam = spam
        self._spam_gate_enabled = spam_gate_enabled
        self._clock = clock
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def machine(self) -> SuspensionStateMachine:
        return self._machine

    def now(self, at: datetime | None = None) -> datetime:
        """Return ``at`` (assumed UTC when naive) or the current clock time."""
        at = at or self._clock()
        if at.tzinfo is None:
            at = at.replace(tzinfo=timezone.utc)
        return at

    async def check(self, actor_id: str | int, text: object, now: datetime | None = None) -> Verdict:
        now = self.now(now)
        try:
            actor = normalize_actor_id(actor_id)
        except ValueError:
            logger.warning("moderation check skipped for invalid actor id", extra={"gate": self._name})
            return self._done(Allowed())

        state = await self._machine.state(actor, now)
        if state.suspended:
            return self._done(
                Suspended(
                    remaining=state.remaining,
                    warning_count=state.warning_count,
                    reason=state.suspension.reason if state.suspension else "",
                )
            )

        if not isinstance(text, str) or not text.strip():
            return self._done(Allowed(warning_count=state.warning_count))

        terms = self._matcher.detect(text)
        if terms:
            outcome = await self._machine.register_violation(actor, terms, now, reason=REASON_BANNED_TERMS)
            return self._done(
                Rejected(
                    reason=REASON_BANNED_TERMS,
                    triggered_terms=tuple(terms),
                    warning_count=outcome.warning_count,
                    suspension_tripped=outcome.suspension_tripped,
                    remaining=outcome.state.remaining,
                )
            )

        if self._spam is None:
            return self._done(Allowed(warning_count=state.warning_count))

        decision = self._spam.moderate(text)
        metrics.inc_moderation_spam_action(decision.action.kind.value)
        if self._spam_gate_enabled and decision.blocking:
            keywords = decision.verdict.triggered_keywords
            outcome = await self._machine.register_violation(actor, keywords, now, reason=REASON_SPAM)
            return self._done(
                Rejected(
                    reason=REASON_SPAM,
                    triggered_terms=keywords,
                    warning_count=outcome.warning_count,
                    suspension_tripped=outcome.suspension_tripped,
                    remaining=outcome.state.remaining,
                    decision=decision,
                )
            )
        return self._done(Allowed(decision=decision, warning_count=state.warning_count))

    async def reset(self, actor_id: str | int) -> None:
        await self._machine.reset(normalize_actor_id(actor_id))

    def _done(self, verdict: Verdict) -> Verdict:
        if isinstance(verdict, Suspended):
            outcome = "suspended"
        elif isinstance(verdict, Rejected):
            outcome = f"rejected_{verdict.reason}"
        else:
            outcome = "allowed"
        metrics.inc_moderation_check(self._name, outcome)
        return verdict
