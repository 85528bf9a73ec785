"""Data contract for the profanity warning dialog shown by clients."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

from jobboard.moderation.contract import ACCOUNT_SUSPENDED_ERROR, BANNED_CONTENT_ERROR, BANNED_CONTENT_MESSAGE
from jobboard.moderation.domain.suspension import format_remaining
from jobboard.moderation.domain.verdicts import Rejected, Suspended, Verdict

REPHRASE_HINT = "Veuillez reformuler votre message pour qu'il reste respectueux et professionnel."
ESCALATION_HINT = (
    "Si vous continuez à utiliser des termes interdits, votre compte risque une suspension "
    "temporaire ou permanente."
)
SUSPENSION_NOTICE = (
    "Suite à de multiples violations des règles de la communauté, votre compte a été "
    "temporairement suspendu pour publier ou commenter."
)


@dataclass(frozen=True)
class WarningDialog:
    """What the UI needs to render after a blocked submission.

    While suspended the dialog offers no way to resubmit; otherwise the draft is
    kept and the user may edit it.
    """

    triggered_words: Tuple[str, ...]
    warning_count: int
    is_temporarily_suspended: bool
    remaining_time_ms: int = 0
    warning_threshold: int = 3

    @classmethod
    def from_verdict(cls, verdict: Verdict, *, warning_threshold: int = 3) -> Optional["WarningDialog"]:
        if isinstance(verdict, Rejected):
            return cls(
                triggered_words=verdict.triggered_terms,
                warning_count=verdict.warning_count,
                is_temporarily_suspended=verdict.suspension_tripped,
                remaining_time_ms=_ms(verdict.remaining),
                warning_threshold=warning_threshold,
            )
        if isinstance(verdict, Suspended):
            return cls(
                triggered_words=(),
                warning_count=verdict.warning_count,
                is_temporarily_suspended=True,
                remaining_time_ms=_ms(verdict.remaining),
                warning_threshold=warning_threshold,
            )
        return None

    @property
    def headline(self) -> str:
        return ACCOUNT_SUSPENDED_ERROR if self.is_temporarily_suspended else BANNED_CONTENT_ERROR

    @property
    def body(self) -> str:
        if self.is_temporarily_suspended:
            return SUSPENSION_NOTICE
        return " ".join((BANNED_CONTENT_MESSAGE, REPHRASE_HINT, ESCALATION_HINT))

    @property
    def warning_label(self) -> str:
        return f"{self.warning_count}/{self.warning_threshold}"

    @property
    def remaining_label(self) -> Optional[str]:
        if not self.is_temporarily_suspended:
            return None
        return format_remaining(timedelta(milliseconds=self.remaining_time_ms))

    @property
    def can_resubmit(self) -> bool:
        return not self.is_temporarily_suspended

    def to_dict(self) -> Dict[str, Any]:
        return {
            "triggeredWords": list(self.triggered_words),
            "warningCount": self.warning_count,
            "isTemporarilySuspended": self.is_temporarily_suspended,
            "remainingTimeMs": self.remaining_time_ms,
            "headline": self.headline,
            "warningLabel": self.warning_label,
            "remainingLabel": self.remaining_label,
            "canResubmit": self.can_resubmit,
        }


def _ms(delta: timedelta) -> int:
    return max(0, int(delta.total_seconds() * 1000))
