"""Outcomes returned by an enforcement gate."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Tuple, Union

from jobboard.moderation.domain.spam import ModerationDecision


@dataclass(frozen=True, slots=True)
class Allowed:
    """The submission may proceed; ``decision`` carries the spam grading if run."""

    decision: ModerationDecision | None = None
    warning_count: int = 0

    @property
    def allowed(self) -> bool:
        return True

    @property
    def suspended(self) -> bool:
        return False

    @property
    def triggered_terms(self) -> Tuple[str, ...]:
        return ()

    @property
    def remaining(self) -> timedelta:
        return timedelta(0)


@dataclass(frozen=True, slots=True)
class Rejected:
    """The submission was blocked and counted as a violation.

    A rejection never reports ``suspended``; ``suspension_tripped`` says whether
    this violation started a suspension that applies to later submissions.
    """

    reason: str
    triggered_terms: Tuple[str, ...]
    warning_count: int
    suspension_tripped: bool = False
    remaining: timedelta = timedelta(0)
    decision: ModerationDecision | None = None

    @property
    def allowed(self) -> bool:
        return False

    @property
    def suspended(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class Suspended:
    """The actor is suspended; content was not inspected."""

    remaining: timedelta
    warning_count: int = 0
    reason: str = ""

    @property
    def allowed(self) -> bool:
        return False

    @property
    def suspended(self) -> bool:
        return True

    @property
    def triggered_terms(self) -> Tuple[str, ...]:
        return ()


Verdict = Union[Allowed, Rejected, Suspended]
