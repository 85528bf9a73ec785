"""Additive spam and hate scoring with a graded moderation action."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Optional, Tuple

from jobboard.moderation.domain.config import ActionThresholds, ModerationConfig

_SPAM_PATTERNS: Tuple[re.Pattern[str], ...] = (
    re.compile(r"^(?:http|https)://[a-z0-9-]+\.?[a-z0-9-]+\.[a-z]{2,}", re.IGNORECASE),
    re.compile(r"\b[A-Z]{5,}\b"),
    re.compile(r"(.)\1{4,}"),
)
_LINK_RE = re.compile(r"https?://\S+", re.IGNORECASE)


class ActionKind(str, enum.Enum):
    APPROVE = "approve"
    FLAG = "flag"
    HIDE = "hide"
    REMOVE = "remove"


@dataclass(frozen=True)
class SpamVerdict:
    is_spam: bool
    score: int
    reasons: Tuple[str, ...] = ()
    spam_keywords: Tuple[str, ...] = ()
    hate_keywords: Tuple[str, ...] = ()
    hate_score: int = 0

    @property
    def triggered_keywords(self) -> Tuple[str, ...]:
        return self.spam_keywords + self.hate_keywords


@dataclass(frozen=True)
class ModerationAction:
    kind: ActionKind
    reason: str


@dataclass(frozen=True)
class ModerationDecision:
    verdict: SpamVerdict
    action: ModerationAction

    @property
    def blocking(self) -> bool:
        return self.action.kind is ActionKind.REMOVE


def score_spam(text: str, config: Optional[ModerationConfig] = None) -> SpamVerdict:
    """Score ``text`` against the keyword, pattern, link and length rules.

    Each rule adds its points once per distinct keyword or pattern; the total is
    capped at ``scoring.max_score``. Reasons are listed in evaluation order.
    """
    cfg = config or ModerationConfig.default()
    rules = cfg.scoring
    if not isinstance(text, str):
        text = ""
    lowered = text.lower()
    reasons: list[str] = []
    score = 0

    spam_hits = _distinct_hits(lowered, cfg.spam_keywords)
    for keyword in spam_hits:
        reasons.append(f'Contains spam keyword: "{keyword}"')
        score += rules.keyword_points

    for pattern in _SPAM_PATTERNS:
        if pattern.search(text):
            reasons.append(f"Matches spam pattern: {pattern.pattern}")
            score += rules.pattern_points

    links = _LINK_RE.findall(text)
    if len(links) > rules.link_limit:
        reasons.append(f"Too many links ({len(links)})")
        score += rules.link_points

    hate_hits = _distinct_hits(lowered, cfg.hate_keywords)
    for keyword in hate_hits:
        reasons.append(f'Contains hate keyword: "{keyword}"')
        score += rules.hate_points

    if len(text.strip()) < rules.short_length:
        reasons.append("Content too short")
        score += rules.short_points

    capped = min(score, rules.max_score)
    return SpamVerdict(
        is_spam=capped >= rules.spam_threshold,
        score=capped,
        reasons=tuple(reasons),
        spam_keywords=spam_hits,
        hate_keywords=hate_hits,
        hate_score=min(rules.max_score, rules.hate_points * len(hate_hits)),
    )


def classify_action(spam_score: int, hate_score: int, thresholds: Optional[ActionThresholds] = None) -> ModerationAction:
    limits = thresholds or ActionThresholds()
    if spam_score >= limits.remove.spam or hate_score >= limits.remove.hate:
        return ModerationAction(ActionKind.REMOVE, "Violates content policy")
    if spam_score >= limits.hide.spam or hate_score >= limits.hide.hate:
        return ModerationAction(ActionKind.HIDE, "Suspicious content")
    if spam_score >= limits.flag.spam or hate_score >= limits.flag.hate:
        return ModerationAction(ActionKind.FLAG, "Needs manual review")
    return ModerationAction(ActionKind.APPROVE, "Passed moderation")


def moderate_text(text: str, config: Optional[ModerationConfig] = None) -> ModerationDecision:
    cfg = config or ModerationConfig.default()
    verdict = score_spam(text, cfg)
    return ModerationDecision(verdict=verdict, action=classify_action(verdict.score, verdict.hate_score, cfg.actions))


@dataclass
class SpamHeuristic:
    """Config-bound scorer used by the enforcement gates."""

    config: ModerationConfig = field(default_factory=ModerationConfig.default)

    def score(self, text: str) -> SpamVerdict:
        return score_spam(text, self.config)

    def moderate(self, text: str) -> ModerationDecision:
        return moderate_text(text, self.config)


def _distinct_hits(lowered: str, keywords: Tuple[str, ...]) -> Tuple[str, ...]:
    hits: list[str] = []
    for keyword in keywords:
        if keyword and keyword not in hits and keyword in lowered:
            hits.append(keyword)
    return tuple(hits)
