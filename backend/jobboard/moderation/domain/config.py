"""Configuration helpers for the moderation lexicon and escalation policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import timedelta
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from jobboard.moderation.domain.normalizer import normalize_term

logger = logging.getLogger(__name__)

_PACKAGED_CONFIG = "moderation.yml"


class ModerationConfigError(ValueError):
    """Raised when a moderation config file has an invalid shape."""


@dataclass(frozen=True)
class ScoringRules:
    """Point values for the additive spam heuristic."""

    keyword_points: int = 20
    pattern_points: int = 15
    link_points: int = 30
    link_limit: int = 3
    hate_points: int = 40
    short_points: int = 10
    short_length: int = 10
    spam_threshold: int = 50
    max_score: int = 100


@dataclass(frozen=True)
class ActionCutoff:
    spam: int
    hate: int


@dataclass(frozen=True)
class ActionThresholds:
    remove: ActionCutoff = field(default_factory=lambda: ActionCutoff(spam=70, hate=80))
    hide: ActionCutoff = field(default_factory=lambda: ActionCutoff(spam=50, hate=60))
    flag: ActionCutoff = field(default_factory=lambda: ActionCutoff(spam=30, hate=40))


@dataclass(frozen=True)
class EscalationPolicy:
    warning_threshold: int = 3
    suspension: timedelta = timedelta(hours=1)
    reset_horizon: timedelta = timedelta(hours=24)
    suspension_reason: str = "Multiple profanity violations"


@dataclass(frozen=True)
class ModerationConfig:
    """Immutable lexicon plus every numeric knob used by the gates."""

    banned_terms: tuple[str, ...] = ()
    spam_keywords: tuple[str, ...] = ()
    hate_keywords: tuple[str, ...] = ()
    min_reverse_token_length: int = 2
    scoring: ScoringRules = field(default_factory=ScoringRules)
    actions: ActionThresholds = field(default_factory=ActionThresholds)
    escalation: EscalationPolicy = field(default_factory=EscalationPolicy)

    def __post_init__(self) -> None:
        terms = tuple(term for term in (normalize_term(item) for item in self.banned_terms) if term)
        object.__setattr__(self, "banned_terms", terms)
        object.__setattr__(self, "spam_keywords", _lowered(self.spam_keywords))
        object.__setattr__(self, "hate_keywords", _lowered(self.hate_keywords))

    @staticmethod
    def default() -> "ModerationConfig":
        return _packaged_config()

    @staticmethod
    def from_mapping(config: Mapping[str, Any], base: "ModerationConfig | None" = None) -> "ModerationConfig":
        base = base or ModerationConfig()
        matching_cfg = _section(config, "matching")
        scoring_cfg = _section(config, "scoring")
        actions_cfg = _section(config, "actions")
        escalation_cfg = _section(config, "escalation")

        scoring = replace(
            base.scoring,
            **{key: _int(scoring_cfg, key, getattr(base.scoring, key)) for key in _field_names(ScoringRules)},
        )
        actions = ActionThresholds(
            remove=_cutoff(actions_cfg, "remove", base.actions.remove),
            hide=_cutoff(actions_cfg, "hide", base.actions.hide),
            flag=_cutoff(actions_cfg, "flag", base.actions.flag),
        )
        escalation = EscalationPolicy(
            warning_threshold=_int(escalation_cfg, "warning_threshold", base.escalation.warning_threshold),
            suspension=timedelta(
                seconds=_int(escalation_cfg, "suspension_seconds", int(base.escalation.suspension.total_seconds()))
            ),
            reset_horizon=timedelta(
                seconds=_int(escalation_cfg, "reset_horizon_seconds", int(base.escalation.reset_horizon.total_seconds()))
            ),
            suspension_reason=str(escalation_cfg.get("suspension_reason", base.escalation.suspension_reason)),
        )
        if escalation.warning_threshold < 1:
            raise ModerationConfigError("escalation.warning_threshold must be at least 1")
        return ModerationConfig(
            banned_terms=_terms(config, "banned_terms", base.banned_terms),
            spam_keywords=_terms(config, "spam_keywords", base.spam_keywords),
            hate_keywords=_terms(config, "hate_keywords", base.hate_keywords),
            min_reverse_token_length=_int(matching_cfg, "min_reverse_token_length", base.min_reverse_token_length),
            scoring=scoring,
            actions=actions,
            escalation=escalation,
        )

    def with_overrides(
        self,
        *,
        warning_threshold: int | None = None,
        suspension_seconds: int | None = None,
        reset_horizon_seconds: int | None = None,
    ) -> "ModerationConfig":
        escalation = self.escalation
        if warning_threshold is not None:
            escalation = replace(escalation, warning_threshold=max(1, warning_threshold))
        if suspension_seconds is not None:
            escalation = replace(escalation, suspension=timedelta(seconds=max(0, suspension_seconds)))
        if reset_horizon_seconds is not None:
            escalation = replace(escalation, reset_horizon=timedelta(seconds=max(0, reset_horizon_seconds)))
        return replace(self, escalation=escalation)


def load_moderation_config(path: str | Path | None = None) -> ModerationConfig:
    """Load the lexicon from a YAML file layered over the packaged defaults."""

    base = ModerationConfig.default()
    if path is None:
        return base
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("moderation config file missing at %s; using packaged defaults", path)
        return base
    return ModerationConfig.from_mapping(_parse(text, source=str(path)), base=base)


@lru_cache(maxsize=1)
def _packaged_config() -> ModerationConfig:
    text = resources.files("jobboard.moderation").joinpath("data", _PACKAGED_CONFIG).read_text(encoding="utf-8")
    return ModerationConfig.from_mapping(_parse(text, source=_PACKAGED_CONFIG))


def _parse(raw: str, *, source: str) -> Mapping[str, Any]:
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ModerationConfigError(f"invalid moderation config in {source}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ModerationConfigError(f"moderation config in {source} must be a mapping")
    return data


def _section(config: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = config.get(key) or {}
    if not isinstance(value, Mapping):
        raise ModerationConfigError(f"{key} must be a mapping")
    return value


def _terms(config: Mapping[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    if key not in config:
        return default
    value = config[key]
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise ModerationConfigError(f"{key} must be a list of strings")
    return tuple(str(item) for item in value if item is not None)


def _int(config: Mapping[str, Any], key: str, default: int) -> int:
    value = config.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ModerationConfigError(f"{key} must be a number")
    if value < 0:
        raise ModerationConfigError(f"{key} must not be negative")
    return int(value)


def _cutoff(config: Mapping[str, Any], key: str, default: ActionCutoff) -> ActionCutoff:
    value = config.get(key)
    if value is None:
        return default
    if not isinstance(value, Mapping):
        raise ModerationConfigError(f"actions.{key} must be a mapping")
    return ActionCutoff(spam=_int(value, "spam", default.spam), hate=_int(value, "hate", default.hate))


def _field_names(cls: type) -> tuple[str, ...]:
    return tuple(cls.__dataclass_fields__)


def _lowered(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(str(item).lower() for item in values if str(item).strip())
