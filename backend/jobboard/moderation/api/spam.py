"""Dry-run scoring endpoint for the spam heuristic."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from jobboard.infra.auth import AuthenticatedUser, get_current_user
from jobboard.moderation.api.deps import get_moderation_services
from jobboard.moderation.domain.container import ModerationServices
from jobboard.moderation.domain.content import calculate_post_quality, extract_and_validate_urls, validate_post
from jobboard.moderation.domain.spam import moderate_text

router = APIRouter(prefix="/api/mod/v1/spam", tags=["moderation-spam"])


class SpamScoreIn(BaseModel):
    content: str = Field(max_length=20000)
    author: str | None = None
    likes: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    shares: int = Field(default=0, ge=0)


class SpamScoreOut(BaseModel):
    is_spam: bool
    score: int
    hate_score: int
    reasons: list[str]
    action: str
    action_reason: str
    urls: list[str]
    urls_valid: bool
    url_issues: list[str]
    quality_score: int
    engagement: int
    valid: bool | None = None
    validation_errors: list[str] = []


@router.post("/score", response_model=SpamScoreOut)
async def score_content(
    payload: SpamScoreIn,
    services: ModerationServices = Depends(get_moderation_services),
    _: AuthenticatedUser = Depends(get_current_user),
) -> SpamScoreOut:
    decision = moderate_text(payload.content, services.config)
    links = extract_and_validate_urls(payload.content)
    quality = calculate_post_quality(payload.content, payload.likes, payload.comments, payload.shares)
    validation = validate_post(payload.content, payload.author) if payload.author is not None else None
    return SpamScoreOut(
        is_spam=decision.verdict.is_spam,
        score=decision.verdict.score,
        hate_score=decision.verdict.hate_score,
        reasons=list(decision.verdict.reasons),
        action=decision.action.kind.value,
        action_reason=decision.action.reason,
        urls=list(links.urls),
        urls_valid=links.valid,
        url_issues=list(links.issues),
        quality_score=quality.quality_score,
        engagement=quality.engagement,
        valid=validation.valid if validation else None,
        validation_errors=list(validation.errors) if validation else [],
    )
