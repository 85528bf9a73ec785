"""Staff endpoints for inspecting and resetting profanity ledgers."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel

from jobboard.infra.auth import AuthenticatedUser, get_admin_user
from jobboard.moderation.api.deps import get_moderation_services
from jobboard.moderation.domain.container import ModerationServices
from jobboard.moderation.domain.ledger import ViolationRecord, normalize_actor_id
from jobboard.moderation.domain.suspension import format_remaining
from jobboard.obs import metrics
from jobboard.obs.audit import log_moderation_event

router = APIRouter(prefix="/api/mod/v1/profanity", tags=["moderation-profanity"])


class ViolationOut(BaseModel):
    timestamp: str
    triggered_words: list[str]
    reason: str

    @classmethod
    def from_domain(cls, record: ViolationRecord) -> "ViolationOut":
        return cls(
            timestamp=record.timestamp.isoformat(),
            triggered_words=list(record.triggered_terms),
            reason=record.reason,
        )


class ProfanityStatusOut(BaseModel):
    actor_id: str
    status: str
    warning_count: int
    warning_threshold: int
    suspended: bool
    suspension_reason: str | None = None
    suspended_until: str | None = None
    remaining_ms: int = 0
    remaining: str | None = None
    violations: list[ViolationOut] = []


def _actor(actor_id: str) -> str:
    try:
        return normalize_actor_id(actor_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid_actor") from exc


@router.get("/{actor_id}", response_model=ProfanityStatusOut)
async def get_profanity_status(
    actor_id: str,
    services: ModerationServices = Depends(get_moderation_services),
    _: AuthenticatedUser = Depends(get_admin_user),
) -> ProfanityStatusOut:
    actor = _actor(actor_id)
    now = services.gate.now()
    state = await services.machine.state(actor, now)
    ledger_state = await services.ledger.load(actor, now)
    return ProfanityStatusOut(
        actor_id=actor,
        status=state.status.value,
        warning_count=state.warning_count,
        warning_threshold=services.config.escalation.warning_threshold,
        suspended=state.suspended,
        suspension_reason=state.suspension.reason if state.suspension else None,
        suspended_until=state.suspended_until.isoformat() if state.suspended_until else None,
        remaining_ms=int(state.remaining.total_seconds() * 1000),
        remaining=format_remaining(state.remaining) if state.suspended else None,
        violations=[ViolationOut.from_domain(record) for record in ledger_state.violations],
    )


@router.delete("/{actor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def reset_profanity_ledger(
    actor_id: str,
    request: Request,
    services: ModerationServices = Depends(get_moderation_services),
    admin: AuthenticatedUser = Depends(get_admin_user),
) -> Response:
    actor = _actor(actor_id)
    await services.machine.reset(actor)
    metrics.inc_moderation_reset()
    log_moderation_event(request, "moderation.ledger_reset", actor_id=actor, extra={"admin_id": admin.id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
