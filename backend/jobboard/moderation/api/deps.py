"""FastAPI dependencies for the moderation routers."""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from jobboard.moderation.domain.container import ModerationServices


def get_moderation_services(request: Request) -> ModerationServices:
    services = getattr(request.app.state, "moderation", None)
    if services is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="moderation_unavailable")
    return services
