from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from fastapi import Request

from jobboard.obs.logging import current_request_id, get_logger

audit_logger = get_logger("audit.moderation")

_EXCERPT_LENGTH = 50


def excerpt(text: str, limit: int = _EXCERPT_LENGTH) -> str:
    return text[:limit]


def log_moderation_event(
    request: Optional[Request],
    event: str,
    *,
    actor_id: str,
    triggered_words: Sequence[str] = (),
    extra: Optional[Mapping[str, Any]] = None,
) -> None:
    payload: dict[str, Any] = {
        "event": event,
        "actor_id": actor_id,
        "triggered_words": list(triggered_words),
        "request_id": current_request_id(),
    }
    if request is not None:
        payload["method"] = request.method
        payload["path"] = request.url.path
        payload["ip"] = request.client.host if request.client else None
        payload["user_agent"] = request.headers.get("user-agent")
    if extra:
        payload.update(extra)
    filtered = {key: value for key, value in payload.items() if value is not None}
    audit_logger.info(event, extra=filtered)
