"""Server-side enforcement of the moderation gate on write requests."""

from __future__ import annotations

import json
import logging
import math
from typing import Iterable, Mapping

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from jobboard.infra.auth import resolve_actor_id
from jobboard.moderation.contract import (
    BANNED_CONTENT_CODE,
    account_suspended_payload,
    banned_content_payload,
    extract_content,
)
from jobboard.moderation.domain.verdicts import Rejected, Suspended
from jobboard.obs.audit import excerpt, log_moderation_event

logger = logging.getLogger(__name__)

_DEFAULT_EXEMPT_PREFIXES = ("/api/mod/v1/",)


class ContentFilterMiddleware(BaseHTTPMiddleware):
    """Runs the enforcement gate on JSON write requests that carry text.

    Requests without a ``content``/``text`` string pass untouched. Rejections
    answer 400 ``BANNED_CONTENT``; suspended actors get 403 ``ACCOUNT_SUSPENDED``.
    """

    def __init__(
        self,
        app,
        *,
        methods: Iterable[str] = ("POST", "PUT"),
        exempt_prefixes: Iterable[str] = _DEFAULT_EXEMPT_PREFIXES,
    ) -> None:
        super().__init__(app)
        self._methods = frozenset(method.upper() for method in methods)
        self._exempt_prefixes = tuple(exempt_prefixes)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method not in self._methods or request.url.path.startswith(self._exempt_prefixes):
            return await call_next(request)
        services = getattr(request.app.state, "moderation", None)
        if services is None:
            return await call_next(request)
        text = await self._read_content(request)
        if text is None:
            return await call_next(request)

        actor_id = resolve_actor_id(request)
        verdict = await services.gate.check(actor_id, text)
        if isinstance(verdict, Rejected):
            logger.warning(
                "banned content blocked",
                extra={
                    "actor_id": actor_id,
                    "triggered_words": list(verdict.triggered_terms),
                    "reason": verdict.reason,
                    "warning_count": verdict.warning_count,
                    "content_excerpt": excerpt(text),
                },
            )
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content=banned_content_payload(verdict.triggered_terms),
            )
        if isinstance(verdict, Suspended):
            logger.info("suspended actor blocked", extra={"actor_id": actor_id})
            return JSONResponse(
                status_code=status.HTTP_403_FORBIDDEN,
                content=account_suspended_payload(verdict.remaining),
                headers={"Retry-After": str(max(1, math.ceil(verdict.remaining.total_seconds())))},
            )
        request.state.moderation_verdict = verdict
        return await call_next(request)

    @staticmethod
    async def _read_content(request: Request) -> str | None:
        content_type = request.headers.get("content-type", "")
        if "json" not in content_type.lower():
            return None
        raw = await request.body()
        if not raw:
            return None
        try:
            body = json.loads(raw)
        except ValueError:
            return None
        return extract_content(body)


class ViolationAuditMiddleware(BaseHTTPMiddleware):
    """Writes an audit event whenever a signed-in user gets a ``BANNED_CONTENT`` answer."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        if response.status_code != status.HTTP_400_BAD_REQUEST:
            return response
        if "json" not in (response.headers.get("content-type") or "").lower():
            return response
        user_id = (request.headers.get("X-User-Id") or "").strip()

        body = b"".join([chunk async for chunk in response.body_iterator])  # type: ignore[attr-defined]
        try:
            payload = json.loads(body)
        except ValueError:
            payload = None
        if user_id and isinstance(payload, Mapping) and payload.get("code") == BANNED_CONTENT_CODE:
            log_moderation_event(
                request,
                "moderation.violation_observed",
                actor_id=user_id,
                triggered_words=payload.get("triggeredWords") or (),
            )
        return Response(
            content=body,
            status_code=response.status_code,
            headers=dict(response.headers),
            media_type=response.media_type,
            background=response.background,
        )


def install(app, *, methods: Iterable[str] = ("POST", "PUT")) -> None:
    # The audit middleware wraps the filter so it sees the filter's rejections.
    app.add_middleware(ContentFilterMiddleware, methods=methods)
    app.add_middleware(ViolationAuditMiddleware)
