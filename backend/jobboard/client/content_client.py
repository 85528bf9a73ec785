"""HTTP client that runs the local gate before posting user content."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

import httpx

from jobboard.client.dialog import WarningDialog
from jobboard.client.gate import ClientGate
from jobboard.moderation.contract import ACCOUNT_SUSPENDED_CODE, BANNED_CONTENT_CODE, extract_content
from jobboard.moderation.domain.verdicts import Allowed, Suspended, Verdict

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    verdict: Verdict
    submitted: bool
    response: Optional[httpx.Response] = None
    dialog: Optional[WarningDialog] = None


class ContentClient:
    """Submits posts and comments through :class:`ClientGate` and the API.

    Text the local gate blocks is never sent. Server rejections override a local
    pass: ``BANNED_CONTENT`` is recorded in the local ledger and
    ``ACCOUNT_SUSPENDED`` is returned as a :class:`Suspended` verdict.
    """

    def __init__(self, http: httpx.AsyncClient, gate: ClientGate) -> None:
        self._http = http
        self._gate = gate

    async def submit(
        self,
        actor_id: str | int,
        path: str,
        payload: Mapping[str, Any],
        *,
        method: str = "POST",
        now: Optional[datetime] = None,
    ) -> SubmissionResult:
        text = extract_content(payload)
        verdict: Verdict = Allowed()
        if text is not None:
            verdict = await self._gate.check(actor_id, text, now)
            if not verdict.allowed:
                return SubmissionResult(verdict=verdict, submitted=False, dialog=self._gate.dialog_for(verdict))

        response = await self._http.request(
            method,
            path,
            json=dict(payload),
            headers={"X-User-Id": str(actor_id)},
        )
        server_verdict = await self._server_verdict(actor_id, response, now)
        if server_verdict is not None:
            return SubmissionResult(
                verdict=server_verdict,
                submitted=False,
                response=response,
                dialog=self._gate.dialog_for(server_verdict),
            )
        return SubmissionResult(verdict=verdict, submitted=True, response=response)

    async def _server_verdict(
        self,
        actor_id: str | int,
        response: httpx.Response,
        now: Optional[datetime],
    ) -> Optional[Verdict]:
        if response.status_code not in (400, 403):
            return None
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, Mapping):
            return None
        code = body.get("code")
        if response.status_code == 400 and code == BANNED_CONTENT_CODE:
            terms = [str(term) for term in body.get("triggeredWords") or ()]
            logger.info("server rejected content the local gate allowed", extra={"triggered_words": terms})
            return await self._gate.record_server_rejection(actor_id, terms, now)
        if response.status_code == 403 and code == ACCOUNT_SUSPENDED_CODE:
            remaining_ms = body.get("remainingMs")
            remaining = timedelta(milliseconds=remaining_ms if isinstance(remaining_ms, int) else 0)
            return Suspended(remaining=remaining)
        return None
