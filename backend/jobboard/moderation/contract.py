"""Wire contract shared by the API middleware and the client SDK."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Mapping, Sequence

from jobboard.moderation.domain.suspension import format_remaining

BANNED_CONTENT_CODE = "BANNED_CONTENT"
ACCOUNT_SUSPENDED_CODE = "ACCOUNT_SUSPENDED"

BANNED_CONTENT_ERROR = "Contenu non autorisé détecté"
BANNED_CONTENT_MESSAGE = (
    "En raison du respect des règles de notre communauté professionnelle, les mots ou expressions "
    "insultants, discriminatoires ou inappropriés ne sont pas tolérés."
)
ACCOUNT_SUSPENDED_ERROR = "Compte temporairement suspendu"
ACCOUNT_SUSPENDED_MESSAGE = (
    "Suite à de multiples violations des règles de la communauté, votre compte a été "
    "temporairement suspendu pour publier ou commenter. Reprendre dans : {remaining}"
)

CONTENT_FIELDS = ("content", "text")


def banned_content_payload(triggered_words: Sequence[str]) -> dict[str, Any]:
    return {
        "success": False,
        "error": BANNED_CONTENT_ERROR,
        "message": BANNED_CONTENT_MESSAGE,
        "triggeredWords": list(triggered_words),
        "code": BANNED_CONTENT_CODE,
    }


def account_suspended_payload(remaining: timedelta) -> dict[str, Any]:
    label = format_remaining(remaining)
    return {
        "success": False,
        "error": ACCOUNT_SUSPENDED_ERROR,
        "message": ACCOUNT_SUSPENDED_MESSAGE.format(remaining=label),
        "code": ACCOUNT_SUSPENDED_CODE,
        "remainingMs": int(remaining.total_seconds() * 1000),
        "remaining": label,
    }


def extract_content(body: Any) -> str | None:
    """Return the submitted text of a JSON body, checking ``content`` then ``text``."""
    if not isinstance(body, Mapping):
        return None
    value = body.get(CONTENT_FIELDS[0]) or body.get(CONTENT_FIELDS[1])
    if isinstance(value, str) and value:
        return value
    return None
