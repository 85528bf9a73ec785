"""Text canonicalization shared by every enforcement gate."""

from __future__ import annotations

import re

_FOLDS = str.maketrans(
    {
        "é": "e",
        "è": "e",
        "ê": "e",
        "ë": "e",
        "à": "a",
        "â": "a",
        "ä": "a",
        "ô": "o",
        "ö": "o",
        "û": "u",
        "ü": "u",
        "î": "i",
        "ç": "c",
        "œ": "oe",
        "æ": "ae",
    }
)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def normalize(text: object) -> str:
    """Lower-case, fold accents, and blank out everything outside ``[a-z0-9]``.

    Each removed character becomes exactly one space; runs are not collapsed.
    Non-string input normalizes to ``""``.
    """
    if not isinstance(text, str) or not text:
        return ""
    folded = text.lower().translate(_FOLDS)
    return _NON_ALNUM_RE.sub(" ", folded)


def tokenize(text: object) -> list[str]:
    return normalize(text).split()


def normalize_term(term: object) -> str:
    """Canonical form used for configured terms: normalized, single-spaced."""
    return " ".join(tokenize(term))
