"""Banned-term detection over normalized tokens."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from jobboard.moderation.domain.normalizer import tokenize


def detect(
    text: object,
    banned_terms: Iterable[str],
    *,
    min_reverse_token_length: int = 2,
) -> list[str]:
    """Return the distinct banned terms found in ``text``.

    A term matches a token when the token contains the term or, for tokens of at
    least ``min_reverse_token_length`` characters, when the term contains the
    token. Terms are reported once, in order of first discovery.
    """
    tokens = tokenize(text)
    if not tokens:
        return []
    found: list[str] = []
    seen: set[str] = set()
    for term in banned_terms:
        if not term or term in seen:
            continue
        for token in tokens:
            if term in token or (len(token) >= min_reverse_token_length and token in term):
                found.append(term)
                seen.add(term)
                break
    return found


@dataclass(frozen=True)
class TermMatcher:
    """Binds a banned-term list to :func:`detect`."""

    banned_terms: Sequence[str]
    min_reverse_token_length: int = 2

    def detect(self, text: object) -> list[str]:
        return detect(
            text,
            self.banned_terms,
            min_reverse_token_length=self.min_reverse_token_length,
        )
