"""Post validation, link extraction and quality scoring for user submissions."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Tuple
from urllib.parse import urlsplit

MIN_CONTENT_LENGTH = 10
MAX_CONTENT_LENGTH = 5000

_URL_RE = re.compile(r"https?://\S+", re.IGNORECASE)


@dataclass(frozen=True)
class PostValidation:
    valid: bool
    errors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class UrlExtraction:
    urls: Tuple[str, ...]
    valid: bool
    issues: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PostQuality:
    quality_score: int
    engagement: int


def validate_post(content: str, author: str) -> PostValidation:
    content = content if isinstance(content, str) else ""
    author = author if isinstance(author, str) else ""
    errors: list[str] = []
    if len(content.strip()) < MIN_CONTENT_LENGTH:
        errors.append(f"Content must be at least {MIN_CONTENT_LENGTH} characters")
    if len(content) > MAX_CONTENT_LENGTH:
        errors.append(f"Content must be less than {MAX_CONTENT_LENGTH} characters")
    if not content.strip():
        errors.append("Content cannot be only whitespace")
    if not author.strip():
        errors.append("Author is required")
    return PostValidation(valid=not errors, errors=tuple(errors))


def extract_and_validate_urls(content: str) -> UrlExtraction:
    """Return the distinct links in ``content`` in first-seen order.

    A link without a host (``http://``, ``https://:80``) or one that cannot be
    parsed is reported once under ``issues`` but still listed.
    """
    found = _URL_RE.findall(content) if isinstance(content, str) else []
    urls = tuple(dict.fromkeys(found))
    issues = tuple(f"Invalid URL: {url}" for url in urls if not _is_valid_url(url))
    return UrlExtraction(urls=urls, valid=not issues, issues=issues)


def calculate_post_quality(content: str, likes: int = 0, comments: int = 0, shares: int = 0) -> PostQuality:
    # Longer posts score up to 40, engagement is log-scaled up to 60.
    content_score = min(40.0, len(content or "") / 50)
    engagement = max(0, likes) * 2 + max(0, comments) * 5 + max(0, shares) * 10
    normalized = min(60.0, math.log(engagement + 1) * 10)
    return PostQuality(quality_score=math.floor(content_score + normalized + 0.5), engagement=int(engagement))


def _is_valid_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return False
    return bool(parts.hostname)
