"""Slug normalization, validation and unique slug generation."""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, Optional

MIN_LENGTH = 3
MAX_LENGTH = 50
FALLBACK_SLUG = "restaurante"
MAX_ATTEMPTS = 1000

# Slugs that would shadow fixed application routes.
RESERVED_WORDS = frozenset(
    {
        "admin",
        "login",
        "auth",
        "api",
        "assets",
        "dashboard",
        "r",
        "settings",
        "menu",
        "public",
        "static",
        "null",
        "undefined",
        "www",
        "app",
        "help",
        "support",
        "contact",
        "about",
        "terms",
        "privacy",
        "blog",
        "news",
    }
)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_DISALLOWED = re.compile(r"[^a-z0-9-]")
_HYPHEN_RUN = re.compile(r"-+")


class SlugError(str, Enum):
    """Reason a candidate slug was rejected."""

    MISSING = "MISSING"
    TOO_SHORT = "TOO_SHORT"
    TOO_LONG = "TOO_LONG"
    BAD_FORMAT = "BAD_FORMAT"
    RESERVED = "RESERVED"


SLUG_ERROR_MESSAGES = {
    SlugError.MISSING: "A slug is required.",
    SlugError.TOO_SHORT: f"The slug must be at least {MIN_LENGTH} characters long.",
    SlugError.TOO_LONG: f"The slug cannot be longer than {MAX_LENGTH} characters.",
    SlugError.BAD_FORMAT: (
        "The slug may only contain lowercase letters, numbers and single "
        "hyphens, and cannot start or end with a hyphen."
    ),
    SlugError.RESERVED: "The slug is a reserved word and cannot be used.",
}


@dataclass(frozen=True)
class SlugValidation:
    """Outcome of :func:`validate_slug`."""

    is_valid: bool
    error: Optional[SlugError] = None

    @property
    def message(self) -> Optional[str]:
        if self.error is None:
            return None
        return SLUG_ERROR_MESSAGES[self.error]


class GenerationExhausted(RuntimeError):
    """Raised when no free slug was found within ``MAX_ATTEMPTS`` attempts."""

    def __init__(self, base: str, attempts: int = MAX_ATTEMPTS):
        super().__init__(
            f"Could not generate a unique slug from {base!r} after {attempts} attempts"
        )
        self.base = base
        self.attempts = attempts


def normalize_slug(value) -> str:
    """Return the canonical URL-safe form of ``value``.

    Lowercases, strips diacritics after NFD decomposition, replaces anything
    outside ``[a-z0-9-]`` with a hyphen, collapses hyphen runs and trims
    hyphens at both ends. Non-string and empty input yield ``""``.
    """

    if not value or not isinstance(value, str):
        return ""
    text = unicodedata.normalize("NFD", value.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _DISALLOWED.sub("-", text)
    text = _HYPHEN_RUN.sub("-", text)
    return text.strip("-")


def canonicalize_slug(slug) -> str:
    """Return the canonical form of ``slug``."""
    return normalize_slug(slug)


def slugs_are_equivalent(first, second) -> bool:
    """Return True when both slugs share the same canonical form."""
    return normalize_slug(first) == normalize_slug(second)


def validate_slug(slug) -> SlugValidation:
    """Check ``slug`` against length, format and reserved-word rules.

    Checks run in order and stop at the first failure.
    """

    if not slug or not isinstance(slug, str):
        return SlugValidation(False, SlugError.MISSING)
    if len(slug) < MIN_LENGTH:
        return SlugValidation(False, SlugError.TOO_SHORT)
    if len(slug) > MAX_LENGTH:
        return SlugValidation(False, SlugError.TOO_LONG)
    if not SLUG_PATTERN.match(slug):
        return SlugValidation(False, SlugError.BAD_FORMAT)
    if slug in RESERVED_WORDS:
        return SlugValidation(False, SlugError.RESERVED)
    return SlugValidation(True)


def _with_suffix(base: str, number: int) -> str:
    """Append ``-<number>``, trimming ``base`` so the result fits ``MAX_LENGTH``."""
    suffix = f"-{number}"
    return base[: MAX_LENGTH - len(suffix)].rstrip("-") + suffix


async def generate_unique_slug(
    text, exists: Callable[[str], Awaitable[bool]]
) -> str:
    """Return the first free slug derived from ``text``.

    Tries ``base``, ``base-1``, ``base-2`` ... through ``exists`` and raises
    :class:`GenerationExhausted` after ``MAX_ATTEMPTS`` taken candidates.
    """

    base = normalize_slug(text)
    if not base or not validate_slug(base).is_valid:
        base = FALLBACK_SLUG

    for attempt in range(MAX_ATTEMPTS):
        candidate = base if attempt == 0 else _with_suffix(base, attempt)
        if not await exists(candidate):
            return candidate
    raise GenerationExhausted(base)


def generate_slug_suggestions(text) -> List[str]:
    """Return valid slug suggestions for a display name."""

    base = normalize_slug(text)
    if not base:
        return []

    suggestions = [base]
    suggestions.extend(_with_suffix(base, i) for i in range(1, 4))

    words = text.lower().split()
    if len(words) >= 2:
        short = normalize_slug(" ".join(words[:2]))
        if short and short != base:
            suggestions.append(short)
        initials = normalize_slug("".join(word[0] for word in words))
        if len(initials) >= MIN_LENGTH:
            suggestions.append(initials)

    unique = list(dict.fromkeys(suggestions))
    return [slug for slug in unique if validate_slug(slug).is_valid]
