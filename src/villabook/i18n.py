# Language negotiation — picks the UI language used in locale-prefixed paths.
# Created: 2026-10-19
#
# Only negotiation lives here; translation catalogs belong to the UI.

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)

SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "fr", "ru", "de")
DEFAULT_LANGUAGE = "en"


def is_supported(code: str | None) -> bool:
    return bool(code) and code in SUPPORTED_LANGUAGES


def normalize_language_code(code: str | None) -> str:
    """Reduce a language tag to a supported primary subtag.

    ``"FR-ca"`` -> ``"fr"``; empty, non-string or unsupported -> ``"en"``.
    """
    if not code or not isinstance(code, str):
        return DEFAULT_LANGUAGE
    primary = code.strip().lower().split("-")[0].split("_")[0]
    if primary in SUPPORTED_LANGUAGES:
        return primary
    return DEFAULT_LANGUAGE


def parse_accept_language(header: str | None) -> list[str]:
    """Return language tags from an Accept-Language header, best first.

    Entries with an unparseable or zero ``q`` are dropped. Ties keep
    header order.
    """
    if not header:
        return []

    weighted: list[tuple[float, int, str]] = []
    for index, part in enumerate(header.split(",")):
        piece = part.strip()
        if not piece:
            continue
        tag, _, params = piece.partition(";")
        q = 1.0
        params = params.strip()
        if params.startswith("q="):
            try:
                q = float(params[2:])
            except ValueError:
                continue
        if q <= 0:
            continue
        weighted.append((-q, index, tag.strip()))

    weighted.sort()
    return [tag for _, _, tag in weighted if tag and tag != "*"]


def negotiate_language(
    path_segment: str | None = None,
    stored: str | None = None,
    accept_language: str | None = None,
) -> str:
    """Choose the language: URL segment, then stored preference, then browser.

    Each source only counts when it names a supported language.
    """
    for candidate in (path_segment, stored):
        if candidate and is_supported(candidate.strip().lower()):
            return candidate.strip().lower()

    for tag in parse_accept_language(accept_language):
        primary = tag.lower().split("-")[0]
        if primary in SUPPORTED_LANGUAGES:
            return primary

    return DEFAULT_LANGUAGE


class LocaleState:
    """Holds the active language. ``get`` is the accessor handed to the API client."""

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        self._language = normalize_language_code(language)

    def get(self) -> str:
        return self._language

    def set(self, language: str | None) -> str:
        new = normalize_language_code(language)
        if new != self._language:
            logger.debug("Language changed %s -> %s", self._language, new)
        self._language = new
        return new
