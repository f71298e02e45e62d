from __future__ import annotations

from typing import Collection

from competitor_ads.models import ClassificationResult, SkipLists


INVALID_TERM_REASON = "Invalid search term"
LOCATION_REASON = "Contains location"


def _split_words(term: str) -> list[str]:
    return term.lower().split()


def _skip_list_reason(words: list[str], skip_lists: SkipLists) -> str:
    for word in words:
        if word in skip_lists.reserved_words:
            return f"Contains reserved word: {word}"

    if words[0] in skip_lists.leading_words:
        return f"Starts with: {words[0]}"

    # TODO: extend the location rules to three-word terms such as
    # "north london roofing" once reserved/leading words are combined with them.
    if len(words) == 2:
        for word in words:
            if word in skip_lists.minor_locations:
                return f"Contains minor location: {word}"
    return ""


def normalize_locations(locations: Collection[object]) -> frozenset[str]:
    """Lowercase and trim a location list once so it can be reused across terms."""
    if isinstance(locations, frozenset):
        return locations
    cleaned = (str(location).strip().lower() for location in locations if location)
    return frozenset(location for location in cleaned if location)


def _contains_location(words: list[str], locations: frozenset[str]) -> bool:
    if len(words) != 2:
        return False
    return any(word in locations for word in words)


def classify(
    term: object,
    skip_lists: SkipLists,
    locations: Collection[object] = (),
) -> ClassificationResult:
    """Decide whether a search term is skipped before the registry lookup.

    Rules run in a fixed order and the first match wins: reserved word
    anywhere, leading word, minor location (two-word terms), configured
    location (two-word terms). Anything that is not a non-blank ``str`` is
    rejected as an invalid term. Never raises.

    A ``frozenset`` of locations is taken as already normalised; pass the
    result of ``normalize_locations`` when classifying many terms.
    """
    if not isinstance(term, str) or not term.strip():
        return ClassificationResult(skip=True, reason=INVALID_TERM_REASON)

    words = _split_words(term)
    reason = _skip_list_reason(words, skip_lists)
    if reason:
        return ClassificationResult(skip=True, reason=reason)

    if _contains_location(words, normalize_locations(locations)):
        return ClassificationResult(skip=True, reason=LOCATION_REASON)

    return ClassificationResult(skip=False, reason="")
