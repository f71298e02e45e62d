import pytest

from competitor_ads.models import ClassificationResult, SkipLists
from competitor_ads.term_classifier import classify, normalize_locations


EMPTY_LISTS = SkipLists()


@pytest.mark.parametrize("term", [None, "", "   ", 12345, 0, 3.5, True, ["acme"]])
def test_invalid_terms_are_skipped(term) -> None:
    result = classify(term, EMPTY_LISTS, ["london"])

    assert result == ClassificationResult(skip=True, reason="Invalid search term")


def test_reserved_word_wins_regardless_of_position() -> None:
    skip_lists = SkipLists.from_values(reserved_words=["jobs", "cheap"])

    assert classify("roofing jobs near me", skip_lists).reason == "Contains reserved word: jobs"
    assert classify("cheap roofers", skip_lists).reason == "Contains reserved word: cheap"
    # First match in left-to-right order.
    assert classify("jobs cheap", skip_lists).reason == "Contains reserved word: jobs"


def test_reserved_word_is_checked_before_leading_word() -> None:
    skip_lists = SkipLists.from_values(reserved_words=["jobs"], leading_words=["roofing"])

    result = classify("roofing jobs", skip_lists)

    assert result.reason == "Contains reserved word: jobs"


def test_leading_word_only_matches_first_word() -> None:
    skip_lists = SkipLists.from_values(leading_words=["roofing"])

    assert classify("roofing specialist", skip_lists) == ClassificationResult(
        skip=True, reason="Starts with: roofing"
    )
    assert classify("acme roofing ltd", skip_lists) == ClassificationResult(skip=False, reason="")


def test_minor_location_on_two_word_term() -> None:
    skip_lists = SkipLists.from_values(minor_locations=["london"])

    result = classify("london roofing", skip_lists, [])

    assert result == ClassificationResult(skip=True, reason="Contains minor location: london")


def test_location_list_on_two_word_term() -> None:
    assert classify("acme roofing", EMPTY_LISTS, ["watford"]) == ClassificationResult(
        skip=False, reason=""
    )
    assert classify("acme watford", EMPTY_LISTS, ["watford"]) == ClassificationResult(
        skip=True, reason="Contains location"
    )


def test_minor_location_reason_takes_priority_over_location() -> None:
    skip_lists = SkipLists.from_values(minor_locations=["watford"])

    result = classify("watford roofing", skip_lists, ["watford"])

    assert result.reason == "Contains minor location: watford"


def test_three_word_terms_pass_location_rules() -> None:
    skip_lists = SkipLists.from_values(minor_locations=["london"])

    result = classify("north london roofing", skip_lists, ["london", "north"])

    assert result == ClassificationResult(skip=False, reason="")


def test_matching_is_case_insensitive_and_whitespace_tolerant() -> None:
    skip_lists = SkipLists.from_values(minor_locations=["London"])

    upper = classify("  LONDON    Roofing ", skip_lists)
    lower = classify("london roofing", skip_lists)

    assert upper == lower
    assert classify("Acme WATFORD", EMPTY_LISTS, [" Watford "]).reason == "Contains location"


def test_classify_is_repeatable() -> None:
    skip_lists = SkipLists.from_values(reserved_words=["free"], minor_locations=["leeds"])
    locations = ["york"]

    first = classify("acme york", skip_lists, locations)
    second = classify("acme york", skip_lists, locations)

    assert first == second == ClassificationResult(skip=True, reason="Contains location")
    assert locations == ["york"]


def test_skip_lists_normalize_sheet_values() -> None:
    skip_lists = SkipLists.from_values(
        reserved_words=[" Free ", "", None, 2024],
        leading_words=["HOW"],
    )

    assert skip_lists.reserved_words == frozenset({"free", "2024"})
    assert skip_lists.leading_words == frozenset({"how"})
    assert skip_lists.minor_locations == frozenset()


def test_skip_lists_constructor_normalizes_entries() -> None:
    skip_lists = SkipLists(reserved_words=frozenset({"JOBS "}), leading_words=frozenset({"How"}))

    assert classify("roofing jobs", skip_lists).reason == "Contains reserved word: jobs"
    assert classify("how to roof", skip_lists).reason == "Starts with: how"


def test_normalize_locations_is_reused_as_is() -> None:
    locations = normalize_locations([" Watford ", "YORK", "", None])

    assert locations == frozenset({"watford", "york"})
    assert normalize_locations(locations) is locations
    assert classify("acme york", EMPTY_LISTS, locations).reason == "Contains location"
