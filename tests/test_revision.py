"""
Tests for revision identifiers.

Tests cover:
- Strict parsing and formatting
- Numeric ordering
- Searching commit messages
- Latest-revision selection, including ties and empty candidate sets
"""

import itertools

import pytest

from branchsync.core.errors import AmbiguousRevision, NoCandidateFound
from branchsync.core.sync.revision import RevisionId, select_latest, sorted_revisions


class TestRevisionParse:
    """Tests for RevisionId.parse and try_parse."""

    def test_parse_valid_label(self) -> None:
        rev = RevisionId.parse("w1-26", "w1-")

        assert rev.number == 26
        assert rev.prefix == "w1-"
        assert rev.label == "w1-26"

    def test_format_returns_label(self) -> None:
        rev = RevisionId.parse("w1-9", "w1-")

        assert rev.format() == "w1-9"
        assert str(rev) == "w1-9"

    @pytest.mark.parametrize(
        "label",
        ["w1-", "w1-x", "w1-26a", "xw1-26", "de-26", "w1-2 6", "W1-26", "w1--26"],
    )
    def test_parse_rejects_non_matching(self, label: str) -> None:
        with pytest.raises(ValueError):
            RevisionId.parse(label, "w1-")

        assert RevisionId.try_parse(label, "w1-") is None

    def test_prefix_is_literal_not_regex(self) -> None:
        """Regex metacharacters in the prefix match literally."""
        assert RevisionId.try_parse("v1.5", "v1.") is not None
        assert RevisionId.try_parse("v1x5", "v1.") is None


class TestRevisionOrdering:
    """Tests for numeric ordering."""

    def test_orders_numerically_not_lexically(self) -> None:
        nine = RevisionId.parse("w1-9", "w1-")
        twenty_four = RevisionId.parse("w1-24", "w1-")

        assert nine < twenty_four
        assert max(nine, twenty_four) == twenty_four

    def test_equal_labels_are_equal(self) -> None:
        assert RevisionId.parse("w1-26", "w1-") == RevisionId.parse("w1-26", "w1-")

    def test_sorted_revisions_skips_non_matching(self) -> None:
        revisions = sorted_revisions(["w1-26", "main", "w1-9", "feature", "w1-24"], "w1-")

        assert [r.label for r in revisions] == ["w1-9", "w1-24", "w1-26"]


class TestRevisionSearch:
    """Tests for extracting a revision from commit messages."""

    def test_finds_revision_in_sync_message(self) -> None:
        rev = RevisionId.search("Sync to upstream w1-24", "w1-")

        assert rev is not None
        assert rev.label == "w1-24"

    def test_returns_first_match(self) -> None:
        rev = RevisionId.search("Sync to upstream w1-24\n\nPrevious: w1-22", "w1-")

        assert rev is not None
        assert rev.label == "w1-24"

    def test_returns_none_without_match(self) -> None:
        assert RevisionId.search("Initial commit", "w1-") is None


class TestSelectLatest:
    """Tests for select_latest."""

    def test_picks_highest_number(self) -> None:
        latest = select_latest({"w1-24", "w1-26", "w1-9"}, "w1-")

        assert latest.label == "w1-26"

    def test_invariant_under_reordering(self) -> None:
        labels = ["w1-24", "w1-26", "w1-9", "w1-100", "main"]

        results = {select_latest(list(p), "w1-").label for p in itertools.permutations(labels)}

        assert results == {"w1-100"}

    def test_ignores_other_prefixes(self) -> None:
        latest = select_latest(["de-99", "w1-3", "main"], "w1-")

        assert latest.label == "w1-3"

    def test_no_candidates_raises(self) -> None:
        with pytest.raises(NoCandidateFound) as exc_info:
            select_latest(["main", "feature-x"], "w1-", remote="upstream")

        assert exc_info.value.prefix == "w1-"
        assert "upstream" in str(exc_info.value)

    def test_empty_input_raises(self) -> None:
        with pytest.raises(NoCandidateFound):
            select_latest([], "w1-")

    def test_tie_on_highest_number_raises(self) -> None:
        with pytest.raises(AmbiguousRevision) as exc_info:
            select_latest(["w1-26", "w1-026", "w1-9"], "w1-")

        assert exc_info.value.number == 26
        assert sorted(exc_info.value.labels) == ["w1-026", "w1-26"]

    def test_tie_below_highest_is_ignored(self) -> None:
        latest = select_latest(["w1-09", "w1-9", "w1-10"], "w1-")

        assert latest.label == "w1-10"

    def test_duplicate_labels_are_not_a_tie(self) -> None:
        latest = select_latest(["w1-26", "w1-26"], "w1-")

        assert latest.label == "w1-26"
