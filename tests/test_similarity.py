"""
Tests for weighted multi-metric similarity and contextual boosts.
"""

import pytest

from app.nlp.similarity import (
    ANSWER_BOOST_CAP,
    TAG_BOOST_CAP,
    cosine_similarity,
    count_tag_matches,
    extract_keywords,
    jaccard_similarity,
    keyword_similarity,
    levenshtein_distance,
    levenshtein_similarity,
    score,
    score_with_context,
)


PAIRS = [
    ("How do I add a new client?", "How can I add a new client?"),
    ("what are your office hours", "office hours please"),
    ("كيف أجدول موعد؟", "كيف أضيف عميل جديد؟"),
    ("price of villa", "How do I generate reports?"),
    ("a", "completely unrelated sentence here"),
]


class TestSubMetrics:
    """Individual 0-100 metrics"""

    def test_levenshtein_distance_classic(self):
        """kitten -> sitting needs three edits"""
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_levenshtein_distance_empty(self):
        """Distance to an empty string is the other length"""
        assert levenshtein_distance("", "abc") == 3
        assert levenshtein_distance("abc", "") == 3
        assert levenshtein_distance("", "") == 0

    def test_levenshtein_similarity_both_empty(self):
        """Two empty strings are identical"""
        assert levenshtein_similarity("", "") == 100.0

    def test_levenshtein_similarity_normalized(self):
        """One substitution over four characters -> 75"""
        assert levenshtein_similarity("abcd", "abce") == pytest.approx(75.0)

    def test_jaccard_overlap(self):
        """One shared word out of three distinct words"""
        assert jaccard_similarity("a b", "b c") == pytest.approx(100 / 3)

    def test_jaccard_both_empty(self):
        """Empty union counts as identical"""
        assert jaccard_similarity("", "") == 100.0

    def test_cosine_identical_frequencies(self):
        """Same term-frequency vectors -> 100"""
        assert cosine_similarity("a b a", "a a b") == pytest.approx(100.0)

    def test_cosine_empty_side(self):
        """Zero-magnitude vector -> 0"""
        assert cosine_similarity("", "a b") == 0.0

    def test_cosine_disjoint(self):
        """No shared words -> 0"""
        assert cosine_similarity("a b", "c d") == 0.0

    def test_keywords_require_three_chars(self):
        """Tokens shorter than three characters are not keywords"""
        assert extract_keywords("i am at the office") == {"the", "office"}

    def test_keywords_include_arabic_words(self):
        """Unicode word tokens count as keywords"""
        assert "موعد" in extract_keywords("كيف أجدول موعد")

    def test_keyword_similarity_both_empty(self):
        """No keywords on either side -> 100"""
        assert keyword_similarity("a b", "c d") == 100.0

    def test_keyword_similarity_one_empty(self):
        """Keywords on only one side -> 0"""
        assert keyword_similarity("a b", "office") == 0.0


class TestScore:
    """Weighted ensemble score"""

    def test_identity(self):
        """Identical texts score exactly 100"""
        assert score("How do I add a new client?", "How do I add a new client?") == 100.0

    def test_identity_after_normalization(self):
        """Case and surrounding whitespace are ignored"""
        assert score("  OFFICE Hours ", "office hours") == 100.0

    def test_both_empty(self):
        """Two empty texts are identical"""
        assert score("", "") == 100.0

    def test_one_side_empty(self):
        """One empty text scores 0"""
        assert score("", "office hours") == 0.0
        assert score("office hours", "   ") == 0.0

    @pytest.mark.parametrize("first,second", PAIRS)
    def test_symmetry(self, first, second):
        """score(a, b) == score(b, a)"""
        assert score(first, second) == score(second, first)

    @pytest.mark.parametrize("first,second", PAIRS)
    def test_range(self, first, second):
        """Every score lies within [0, 100]"""
        assert 0.0 <= score(first, second) <= 100.0

    def test_weighted_combination(self):
        """Near-paraphrase combines the four metrics with fixed weights"""
        # levenshtein 88.89, jaccard 75, cosine 85.71, keyword 80
        assert score("How can I add a new client?", "How do I add a new client?") == pytest.approx(81.99, abs=0.01)

    def test_rounded_to_two_decimals(self):
        """Scores carry at most two decimals"""
        value = score("what are your office hours", "office hours please")
        assert value == round(value, 2)

    def test_paraphrase_beats_unrelated(self):
        """A close paraphrase outranks an unrelated question"""
        message = "how do i add a client"
        assert score(message, "How do I add a new client?") > score(message, "What are your office hours?")


class TestTagMatches:
    """Tag overlap counting"""

    def test_exact_word_match(self):
        """A tag equal to a message word counts"""
        assert count_tag_matches("book an appointment", ["appointment"]) == 1

    def test_substring_either_direction(self):
        """Substring containment in either direction counts"""
        assert count_tag_matches("appointments please", ["appointment"]) == 1
        assert count_tag_matches("client", ["clients"]) == 1

    def test_blank_tags_ignored(self):
        """Empty tags never match"""
        assert count_tag_matches("anything here", ["", "   "]) == 0

    def test_empty_message(self):
        """No words -> no matches"""
        assert count_tag_matches("", ["client"]) == 0


class TestScoreWithContext:
    """Contextual boosts"""

    def test_new_client_paraphrase_reaches_high_confidence(self):
        """Base ~82 plus three tag matches crosses 90"""
        result = score_with_context(
            "How can I add a new client?",
            "How do I add a new client?",
            "You can add a new client by going to the Clients section and clicking 'Add Client'.",
            ["client", "add", "contact"],
        )
        assert result >= 90.0

    def test_tag_boost_capped(self):
        """Tag boost never exceeds the cap"""
        base = score("alpha beta gamma delta", "unrelated words entirely")
        boosted = score_with_context(
            "alpha beta gamma delta",
            "unrelated words entirely",
            "",
            ["alpha", "beta", "gamma", "delta"],
        )
        assert boosted - base == pytest.approx(TAG_BOOST_CAP)

    def test_answer_boost_requires_threshold(self):
        """An answer unrelated to the message adds nothing"""
        base = score("office hours", "when are you open")
        assert score_with_context("office hours", "when are you open", "zzz qqq xxx") == base

    def test_answer_boost_capped(self):
        """Answer boost is at most ten points"""
        message = "we are open sunday to thursday"
        base = score(message, "schedule")
        boosted = score_with_context(message, "schedule", message)
        assert boosted - base == pytest.approx(ANSWER_BOOST_CAP)

    def test_clamped_to_100(self):
        """Boosted identity never exceeds 100"""
        result = score_with_context("office hours", "office hours", "office hours", ["office", "hours"])
        assert result == 100.0

    @pytest.mark.parametrize("first,second", PAIRS)
    def test_range(self, first, second):
        """Contextual scores stay within [0, 100]"""
        assert 0.0 <= score_with_context(first, second, second, ["client", "office"]) <= 100.0
