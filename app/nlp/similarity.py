"""Weighted multi-metric text similarity for knowledge-base matching.

Architectural role:
    Scores one user message against one knowledge-base question on a 0-100
    scale. `app.retrieval.retriever` calls `score_with_context` for every active
    entry; `app.core.engine` only ever sees the resulting numbers.

Scoring formula:
    score = 0.20 * levenshtein + 0.30 * jaccard + 0.30 * cosine + 0.20 * keyword

    Every sub-metric is itself scaled to 0-100 and operates on the trimmed,
    lower-cased inputs. The combined value is rounded to two decimals.

Contextual boosts (`score_with_context` only):
    - Tag boost: `min(5 * matched_tags, 15)`.
    - Answer boost: `min(0.1 * score(message, answer), 10)` when the answer
      similarity exceeds 30.
    - Final value is clamped to [0, 100].

Determinism:
    Pure functions, no I/O, no global state mutation. All metrics are symmetric
    in their two text arguments; vocabulary iteration is sorted so floating-point
    accumulation order does not depend on argument order.
"""

import math
import re
from collections import Counter
from typing import Iterable

from rapidfuzz.distance import Levenshtein


# =========================================================
# WEIGHTS AND BOOSTS
# =========================================================

LEVENSHTEIN_WEIGHT = 0.20
JACCARD_WEIGHT = 0.30
COSINE_WEIGHT = 0.30
KEYWORD_WEIGHT = 0.20

KEYWORD_MIN_LENGTH = 3
KEYWORD_PATTERN = re.compile(r"\b\w{%d,}\b" % KEYWORD_MIN_LENGTH)

TAG_BOOST_PER_MATCH = 5
TAG_BOOST_CAP = 15

ANSWER_BOOST_THRESHOLD = 30
ANSWER_BOOST_FACTOR = 0.1
ANSWER_BOOST_CAP = 10

MAX_SCORE = 100.0
MIN_SCORE = 0.0


def normalize(text: str) -> str:
    """Trim and lower-case text; `None` is treated as an empty string."""
    if not text:
        return ""
    return str(text).strip().lower()


# =========================================================
# SUB-METRICS
# =========================================================

def levenshtein_distance(first: str, second: str) -> int:
    """Return the single-character insert/delete/substitute edit distance."""
    return Levenshtein.distance(first, second)


def levenshtein_similarity(first: str, second: str) -> float:
    """Normalized edit similarity: `100 * (max_len - distance) / max_len`."""
    max_length = max(len(first), len(second))
    if max_length == 0:
        return MAX_SCORE
    distance = levenshtein_distance(first, second)
    return (max_length - distance) / max_length * 100


def jaccard_similarity(first: str, second: str) -> float:
    """Whitespace word-set overlap; two empty texts are identical by convention."""
    words_a = set(first.split())
    words_b = set(second.split())
    union = words_a | words_b
    if not union:
        return MAX_SCORE
    return len(words_a & words_b) / len(union) * 100


def cosine_similarity(first: str, second: str) -> float:
    """Cosine of whitespace term-frequency vectors, scaled to 0-100.

    Edge cases:
        - Zero-magnitude vector (empty text) returns 0.
    """
    freq_a = Counter(first.split())
    freq_b = Counter(second.split())

    dot_product = 0
    magnitude_a = 0
    magnitude_b = 0

    for word in sorted(freq_a.keys() | freq_b.keys()):
        count_a = freq_a.get(word, 0)
        count_b = freq_b.get(word, 0)
        dot_product += count_a * count_b
        magnitude_a += count_a * count_a
        magnitude_b += count_b * count_b

    if magnitude_a == 0 or magnitude_b == 0:
        return MIN_SCORE

    return dot_product / (math.sqrt(magnitude_a) * math.sqrt(magnitude_b)) * 100


def extract_keywords(text: str) -> set[str]:
    """Return the set of word tokens with at least `KEYWORD_MIN_LENGTH` characters."""
    return set(KEYWORD_PATTERN.findall(text))


def keyword_similarity(first: str, second: str) -> float:
    """Jaccard overlap restricted to keyword tokens.

    Edge cases:
        - Both keyword sets empty -> 100.
        - Exactly one keyword set empty -> 0.
    """
    keywords_a = extract_keywords(first)
    keywords_b = extract_keywords(second)

    if not keywords_a and not keywords_b:
        return MAX_SCORE
    if not keywords_a or not keywords_b:
        return MIN_SCORE

    return len(keywords_a & keywords_b) / len(keywords_a | keywords_b) * 100


# =========================================================
# PUBLIC SCORING API
# =========================================================

def score(user_message: str, candidate_question: str) -> float:
    """Return the weighted ensemble similarity of two texts in [0, 100].

    Args:
        user_message: Raw inbound message text.
        candidate_question: Knowledge-base question text.

    Returns:
        Similarity rounded to two decimals.

    Edge cases:
        - Identical after normalization (including both empty) -> 100.
        - Exactly one side empty after normalization -> 0.
    """
    message = normalize(user_message)
    question = normalize(candidate_question)

    if message == question:
        return MAX_SCORE
    if not message or not question:
        return MIN_SCORE

    weighted = (
        levenshtein_similarity(message, question) * LEVENSHTEIN_WEIGHT
        + jaccard_similarity(message, question) * JACCARD_WEIGHT
        + cosine_similarity(message, question) * COSINE_WEIGHT
        + keyword_similarity(message, question) * KEYWORD_WEIGHT
    )

    return round(min(max(weighted, MIN_SCORE), MAX_SCORE), 2)


def count_tag_matches(user_message: str, tags: Iterable[str]) -> int:
    """Count tags that overlap (substring in either direction) any message word.

    Blank tags are ignored; an empty substring would otherwise match every word.
    """
    words = normalize(user_message).split()
    if not words:
        return 0

    matches = 0
    for tag in tags or ():
        tag_text = normalize(tag)
        if not tag_text:
            continue
        if any(tag_text in word or word in tag_text for word in words):
            matches += 1
    return matches


def score_with_context(
    user_message: str,
    candidate_question: str,
    candidate_answer: str,
    candidate_tags: Iterable[str] = (),
) -> float:
    """Return `score` plus tag and answer-overlap boosts, clamped to [0, 100].

    The answer boost uses the plain ensemble (`score`) and never recurses into
    contextual boosting.
    """
    result = score(user_message, candidate_question)

    tag_matches = count_tag_matches(user_message, candidate_tags)
    if tag_matches > 0:
        result += min(TAG_BOOST_PER_MATCH * tag_matches, TAG_BOOST_CAP)

    answer_similarity = score(user_message, candidate_answer)
    if answer_similarity > ANSWER_BOOST_THRESHOLD:
        result += min(answer_similarity * ANSWER_BOOST_FACTOR, ANSWER_BOOST_CAP)

    return round(min(max(result, MIN_SCORE), MAX_SCORE), 2)
