"""
Text similarity primitives shared by the review stages.

All functions are pure: no state, no I/O.
"""

import re
from typing import Iterable, Optional

WORD_SPLIT = re.compile(r"\W+")
NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")

# Keywords kept per text by token_jaccard
MAX_TOKENS = 50


def levenshtein_distance(a: str, b: str) -> int:
    """Classic edit distance with unit cost insert/delete/substitute."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], previous[j], current[j - 1]) + 1)
        previous = current
    return previous[-1]


def edit_similarity(a: str, b: str) -> float:
    """Levenshtein similarity normalized by the longer string, in [0, 1].

    Two empty strings are identical (1.0).
    """
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def tokenize(
    text: str,
    min_word_len: int = 0,
    stop_words: Optional[Iterable[str]] = None,
    limit: Optional[int] = None,
) -> list[str]:
    """Split lower-cased text on non-word characters.

    Keeps tokens longer than `min_word_len` that are not stop words, in
    document order, truncated to `limit` tokens.
    """
    stop = set(stop_words or ())
    tokens = [
        token
        for token in WORD_SPLIT.split(text.lower())
        if len(token) > min_word_len and token not in stop
    ]
    return tokens[:limit] if limit is not None else tokens


def token_jaccard(
    a: str,
    b: str,
    min_word_len: int = 3,
    stop_words: Optional[Iterable[str]] = None,
) -> float:
    """Jaccard index of the keyword sets of two texts."""
    stop = set(stop_words or ())
    words_a = set(tokenize(a, min_word_len, stop, MAX_TOKENS))
    words_b = set(tokenize(b, min_word_len, stop, MAX_TOKENS))
    union = words_a | words_b
    if not union:
        return 0.0
    return len(words_a & words_b) / len(union)


def keyword_overlap(text_a: str, text_b: str, keywords: Iterable[str]) -> float:
    """Share of touched keywords that appear in both texts.

    A keyword is touched when it occurs (as a substring) in either text and
    matched when it occurs in both. Returns 0.0 if nothing is touched.
    """
    lower_a = text_a.lower()
    lower_b = text_b.lower()
    touched = 0
    matched = 0
    for keyword in keywords:
        in_a = keyword in lower_a
        in_b = keyword in lower_b
        if in_a or in_b:
            touched += 1
            if in_a and in_b:
                matched += 1
    return matched / touched if touched else 0.0


def word_jaccard(a: str, b: str, min_word_len: int = 3) -> float:
    """Jaccard index over whitespace-separated words longer than `min_word_len`.

    Returns 0.0 when the two word sets do not intersect.
    """
    words_a = {word for word in a.lower().split() if len(word) > min_word_len}
    words_b = {word for word in b.lower().split() if len(word) > min_word_len}
    intersection = words_a & words_b
    if not intersection:
        return 0.0
    return len(intersection) / len(words_a | words_b)


def concept_similarity(a: str, b: str, keywords: Iterable[str]) -> float:
    """Business concept similarity: 40% word overlap, 60% keyword overlap."""
    return word_jaccard(a, b) * 0.4 + keyword_overlap(a, b, keywords) * 0.6


def normalize_name(name: str) -> str:
    """Lower-case a name and drop every non-alphanumeric character."""
    return NON_ALPHANUMERIC.sub("", name.lower())


def present_keywords(text: str, keywords: Iterable[str]) -> list[str]:
    """Keywords occurring as substrings of the lower-cased text, in table order."""
    lower = text.lower()
    return [keyword for keyword in keywords if keyword in lower]


def count_present(text: str, keywords: Iterable[str]) -> int:
    """Number of distinct keywords occurring in the text."""
    return len(present_keywords(text, keywords))


def count_whole_words(text: str, keyword: str) -> int:
    """Case-insensitive whole-word occurrences of keyword in text."""
    pattern = re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)
    return len(pattern.findall(text))


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
