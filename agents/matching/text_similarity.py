"""String and vector similarity metrics used by the FAQ matcher."""
from __future__ import annotations

import re
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from agents.matching.lexicon import (
    ANTONYM_PAIRS,
    LANGUAGE_ABBREVIATIONS,
    LANGUAGE_KEYWORDS,
    TOPIC_CLUSTERS,
)

NEGATION_PENALTY = 0.4
CONTEXT_BONUS_PER_MATCH = 0.05
CONTEXT_BONUS_CAP = 0.2
WEIGHTS = {"jaccard": 0.3, "levenshtein": 0.2, "word_overlap": 0.3, "ngram": 0.2}

_WHITESPACE_RE = re.compile(r"\s+")
_PUNCTUATION_RE = re.compile(r"[^\w\s']")
_NON_WORD_RE = re.compile(r"[^\w]")
_KEYWORD_PATTERNS = {
    lang: re.compile(r"\b(?:" + "|".join(map(re.escape, words)) + r")\b")
    for lang, words in LANGUAGE_KEYWORDS.items()
}


def detect_language(text: str) -> str:
    """Pick the language whose keyword list matches most often; ties and zero hits keep English."""
    lowered = text.lower()
    best, best_hits = "en", 0
    for lang, pattern in _KEYWORD_PATTERNS.items():
        hits = len(pattern.findall(lowered))
        if hits > best_hits:
            best, best_hits = lang, hits
    return best


def expand_abbreviations(text: str, language: str = "en") -> str:
    abbreviations = LANGUAGE_ABBREVIATIONS.get(language) or LANGUAGE_ABBREVIATIONS["en"]
    return " ".join(abbreviations.get(_NON_WORD_RE.sub("", word), word) for word in text.split())


def normalize(text: str, language: str = "en") -> str:
    normalized = _WHITESPACE_RE.sub(" ", text.lower().strip())
    normalized = _PUNCTUATION_RE.sub("", normalized)
    return expand_abbreviations(normalized, language)


def jaccard(text1: str, text2: str) -> float:
    set1, set2 = set(text1.split()), set(text2.split())
    union = set1 | set2
    return len(set1 & set2) / len(union) if union else 0.0


def levenshtein_distance(s1: str, s2: str) -> int:
    if len(s1) < len(s2):
        s1, s2 = s2, s1
    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, 1):
        current = [i]
        for j, c2 in enumerate(s2, 1):
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + (c1 != c2)))
        previous = current
    return previous[-1]


def normalized_levenshtein(text1: str, text2: str) -> float:
    longest = max(len(text1), len(text2))
    return 1 - levenshtein_distance(text1, text2) / longest if longest else 1.0


def word_overlap(text1: str, text2: str) -> float:
    words1, words2 = text1.split(), text2.split()
    longest = max(len(words1), len(words2))
    if not longest:
        return 0.0
    vocabulary = set(words2)
    return sum(1 for w in words1 if w in vocabulary) / longest


def _ngrams(text: str, n: int) -> set[str]:
    return {text[i:i + n] for i in range(len(text) - n + 1)}


def ngram_similarity(text1: str, text2: str, n: int = 2) -> float:
    grams1, grams2 = _ngrams(text1, n), _ngrams(text2, n)
    union = grams1 | grams2
    return len(grams1 & grams2) / len(union) if union else 0.0


def negation_penalty(
    text1: str,
    text2: str,
    antonym_pairs: Iterable[Sequence[str]] = ANTONYM_PAIRS,
) -> float:
    """Flat penalty when the two texts each hold one half of an antonym pair (whole words only)."""
    words1, words2 = set(text1.lower().split()), set(text2.lower().split())
    for first, second in antonym_pairs:
        if (first in words1 and second in words2) or (second in words1 and first in words2):
            return NEGATION_PENALTY
    return 0.0


def _touches(word: str, cluster_word: str) -> bool:
    if word == cluster_word:
        return True
    # Substring relations only for real words, so "i" does not match "wifi".
    return len(word) >= 3 and (cluster_word in word or word in cluster_word)


def context_bonus(
    text1: str,
    text2: str,
    topic_clusters: Iterable[Sequence[str]] = TOPIC_CLUSTERS,
) -> float:
    """Bonus for the first topic cluster both texts touch, 0.05 per matching word, capped at 0.2."""
    words1, words2 = text1.lower().split(), text2.lower().split()
    for cluster in topic_clusters:
        matches1 = sum(1 for w in words1 if any(_touches(w, c) for c in cluster))
        matches2 = sum(1 for w in words2 if any(_touches(w, c) for c in cluster))
        if matches1 and matches2:
            return min(CONTEXT_BONUS_CAP, CONTEXT_BONUS_PER_MATCH * (matches1 + matches2))
    return 0.0


def enhanced_similarity(
    text1: str,
    text2: str,
    language: str = "en",
    *,
    antonym_pairs: Iterable[Sequence[str]] = ANTONYM_PAIRS,
    topic_clusters: Iterable[Sequence[str]] = TOPIC_CLUSTERS,
) -> float:
    """Weighted lexical score in [0, 1] with the negation penalty and context bonus applied."""
    n1, n2 = normalize(text1, language), normalize(text2, language)
    combined = (
        WEIGHTS["jaccard"] * jaccard(n1, n2)
        + WEIGHTS["levenshtein"] * normalized_levenshtein(n1, n2)
        + WEIGHTS["word_overlap"] * word_overlap(n1, n2)
        + WEIGHTS["ngram"] * ngram_similarity(n1, n2, 2)
    )
    score = max(0.0, combined - negation_penalty(n1, n2, antonym_pairs)) + context_bonus(n1, n2, topic_clusters)
    return min(1.0, max(0.0, score))


def basic_similarity(text1: str, text2: str) -> float:
    n1, n2 = text1.lower().strip(), text2.lower().strip()
    if n1 == n2:
        return 1.0
    return jaccard(n1, n2)


def cosine_similarity(a: Sequence[float] | None, b: Sequence[float] | None) -> float:
    if a is None or b is None or len(a) != len(b) or len(a) == 0:
        return 0.0
    va, vb = np.asarray(a, dtype=float), np.asarray(b, dtype=float)
    norm = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if norm == 0.0:
        return 0.0
    return float(np.dot(va, vb) / norm)


def as_pairs(raw: Iterable[Sequence[str]] | None) -> List[Tuple[str, str]] | None:
    """Coerce config-supplied antonym pairs (lists from JSON) to tuples; ``None`` keeps the defaults."""
    if raw is None:
        return None
    return [(str(p[0]).lower(), str(p[1]).lower()) for p in raw if len(p) == 2]


def as_clusters(raw: Iterable[Sequence[str]] | None) -> List[List[str]] | None:
    if raw is None:
        return None
    return [[str(w).lower() for w in cluster] for cluster in raw]
