"""
Keyword overlap scoring between a job query and a candidate document.
"""

import math
import re
from collections import Counter
from typing import FrozenSet, List

# Generic English stopwords plus words every resume and job post contains
STOPWORDS: FrozenSet[str] = frozenset(
    {
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
        "with", "by", "from", "up", "about", "into", "through", "during", "before",
        "after", "above", "below", "out", "off", "over", "under", "again", "further",
        "then", "once", "here", "there", "when", "where", "why", "how", "all", "any",
        "both", "each", "few", "more", "most", "other", "some", "such", "no", "nor",
        "not", "only", "own", "same", "so", "than", "too", "very", "s", "t", "can",
        "will", "just", "don", "should", "now",
        "work", "experience", "job", "position", "role", "company", "team", "years", "year",
    }
)  # fmt: skip

_PUNCTUATION = re.compile(r"[^\w\s]")
_NUMBER = re.compile(r"^\d+$")

# Query vocabulary counted for coverage is capped so long job posts are not penalized
COVERAGE_CAP = 10


def tokenize(
    text: str, min_length: int = 3, stopwords: FrozenSet[str] = STOPWORDS
) -> List[str]:
    """Lowercase, strip punctuation, split, drop short tokens, stopwords and pure numbers."""
    if not text:
        return []
    cleaned = _PUNCTUATION.sub(" ", text.lower())
    return [
        token
        for token in cleaned.split()
        if len(token) >= min_length and token not in stopwords and not _NUMBER.match(token)
    ]


class LexicalScorer:
    """
    Frequency-weighted keyword overlap with a coverage bonus.

    base = sum(log(qf+1) * log(df+1) for matched tokens) / sum(log(qf+1))
    coverage = distinct matched tokens / min(distinct query tokens, 10)
    score = base * (0.7 + 0.3 * coverage), clamped to [0, 1]

    The coverage term keeps a document that repeats one matching word
    from beating one that matches many different ones.
    """

    def __init__(self, min_token_length: int = 3, stopwords: FrozenSet[str] = STOPWORDS):
        self.min_token_length = min_token_length
        self.stopwords = stopwords

    def tokenize(self, text: str) -> List[str]:
        return tokenize(text, self.min_token_length, self.stopwords)

    def score(self, query_text: str, document_text: str) -> float:
        query_freq = Counter(self.tokenize(query_text))
        document_freq = Counter(self.tokenize(document_text))

        if not query_freq or not document_freq:
            return 0.0

        match_weight = 0.0
        total_weight = 0.0
        unique_matches = 0

        for token, query_count in query_freq.items():
            query_weight = math.log(query_count + 1)
            document_count = document_freq.get(token, 0)
            if document_count > 0:
                match_weight += query_weight * math.log(document_count + 1)
                unique_matches += 1
            total_weight += query_weight

        base_score = match_weight / total_weight if total_weight > 0 else 0.0
        coverage = unique_matches / min(len(query_freq), COVERAGE_CAP)
        final_score = base_score * (0.7 + 0.3 * coverage)

        return min(1.0, max(0.0, final_score))
