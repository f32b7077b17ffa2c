import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from .lexicon import CATEGORIES, Lexicon

# curly quotes and backticks read as the plain apostrophe the lexicon uses
_APOSTROPHES = str.maketrans({'\u2019': "'", '\u2018': "'", '`': "'"})
# letters with inner apostrophes; digits, punctuation and spaces all separate tokens
_WORD_RE = re.compile(r"[^\W\d_]+(?:'[^\W\d_]+)*")


def sentiment_tokens(text) -> List[str]:
    if not isinstance(text, str):
        return []
    return _WORD_RE.findall(text.lower().translate(_APOSTROPHES))


@dataclass(frozen=True)
class SentimentProfile:
    categories: Tuple[str, ...]
    values: Tuple[int, ...]

    def __getitem__(self, category: str) -> int:
        return self.values[self.categories.index(category)]

    @property
    def total(self) -> int:
        return sum(self.values)

    def as_dict(self) -> Dict[str, int]:
        return dict(zip(self.categories, self.values))


class SentimentScorer:
    """Counts lexicon hits per emotion/polarity category for a raw review text.

    Works on the raw text with its own tokenizer, not on the normalized
    tokens used for the document-term matrix, so stopword removal never
    changes the emotion counts.
    """

    def __init__(self, lexicon: Lexicon):
        self.lexicon = lexicon
        self.categories = tuple(lexicon.categories)
        self._pos = {c: i for i, c in enumerate(self.categories)}

    def score(self, text) -> SentimentProfile:
        counts = [0] * len(self.categories)
        for tok in sentiment_tokens(text):
            # one token may hit several categories (e.g. negative and anger)
            for cat in self.lexicon.lookup(tok):
                counts[self._pos[cat]] += 1
        return SentimentProfile(self.categories, tuple(counts))

    def score_many(self, texts: Iterable) -> List[SentimentProfile]:
        return [self.score(t) for t in texts]

    def score_frame(self, texts: Sequence) -> pd.DataFrame:
        """One row per document, one column per category, plus a 1-based review_id."""
        profiles = self.score_many(texts)
        return profiles_to_frame(profiles, self.categories)


def profiles_to_frame(profiles: Sequence[SentimentProfile], categories: Sequence[str] = CATEGORIES) -> pd.DataFrame:
    df = pd.DataFrame([p.values for p in profiles], columns=list(categories), dtype='int64')
    df['review_id'] = range(1, len(df) + 1)
    return df


def sentiment_distribution(profiles: Sequence[SentimentProfile],
                           categories: Optional[Sequence[str]] = None) -> Dict[str, int]:
    """Total count per category over all documents.

    Summing keeps the mass: the grand total equals the sum of every
    profile's total over the selected categories.
    """
    if categories is None:
        categories = profiles[0].categories if profiles else CATEGORIES
    totals = {c: 0 for c in categories}
    for p in profiles:
        for c in categories:
            totals[c] += p[c]
    return totals
