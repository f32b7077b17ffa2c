import re
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

# apostrophes vanish in place (don't -> dont); every other punctuation mark splits words
_APOSTROPHES = "'’‘`"
_DIGITS_RE = re.compile(r'\b\d+\b')
_APOSTROPHE_RE = re.compile('[' + re.escape(_APOSTROPHES) + ']')
_PUNCT_RE = re.compile(r'[^\w\s]|_')
_SPACE_RE = re.compile(r'\s+')


def _is_text(text) -> bool:
    # NaN from pandas is a float, None is missing
    return isinstance(text, str)


def clean_text(text) -> str:
    """Lowercase, drop standalone numbers and punctuation, collapse whitespace."""
    if not _is_text(text):
        return ''
    s = text.lower()
    s = _APOSTROPHE_RE.sub('', s)
    s = _PUNCT_RE.sub(' ', s)
    # after punctuation, so digits glued on with an underscore are split off first
    s = _DIGITS_RE.sub('', s)
    s = _SPACE_RE.sub(' ', s).strip()
    return s


def prepare_stopwords(stopwords: Optional[Iterable[str]]) -> frozenset:
    """Stopwords go through the same cleaning as the text so "it's" also removes "its"."""
    if not stopwords:
        return frozenset()
    out = set()
    for w in stopwords:
        out.update(clean_text(w).split())
        if _is_text(w):
            out.add(w.lower())
    return frozenset(out)


def normalize(text, stopwords: Optional[Iterable[str]] = None, min_length: int = 1) -> Tuple[str, ...]:
    stops = stopwords if isinstance(stopwords, frozenset) else prepare_stopwords(stopwords)
    s = clean_text(text)
    if not s:
        return ()
    return tuple(t for t in s.split(' ') if t and t not in stops and len(t) >= min_length)


class Normalizer:
    """Text → token tuple, bound to one stopword set.

    Missing text gives an empty tuple, never an exception, so every input
    record still produces a (possibly empty) document row.
    """

    def __init__(self, stopwords: Optional[Iterable[str]] = None, min_length: int = 1):
        self.stopwords = prepare_stopwords(stopwords)
        self.min_length = max(1, int(min_length))

    def __call__(self, text) -> Tuple[str, ...]:
        return normalize(text, self.stopwords, self.min_length)

    def normalize_many(self, texts: Sequence, n_jobs: int = 1) -> List[Tuple[str, ...]]:
        texts = list(texts)
        if n_jobs is None or n_jobs <= 1 or len(texts) < 2:
            return [self(t) for t in texts]
        logger.debug("normalizing %d texts on %d threads", len(texts), n_jobs)
        with ThreadPoolExecutor(max_workers=n_jobs) as pool:
            # map keeps input order
            return list(pool.map(self, texts))
