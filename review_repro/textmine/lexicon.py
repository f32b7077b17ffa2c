import os
import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)

# NRC EmoLex column order: eight emotions, then the two polarities
EMOTIONS = ('anger', 'anticipation', 'disgust', 'fear', 'joy', 'sadness', 'surprise', 'trust')
POLARITIES = ('negative', 'positive')
CATEGORIES = EMOTIONS + POLARITIES

LEXICON_DIR = os.path.join(os.path.dirname(__file__), 'lexicons')
DEFAULT_LEXICON_PATH = os.path.join(LEXICON_DIR, 'nrc_emotion_sample.txt')

_EMPTY: FrozenSet[str] = frozenset()


def _ensure_nltk():
    import nltk
    try:
        nltk.data.find('corpora/stopwords')
    except LookupError:
        nltk.download('stopwords', quiet=True)


def english_stopwords() -> FrozenSet[str]:
    """English stopword list from NLTK; the corpus is fetched on first use."""
    _ensure_nltk()
    from nltk.corpus import stopwords
    return frozenset(stopwords.words('english'))


class Lexicon:
    """Immutable token -> categories lookup. Matching is case-insensitive."""

    def __init__(self, entries: Mapping[str, Iterable[str]], categories: Iterable[str] = CATEGORIES):
        self.categories = tuple(categories)
        allowed = set(self.categories)
        table: Dict[str, FrozenSet[str]] = {}
        for word, cats in entries.items():
            cats = frozenset(c.strip().lower() for c in cats)
            unknown = cats - allowed
            if unknown:
                raise ValueError(f"unknown categories for {word!r}: {sorted(unknown)}")
            if cats:
                key = word.strip().lower()
                table[key] = table.get(key, _EMPTY) | cats
        self._table = table

    @classmethod
    def from_mapping(cls, entries: Mapping[str, Iterable[str]], categories: Iterable[str] = CATEGORIES) -> 'Lexicon':
        return cls(entries, categories)

    def lookup(self, token: str) -> FrozenSet[str]:
        # a miss contributes nothing
        return self._table.get(token.lower(), _EMPTY)

    def words(self) -> List[str]:
        return sorted(self._table)

    def __contains__(self, token) -> bool:
        return isinstance(token, str) and token.lower() in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return f"Lexicon(words={len(self)}, categories={len(self.categories)})"


def load_nrc_lexicon(path: str, categories: Iterable[str] = CATEGORIES) -> Lexicon:
    """Read the NRC EmoLex word-level file: ``word<TAB>category<TAB>0|1`` per line.

    Lines flagged 0 are skipped, blank lines and ``#`` comments ignored.
    """
    categories = tuple(categories)
    entries: Dict[str, set] = {}
    with open(path, 'r', encoding='utf-8') as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            parts = line.split('\t')
            if len(parts) != 3:
                raise ValueError(f"{path}:{lineno}: expected 3 tab-separated fields, got {len(parts)}")
            word, cat, flag = parts
            if flag not in ('0', '1'):
                raise ValueError(f"{path}:{lineno}: association flag must be 0 or 1, got {flag!r}")
            if cat not in categories:
                raise ValueError(f"{path}:{lineno}: unknown category {cat!r}")
            if flag == '1':
                entries.setdefault(word, set()).add(cat)
    lex = Lexicon(entries, categories)
    logger.info("loaded lexicon %s: %d words", os.path.basename(path), len(lex))
    return lex


def default_lexicon(path: Optional[str] = None) -> Lexicon:
    return load_nrc_lexicon(path or DEFAULT_LEXICON_PATH)
