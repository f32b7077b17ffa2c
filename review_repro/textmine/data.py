import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
from scipy import sparse

from .normalize import Normalizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Document:
    index: int
    text: Optional[str]
    tokens: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.tokens)


class Vocabulary:
    """Token <-> dense id mapping. Ids are handed out in first-seen order."""

    def __init__(self, tokens: Iterable[str] = ()):
        self._index: Dict[str, int] = {}
        self._tokens: List[str] = []
        self._frozen = False
        for t in tokens:
            self.add(t)

    def add(self, token: str) -> int:
        idx = self._index.get(token)
        if idx is not None:
            return idx
        if self._frozen:
            raise RuntimeError(f"vocabulary is frozen, cannot add {token!r}")
        idx = len(self._tokens)
        self._index[token] = idx
        self._tokens.append(token)
        return idx

    def freeze(self) -> 'Vocabulary':
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def id_of(self, token: str) -> int:
        return self._index[token]

    def get(self, token: str, default=None):
        return self._index.get(token, default)

    def token_of(self, idx: int) -> str:
        return self._tokens[idx]

    @property
    def tokens(self) -> List[str]:
        return list(self._tokens)

    def __contains__(self, token) -> bool:
        return token in self._index

    def __len__(self) -> int:
        return len(self._tokens)

    def __iter__(self):
        return iter(self._tokens)

    def __repr__(self) -> str:
        return f"Vocabulary(size={len(self)}, frozen={self._frozen})"


@dataclass
class DocumentTermMatrix:
    n_docs: int
    n_terms: int
    # non-zero triplets, ordered by document then first occurrence of the term
    rows: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    cols: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    counts: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    vocabulary: Optional[Vocabulary] = None

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.n_docs, self.n_terms)

    @property
    def nnz(self) -> int:
        return int(len(self.counts))

    def triplets(self) -> List[Tuple[int, int, int]]:
        return [(int(d), int(t), int(c)) for d, t, c in zip(self.rows, self.cols, self.counts)]

    def get(self, doc: int, term: int) -> int:
        mask = (self.rows == doc) & (self.cols == term)
        return int(self.counts[mask].sum())

    def row(self, doc: int) -> Dict[int, int]:
        """Sparse row as {term_id: count}."""
        if not 0 <= doc < self.n_docs:
            raise IndexError(f"document {doc} out of range for {self.n_docs} documents")
        mask = self.rows == doc
        return {int(t): int(c) for t, c in zip(self.cols[mask], self.counts[mask])}

    def row_sums(self) -> np.ndarray:
        return np.bincount(self.rows, weights=self.counts, minlength=self.n_docs).astype(np.int64)

    def col_sums(self) -> np.ndarray:
        return np.bincount(self.cols, weights=self.counts, minlength=self.n_terms).astype(np.int64)

    @property
    def total(self) -> int:
        return int(self.counts.sum())

    def to_sparse(self) -> sparse.csr_matrix:
        return sparse.csr_matrix((self.counts, (self.rows, self.cols)), shape=self.shape, dtype=np.int64)

    def to_dense(self) -> np.ndarray:
        return self.to_sparse().toarray()

    def dimnames(self) -> Tuple[List[int], List[str]]:
        terms = self.vocabulary.tokens if self.vocabulary is not None else [str(i) for i in range(self.n_terms)]
        return list(range(self.n_docs)), terms


def _count_tokens(tokens: Sequence[str], vocab: Vocabulary) -> Dict[int, int]:
    counts: Dict[int, int] = {}
    for w in tokens:
        idx = vocab.add(w)
        counts[idx] = counts.get(idx, 0) + 1
    return counts


def build_dtm(docs: Sequence, normalizer: Optional[Normalizer] = None,
              n_jobs: int = 1) -> Tuple[Vocabulary, DocumentTermMatrix, List[Document]]:
    """Build a frozen vocabulary and the sparse document-term matrix.

    docs: raw texts (normalized with `normalizer`, a stopword-free one by
    default) or already tokenized sequences (lists/tuples of str).
    Normalization may be spread over threads; ids are assigned in a single
    pass afterwards so the column order only depends on document order.
    """
    docs = list(docs)
    raw: List[Optional[str]] = []
    token_lists: List[Tuple[str, ...]] = []
    pending: List[int] = []
    for i, d in enumerate(docs):
        if isinstance(d, (list, tuple)):
            raw.append(None)
            token_lists.append(tuple(d))
        else:
            raw.append(d if isinstance(d, str) else None)
            token_lists.append(())
            pending.append(i)
    if pending:
        normalizer = normalizer or Normalizer()
        normed = normalizer.normalize_many([docs[i] for i in pending], n_jobs=n_jobs)
        for i, toks in zip(pending, normed):
            token_lists[i] = toks

    vocab = Vocabulary()
    rows: List[int] = []
    cols: List[int] = []
    vals: List[int] = []
    documents: List[Document] = []
    for d, toks in enumerate(token_lists):
        # dict keeps insertion order -> first occurrence of each term in the document
        for t, c in _count_tokens(toks, vocab).items():
            rows.append(d)
            cols.append(t)
            vals.append(c)
        documents.append(Document(index=d, text=raw[d], tokens=toks))
    vocab.freeze()
    dtm = DocumentTermMatrix(
        n_docs=len(token_lists),
        n_terms=len(vocab),
        rows=np.asarray(rows, dtype=np.int64),
        cols=np.asarray(cols, dtype=np.int64),
        counts=np.asarray(vals, dtype=np.int64),
        vocabulary=vocab,
    )
    logger.info("built DTM: %d documents x %d terms, %d non-zero, %d tokens",
                dtm.n_docs, dtm.n_terms, dtm.nnz, dtm.total)
    return vocab, dtm, documents
