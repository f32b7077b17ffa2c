import logging
import numbers
from typing import List, Optional, Tuple

import numpy as np
from scipy.special import gammaln

from .data import DocumentTermMatrix, Vocabulary

logger = logging.getLogger(__name__)


class LDAConfigError(ValueError):
    """Raised when an LDA run is asked for with a degenerate configuration or corpus."""


def check_config(n_topics, alpha: Optional[float], beta: float, iterations: Optional[int] = None):
    if isinstance(n_topics, bool) or not isinstance(n_topics, numbers.Integral):
        raise LDAConfigError(f"number of topics must be an integer, got {n_topics!r}")
    if n_topics <= 0:
        raise LDAConfigError(f"number of topics must be positive, got {n_topics}")
    if alpha is not None and not alpha > 0:
        raise LDAConfigError(f"alpha must be > 0, got {alpha!r}")
    if not beta > 0:
        raise LDAConfigError(f"beta must be > 0, got {beta!r}")
    if iterations is not None and (not isinstance(iterations, numbers.Integral) or iterations < 0):
        raise LDAConfigError(f"iterations must be a non-negative integer, got {iterations!r}")


def check_corpus(dtm: DocumentTermMatrix):
    if dtm.n_terms == 0:
        raise LDAConfigError("cannot fit LDA on an empty vocabulary")
    if dtm.total == 0:
        raise LDAConfigError("cannot fit LDA on a corpus with zero tokens")


class LDAModel:
    """Collapsed-Gibbs LDA state: token assignments plus the sufficient counts.

    doc_topic[d, k]   tokens of document d assigned to topic k
    topic_term[k, v]  tokens of term v assigned to topic k
    topic_total[k]    all tokens assigned to topic k
    z[i]              topic of the i-th token of the flat corpus stream

    The multinomials are never stored; phi/theta are computed from the
    counts and the Dirichlet smoothing on read.
    """

    def __init__(self, n_topics: int, alpha: Optional[float] = None, beta: float = 0.1, seed: int = 1234):
        check_config(n_topics, alpha, beta)
        self.K = int(n_topics)
        # same default as the Gibbs LDA of the R topicmodels package
        self.alpha = float(alpha) if alpha is not None else 50.0 / self.K
        self.beta = float(beta)
        self.seed = seed
        self.rs: Optional[np.random.RandomState] = None
        self.vocabulary: Optional[Vocabulary] = None
        self.D = 0
        self.V = 0
        self.doc_of_token: Optional[np.ndarray] = None
        self.term_of_token: Optional[np.ndarray] = None
        self.z: Optional[np.ndarray] = None
        self.doc_topic: Optional[np.ndarray] = None
        self.topic_term: Optional[np.ndarray] = None
        self.topic_total: Optional[np.ndarray] = None
        self.doc_length: Optional[np.ndarray] = None
        # collapsed log-likelihood after each sweep
        self.history: List[float] = []

    @property
    def initialized(self) -> bool:
        return self.z is not None

    @property
    def n_tokens(self) -> int:
        return 0 if self.z is None else int(len(self.z))

    def initialize(self, dtm: DocumentTermMatrix, vocabulary: Optional[Vocabulary] = None):
        """Expand the DTM into a token stream and give every token a uniform random topic."""
        check_corpus(dtm)
        self.vocabulary = vocabulary if vocabulary is not None else dtm.vocabulary
        self.D, self.V = dtm.shape
        # document order first; within a document the triplet order
        order = np.argsort(dtm.rows, kind='stable')
        rows = np.asarray(dtm.rows, dtype=np.int64)[order]
        cols = np.asarray(dtm.cols, dtype=np.int64)[order]
        counts = np.asarray(dtm.counts, dtype=np.int64)[order]
        self.doc_of_token = np.repeat(rows, counts)
        self.term_of_token = np.repeat(cols, counts)
        self.doc_length = np.bincount(self.doc_of_token, minlength=self.D).astype(np.int64)

        self.history = []
        self.rs = np.random.RandomState(self.seed)
        self.z = self.rs.randint(0, self.K, size=len(self.doc_of_token)).astype(np.int64)

        self.doc_topic = np.zeros((self.D, self.K), dtype=np.int64)
        self.topic_term = np.zeros((self.K, self.V), dtype=np.int64)
        np.add.at(self.doc_topic, (self.doc_of_token, self.z), 1)
        np.add.at(self.topic_term, (self.z, self.term_of_token), 1)
        self.topic_total = self.topic_term.sum(axis=1)
        logger.info("LDA state: K=%d, %d documents, %d terms, %d tokens, alpha=%.4g, beta=%.4g, seed=%s",
                    self.K, self.D, self.V, self.n_tokens, self.alpha, self.beta, self.seed)
        return self

    def _require_state(self):
        if not self.initialized:
            raise RuntimeError("model has not been initialized with a document-term matrix")

    def check_invariants(self) -> bool:
        """Counts agree with each other and with the assignment vector."""
        self._require_state()
        if not np.array_equal(self.doc_topic.sum(axis=1), self.doc_length):
            return False
        if not np.array_equal(self.topic_term.sum(axis=1), self.topic_total):
            return False
        if int(self.topic_total.sum()) != self.n_tokens:
            return False
        if (self.doc_topic < 0).any() or (self.topic_term < 0).any():
            return False
        expected = np.bincount(self.z, minlength=self.K)
        return bool(np.array_equal(expected, self.topic_total))

    # ---- estimates ----

    def topic_term_distribution(self, topic: int) -> np.ndarray:
        self._require_state()
        if not 0 <= topic < self.K:
            raise IndexError(f"topic {topic} out of range for K={self.K}")
        return (self.topic_term[topic] + self.beta) / (self.topic_total[topic] + self.beta * self.V)

    def document_topic_distribution(self, doc: int) -> np.ndarray:
        self._require_state()
        if not 0 <= doc < self.D:
            raise IndexError(f"document {doc} out of range for {self.D} documents")
        return (self.doc_topic[doc] + self.alpha) / (self.doc_length[doc] + self.alpha * self.K)

    def phi(self) -> np.ndarray:
        """K x V topic-term probabilities."""
        self._require_state()
        return (self.topic_term + self.beta) / (self.topic_total[:, None] + self.beta * self.V)

    def theta(self) -> np.ndarray:
        """D x K document-topic probabilities."""
        self._require_state()
        return (self.doc_topic + self.alpha) / (self.doc_length[:, None] + self.alpha * self.K)

    def top_terms(self, topic: int, n: int = 10) -> List[Tuple[int, str, float]]:
        """The n most probable terms of a topic as (term_id, token, probability).

        Within a topic the ranking only depends on the counts, so ties are
        exact and go to the lower term id.
        """
        probs = self.topic_term_distribution(topic)
        if n <= 0:
            return []
        # lexsort: last key is the primary one
        order = np.lexsort((np.arange(self.V), -self.topic_term[topic]))[:n]
        return [(int(v), self._token(v), float(probs[v])) for v in order]

    def terms(self, n: int = 10) -> List[List[str]]:
        return [[tok for _, tok, _ in self.top_terms(k, n)] for k in range(self.K)]

    def topics(self) -> np.ndarray:
        """Most likely topic per document (lowest topic id on ties)."""
        return np.argmax(self.theta(), axis=1)

    def log_likelihood(self) -> float:
        """Collapsed log p(w | z) under the symmetric Dirichlet(beta) prior."""
        self._require_state()
        V, b = self.V, self.beta
        ll = self.K * (gammaln(V * b) - V * gammaln(b))
        ll += gammaln(self.topic_term + b).sum() - gammaln(self.topic_total + V * b).sum()
        return float(ll)

    def _token(self, v) -> str:
        if self.vocabulary is None:
            return str(int(v))
        return self.vocabulary.token_of(int(v))
