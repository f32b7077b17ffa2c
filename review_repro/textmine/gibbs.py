import logging
from bisect import bisect_right
from typing import Callable, Optional

from .data import DocumentTermMatrix, Vocabulary
from .model import LDAModel, check_config, check_corpus

logger = logging.getLogger(__name__)


class GibbsSampler:
    """Runs a fixed number of collapsed Gibbs sweeps over an LDAModel.

    A sweep visits the tokens one at a time in stream order (document, then
    position) and every draw sees the counts left by the previous one, so a
    sweep is strictly sequential. All randomness comes from the model's
    single RandomState, consumed in the same order on every run.
    """

    def __init__(self, model: LDAModel, iterations: int = 2000,
                 callback: Optional[Callable[[int, LDAModel], None]] = None,
                 log_every: int = 100):
        check_config(model.K, model.alpha, model.beta, iterations)
        self.m = model
        self.iterations = int(iterations)
        self.callback = callback
        self.log_every = max(1, int(log_every))
        self.history = model.history
        self._tokens_of = None
        self._docs = []
        self._terms = []

    def _token_lists(self):
        m = self.m
        if self._tokens_of is not m.doc_of_token:
            self._docs = m.doc_of_token.tolist()
            self._terms = m.term_of_token.tolist()
            self._tokens_of = m.doc_of_token
        return self._docs, self._terms

    def sweep(self):
        m = self.m
        K = m.K
        alpha, beta = m.alpha, m.beta
        vbeta = beta * m.V
        docs, terms = self._token_lists()
        # plain lists for the per-token loop; written back once at the end
        doc_topic = m.doc_topic.tolist()
        topic_term = m.topic_term.tolist()
        topic_total = m.topic_total.tolist()
        z = m.z.tolist()
        topics = range(K)
        # one uniform per token, drawn up front from the same stream in token order
        u = m.rs.random_sample(len(docs)).tolist()
        for i in range(len(docs)):
            d = docs[i]
            w = terms[i]
            k = z[i]
            nd = doc_topic[d]
            # take the token out before scoring
            nd[k] -= 1
            topic_term[k][w] -= 1
            topic_total[k] -= 1
            cdf = []
            acc = 0.0
            for t in topics:
                acc += (nd[t] + alpha) * (topic_term[t][w] + beta) / (topic_total[t] + vbeta)
                cdf.append(acc)
            # inverse CDF: first topic whose cumulative score exceeds the threshold
            threshold = u[i] * acc
            k = bisect_right(cdf, threshold)
            if k >= K:
                k = K - 1
            z[i] = k
            nd[k] += 1
            topic_term[k][w] += 1
            topic_total[k] += 1
        m.doc_topic[...] = doc_topic
        m.topic_term[...] = topic_term
        m.topic_total[...] = topic_total
        m.z[...] = z

    def run(self, dtm: Optional[DocumentTermMatrix] = None, vocabulary: Optional[Vocabulary] = None) -> LDAModel:
        if dtm is not None:
            self.m.initialize(dtm, vocabulary)
            self.history = self.m.history
        elif not self.m.initialized:
            raise RuntimeError("GibbsSampler.run needs a document-term matrix for an uninitialized model")
        logger.info("Gibbs sampling: %d iterations over %d tokens", self.iterations, self.m.n_tokens)
        for it in range(self.iterations):
            self.sweep()
            ll = self.m.log_likelihood()
            self.history.append(ll)
            if (it + 1) % self.log_every == 0:
                logger.debug("iteration %d/%d: log-likelihood %.3f", it + 1, self.iterations, ll)
            if self.callback is not None:
                self.callback(it, self.m)
        if self.history:
            logger.info("Gibbs sampling done, final log-likelihood %.3f", self.history[-1])
        return self.m


def fit_lda(dtm: DocumentTermMatrix, n_topics: int, alpha: Optional[float] = None, beta: float = 0.1,
            iterations: int = 2000, seed: int = 1234, vocabulary: Optional[Vocabulary] = None,
            callback: Optional[Callable[[int, LDAModel], None]] = None) -> LDAModel:
    """Validate, initialize and sample; nothing is allocated if the inputs are rejected."""
    check_config(n_topics, alpha, beta, iterations)
    check_corpus(dtm)
    model = LDAModel(n_topics, alpha=alpha, beta=beta, seed=seed)
    sampler = GibbsSampler(model, iterations=iterations, callback=callback)
    return sampler.run(dtm, vocabulary)
