import math

import numpy as np
import pytest

from review_repro.textmine.data import DocumentTermMatrix, build_dtm
from review_repro.textmine.evaluation import perplexity, topic_coherence, umass_coherence
from review_repro.textmine.gibbs import GibbsSampler, fit_lda
from review_repro.textmine.model import LDAConfigError, LDAModel

FRUIT = ['apple', 'banana', 'cherry']
PETS = ['dog', 'cat', 'mouse']


def small_corpus():
    docs = []
    for i in range(10):
        docs.append([FRUIT[(i + j) % 3] for j in range(6)])
        docs.append([PETS[(i + j) % 3] for j in range(6)])
    return build_dtm(docs)


def test_rejects_bad_configuration():
    _, dtm, _ = small_corpus()
    for k in (0, -1, 2.5, True):
        with pytest.raises(LDAConfigError):
            fit_lda(dtm, k, iterations=1)
    with pytest.raises(LDAConfigError):
        LDAModel(0)
    with pytest.raises(LDAConfigError):
        LDAModel(2, alpha=0.0)
    with pytest.raises(LDAConfigError):
        LDAModel(2, beta=-1.0)
    with pytest.raises(LDAConfigError):
        fit_lda(dtm, 2, iterations=-1)


def test_rejects_degenerate_corpus():
    _, empty_vocab, _ = build_dtm(["", None])
    with pytest.raises(LDAConfigError):
        fit_lda(empty_vocab, 2, iterations=1)
    no_tokens = DocumentTermMatrix(n_docs=2, n_terms=3)
    m = LDAModel(2)
    with pytest.raises(LDAConfigError):
        m.initialize(no_tokens)
    # nothing was allocated
    assert not m.initialized
    assert m.z is None and m.doc_topic is None and m.topic_term is None


def test_invariants_after_every_sweep():
    _, dtm, _ = small_corpus()
    seen = []

    def check(it, model):
        seen.append(model.check_invariants())

    model = fit_lda(dtm, 3, iterations=15, seed=7, callback=check)
    assert seen == [True] * 15
    assert model.doc_topic.sum(axis=1).tolist() == dtm.row_sums().tolist()
    assert int(model.topic_total.sum()) == dtm.total == model.n_tokens
    assert len(model.history) == 15
    assert all(np.isfinite(model.history))


def test_initial_state_consistent():
    _, dtm, _ = small_corpus()
    model = fit_lda(dtm, 4, iterations=0)
    assert model.check_invariants()
    assert model.history == []
    assert model.z.min() >= 0 and model.z.max() < 4


def test_reproducible_with_same_seed():
    _, dtm, _ = small_corpus()
    a = fit_lda(dtm, 3, iterations=20, seed=1234)
    b = fit_lda(dtm, 3, iterations=20, seed=1234)
    assert np.array_equal(a.z, b.z)
    assert np.array_equal(a.topic_term, b.topic_term)
    assert [a.top_terms(k, 4) for k in range(3)] == [b.top_terms(k, 4) for k in range(3)]
    assert a.history == b.history


def test_sampler_reuses_initialized_model():
    _, dtm, _ = small_corpus()
    m = LDAModel(2, seed=3).initialize(dtm)
    GibbsSampler(m, iterations=5).run()
    assert m.check_invariants()
    assert len(m.history) == 5
    with pytest.raises(RuntimeError):
        GibbsSampler(LDAModel(2), iterations=1).run()


def _vectorized_sweep(m):
    # the same update written with numpy rows, one token at a time
    vbeta = m.beta * m.V
    u = m.rs.random_sample(m.n_tokens)
    for i in range(m.n_tokens):
        d, w, k = m.doc_of_token[i], m.term_of_token[i], m.z[i]
        m.doc_topic[d, k] -= 1
        m.topic_term[k, w] -= 1
        m.topic_total[k] -= 1
        p = (m.doc_topic[d] + m.alpha) * (m.topic_term[:, w] + m.beta) / (m.topic_total + vbeta)
        cdf = np.cumsum(p)
        k = min(int(np.searchsorted(cdf, u[i] * cdf[-1], side='right')), m.K - 1)
        m.z[i] = k
        m.doc_topic[d, k] += 1
        m.topic_term[k, w] += 1
        m.topic_total[k] += 1


def test_sweep_matches_vectorized_update():
    _, dtm, _ = small_corpus()
    fast = LDAModel(3, seed=11).initialize(dtm)
    slow = LDAModel(3, seed=11).initialize(dtm)
    sampler = GibbsSampler(fast, iterations=0)
    for _ in range(5):
        sampler.sweep()
        _vectorized_sweep(slow)
        assert np.array_equal(fast.z, slow.z)
        assert np.array_equal(fast.doc_topic, slow.doc_topic)
        assert np.array_equal(fast.topic_term, slow.topic_term)
        assert np.array_equal(fast.topic_total, slow.topic_total)
    # a new corpus on the same sampler uses the new token stream
    _, other, _ = build_dtm([['x', 'y', 'y'], ['z', 'x']])
    sampler.iterations = 3
    sampler.run(other)
    assert fast.n_tokens == 5 and fast.check_invariants()


def test_distributions_are_normalized():
    _, dtm, _ = small_corpus()
    model = fit_lda(dtm, 3, iterations=10)
    phi = model.phi()
    theta = model.theta()
    assert phi.shape == (3, dtm.n_terms) and theta.shape == (dtm.n_docs, 3)
    assert np.allclose(phi.sum(axis=1), 1.0)
    assert np.allclose(theta.sum(axis=1), 1.0)
    assert np.allclose(model.topic_term_distribution(1), phi[1])
    assert np.allclose(model.document_topic_distribution(4), theta[4])
    assert (phi > 0).all() and (theta > 0).all()
    with pytest.raises(IndexError):
        model.topic_term_distribution(3)


def test_default_alpha():
    assert LDAModel(5).alpha == pytest.approx(10.0)
    assert LDAModel(5, alpha=0.5).alpha == 0.5


def test_top_terms_ties_go_to_lower_id():
    _, dtm, _ = build_dtm([['w', 'x', 'y', 'z']])
    model = LDAModel(1, beta=0.1).initialize(dtm)
    model.topic_term[0] = [2, 5, 5, 0]
    model.topic_total[0] = 12
    top = model.top_terms(0, 3)
    assert [v for v, _, _ in top] == [1, 2, 0]
    assert [t for _, t, _ in top] == ['x', 'y', 'w']
    assert top[0][2] == pytest.approx((5 + 0.1) / (12 + 0.4))
    assert model.top_terms(0, 0) == []
    assert len(model.top_terms(0, 10)) == 4


def test_separates_disjoint_vocabularies():
    _, dtm, _ = small_corpus()
    model = fit_lda(dtm, 2, alpha=0.1, beta=0.01, iterations=100, seed=1234)
    groups = [set(model.terms(3)[k]) for k in range(2)]
    assert sorted(map(sorted, groups)) == [sorted(FRUIT), sorted(PETS)]
    topics = model.topics()
    assert len(set(topics[0::2])) == 1 and len(set(topics[1::2])) == 1
    assert topics[0] != topics[1]


def test_umass_smooths_both_counts():
    # a:0 b:1 c:2; df = [2, 2, 1]
    _, dtm, _ = build_dtm([['a', 'b'], ['a'], ['b', 'c']])
    pair, triple = umass_coherence(dtm, [[0, 1], [0, 1, 2]])
    assert pair == pytest.approx(math.log((1 + 1) / (2 + 1)))
    expected = [math.log(2 / 3), math.log(1 / 2), math.log(2 / 2)]
    assert triple == pytest.approx(sum(expected) / 3)


def test_quality_metrics():
    _, dtm, _ = small_corpus()
    model = fit_lda(dtm, 2, iterations=10)
    coh = topic_coherence(model, dtm, topn=3)
    assert len(coh) == 2 and all(np.isfinite(coh))
    p = perplexity(model)
    assert np.isfinite(p) and p > 1.0
    assert perplexity(model, dtm) == pytest.approx(p)


if __name__ == '__main__':
    test_rejects_bad_configuration()
    test_rejects_degenerate_corpus()
    test_invariants_after_every_sweep()
    test_initial_state_consistent()
    test_reproducible_with_same_seed()
    test_sampler_reuses_initialized_model()
    test_sweep_matches_vectorized_update()
    test_distributions_are_normalized()
    test_default_alpha()
    test_top_terms_ties_go_to_lower_id()
    test_separates_disjoint_vocabularies()
    test_quality_metrics()
    test_umass_smooths_both_counts()
    print('lda tests passed')
