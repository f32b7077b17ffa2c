import math
from typing import List, Optional, Sequence

import numpy as np

from .data import DocumentTermMatrix
from .model import LDAModel


def umass_coherence(dtm: DocumentTermMatrix, top_word_sets: Sequence[Sequence[int]], eps: float = 1.0) -> List[float]:
    """UMass coherence per topic from document co-occurrence.
    C_umass(T) = avg_{i<j} log( (D(w_i,w_j) + eps) / (D(w_j) + eps) )
    """
    # binary presence, documents x terms
    B = (dtm.to_sparse() > 0).astype(np.int64).tocsc()
    df = np.asarray(B.sum(axis=0)).ravel()
    coherences = []
    for S in top_word_sets:
        pairs = []
        for i in range(len(S)):
            for j in range(i + 1, len(S)):
                wi = S[i]; wj = S[j]
                co = int(B[:, wi].multiply(B[:, wj]).sum())
                pairs.append(math.log((co + eps) / (df[wj] + eps)))
        coherences.append(float(np.mean(pairs)) if pairs else 0.0)
    return coherences


def topic_coherence(model: LDAModel, dtm: DocumentTermMatrix, topn: int = 10) -> List[float]:
    tops = [[v for v, _, _ in model.top_terms(k, topn)] for k in range(model.K)]
    return umass_coherence(dtm, tops)


def perplexity(model: LDAModel, dtm: Optional[DocumentTermMatrix] = None) -> float:
    """exp(-average log-likelihood per token) under the current phi/theta.

    Defaults to the training corpus the model was fitted on.
    """
    phi = model.phi()
    theta = model.theta()
    if dtm is None:
        rows, cols = model.doc_of_token, model.term_of_token
        counts = np.ones(len(rows))
    else:
        rows, cols, counts = dtm.rows, dtm.cols, dtm.counts.astype(np.float64)
    total = counts.sum()
    if total == 0:
        return float('nan')
    # p(w | d) = sum_k theta[d, k] * phi[k, w]
    p = np.einsum('ik,ki->i', theta[rows], phi[:, cols])
    ll = float((counts * np.log(np.maximum(p, 1e-300))).sum())
    return float(np.exp(-ll / total))
