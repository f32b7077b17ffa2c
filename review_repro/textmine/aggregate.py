import math
import numbers
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np

from .data import DocumentTermMatrix, Vocabulary


def term_frequency_ranking(dtm: DocumentTermMatrix,
                           vocabulary: Optional[Vocabulary] = None) -> List[Tuple[int, str, int]]:
    """Terms by total corpus count, descending; equal counts keep ascending term id."""
    vocabulary = vocabulary if vocabulary is not None else dtm.vocabulary
    totals = dtm.col_sums()
    order = np.lexsort((np.arange(dtm.n_terms), -totals))
    out = []
    for v in order:
        tok = vocabulary.token_of(int(v)) if vocabulary is not None else str(int(v))
        out.append((int(v), tok, int(totals[v])))
    return out


def word_frequencies(dtm: DocumentTermMatrix, vocabulary: Optional[Vocabulary] = None,
                     min_freq: int = 1, max_words: Optional[int] = None) -> Dict[str, int]:
    """Ranked {token: count} cut down the way a word cloud wants it."""
    ranked = [(tok, c) for _, tok, c in term_frequency_ranking(dtm, vocabulary) if c >= min_freq]
    if max_words is not None:
        ranked = ranked[:max_words]
    return dict(ranked)


def _field(record: Any, name):
    if isinstance(record, Mapping):
        return record.get(name)
    if isinstance(record, (tuple, list)) and isinstance(name, int):
        return record[name] if -len(record) <= name < len(record) else None
    return getattr(record, name, None)


def _numeric(value) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return None
    value = float(value)
    if math.isnan(value):
        return None
    return value


def average_by_entity(records: Iterable, entity_key='entity', value_field='rating') -> Dict[Any, float]:
    """Mean of the numeric values per entity.

    records: mappings, tuples (fields by position) or objects (fields by
    attribute). Missing, NaN or non-numeric values are skipped; an entity
    left without any numeric value does not appear in the result. Keys
    keep the order in which they were first seen.
    """
    sums: Dict[Any, float] = {}
    counts: Dict[Any, int] = {}
    for r in records:
        key = _field(r, entity_key)
        if key is None or (isinstance(key, float) and math.isnan(key)):
            continue
        value = _numeric(_field(r, value_field))
        if value is None:
            continue
        sums[key] = sums.get(key, 0.0) + value
        counts[key] = counts.get(key, 0) + 1
    return {k: sums[k] / counts[k] for k in sums}


def rating_histogram(averages: Mapping[Any, float], bins=10,
                     value_range: Optional[Tuple[float, float]] = None) -> Tuple[List[int], List[float]]:
    """Counts and bin edges of the per-entity averages."""
    values = np.asarray(list(averages.values()), dtype=np.float64)
    if values.size == 0:
        return [], []
    counts, edges = np.histogram(values, bins=bins, range=value_range)
    return counts.astype(int).tolist(), edges.tolist()
