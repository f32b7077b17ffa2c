import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .aggregate import average_by_entity, rating_histogram, term_frequency_ranking, word_frequencies
from .config import AnalysisConfig
from .data import Document, DocumentTermMatrix, Vocabulary, build_dtm
from .gibbs import fit_lda
from .lexicon import EMOTIONS, Lexicon, default_lexicon, english_stopwords
from .model import LDAConfigError, LDAModel
from .normalize import Normalizer
from .sentiment import SentimentProfile, SentimentScorer, sentiment_distribution

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewRecord:
    text: Optional[str]
    rating: Optional[float] = None
    entity: Optional[str] = None


@dataclass
class AnalysisResult:
    documents: List[Document]
    vocabulary: Vocabulary
    dtm: DocumentTermMatrix
    term_ranking: List[Tuple[int, str, int]]
    word_freq: Dict[str, int]
    sentiment: List[SentimentProfile]
    sentiment_totals: Dict[str, int]
    emotion_totals: Dict[str, int]
    model: Optional[LDAModel]
    top_terms: List[List[Tuple[int, str, float]]] = field(default_factory=list)
    rating_averages: Dict[Any, float] = field(default_factory=dict)
    rating_hist: Tuple[List[int], List[float]] = field(default_factory=lambda: ([], []))

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly summary for whatever renders the plots."""
        counts, edges = self.rating_hist
        return {
            'n_documents': self.dtm.n_docs,
            'n_terms': self.dtm.n_terms,
            'n_tokens': self.dtm.total,
            'term_ranking': [{'term': t, 'count': c} for _, t, c in self.term_ranking],
            'word_freq': self.word_freq,
            'sentiment_distribution': self.sentiment_totals,
            'emotion_distribution': self.emotion_totals,
            'topics': {
                f'Topic_{k + 1}': [{'term': t, 'prob': p} for _, t, p in terms]
                for k, terms in enumerate(self.top_terms)
            },
            'document_topics': [] if self.model is None else [int(k) + 1 for k in self.model.topics()],
            'rating_averages': {str(k): v for k, v in self.rating_averages.items()},
            'rating_histogram': {'counts': counts, 'edges': edges},
        }


def _as_record(r) -> ReviewRecord:
    if isinstance(r, ReviewRecord):
        return r
    if isinstance(r, str):
        return ReviewRecord(text=r)
    if r is None or isinstance(r, float):
        # missing text (None / NaN) is an empty review, not an error
        return ReviewRecord(text=None)
    if isinstance(r, dict):
        return ReviewRecord(text=r.get('text'), rating=r.get('rating'), entity=r.get('entity'))
    raise TypeError(f"unsupported review record: {type(r).__name__}")


def run_analysis(records: Iterable, config: Optional[AnalysisConfig] = None,
                 lexicon: Optional[Lexicon] = None, stopwords: Optional[Iterable[str]] = None) -> AnalysisResult:
    """DTM, sentiment, topics and rating averages for one batch of reviews.

    records: ReviewRecord objects, dicts with text/rating/entity keys, or
    bare strings. Without explicit stopwords or lexicon the NLTK English
    stopwords and the bundled NRC sample are used.
    """
    config = (config or AnalysisConfig()).validate()
    records = [_as_record(r) for r in records]
    texts = [r.text for r in records]
    if stopwords is None:
        stopwords = english_stopwords()
    if lexicon is None:
        lexicon = default_lexicon()

    normalizer = Normalizer(stopwords, min_length=config.min_token_length)
    vocab, dtm, documents = build_dtm(texts, normalizer, n_jobs=config.n_jobs)
    ranking = term_frequency_ranking(dtm, vocab)
    freq = word_frequencies(dtm, vocab, config.wordcloud_min_freq, config.wordcloud_max_words)

    # sentiment runs on the raw review text, not on the normalized tokens
    scorer = SentimentScorer(lexicon)
    profiles = scorer.score_many(texts)
    totals = sentiment_distribution(profiles, scorer.categories)
    emotions = sentiment_distribution(profiles, [c for c in scorer.categories if c in EMOTIONS])

    model = None
    top = []
    try:
        model = fit_lda(dtm, config.n_topics, alpha=config.alpha, beta=config.beta,
                        iterations=config.iterations, seed=config.seed, vocabulary=vocab)
        top = [model.top_terms(k, config.top_n) for k in range(model.K)]
    except LDAConfigError as e:
        logger.warning("skipping topic model: %s", e)

    averages = average_by_entity(records, 'entity', 'rating')
    hist = rating_histogram(averages, bins=config.rating_bins)
    logger.info("analysis done: %d documents, %d terms, %d rated entities",
                dtm.n_docs, dtm.n_terms, len(averages))
    return AnalysisResult(
        documents=documents,
        vocabulary=vocab,
        dtm=dtm,
        term_ranking=ranking,
        word_freq=freq,
        sentiment=profiles,
        sentiment_totals=totals,
        emotion_totals=emotions,
        model=model,
        top_terms=top,
        rating_averages=averages,
        rating_hist=hist,
    )
