# Book review text mining: normalized document-term matrix, NRC-style emotion
# counts and an LDA topic model estimated with collapsed Gibbs sampling.
# Every piece of state (vocabulary, lexicon, sampler counters, random stream)
# is an explicit object owned by the caller.

from .normalize import Normalizer, normalize, clean_text
from .data import Document, Vocabulary, DocumentTermMatrix, build_dtm
from .lexicon import Lexicon, load_nrc_lexicon, default_lexicon, english_stopwords, CATEGORIES, EMOTIONS
from .sentiment import SentimentScorer, SentimentProfile, sentiment_distribution
from .model import LDAModel, LDAConfigError
from .gibbs import GibbsSampler, fit_lda
from .aggregate import term_frequency_ranking, word_frequencies, average_by_entity, rating_histogram
from .config import AnalysisConfig
from .pipeline import ReviewRecord, AnalysisResult, run_analysis
from .evaluation import umass_coherence, topic_coherence, perplexity
