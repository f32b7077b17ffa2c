import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Mapping, Optional

from .model import LDAConfigError, check_config

logger = logging.getLogger(__name__)


@dataclass
class AnalysisConfig:
    # topic model (R topicmodels Gibbs defaults, K=5 and seed 1234 as in the coursework run)
    n_topics: int = 5
    alpha: Optional[float] = None  # None -> 50 / n_topics
    beta: float = 0.1
    iterations: int = 2000
    seed: int = 1234
    top_n: int = 10
    # text normalization
    min_token_length: int = 1
    n_jobs: int = 1
    # word cloud cut-offs
    wordcloud_min_freq: int = 10
    wordcloud_max_words: int = 100
    # histogram of per-title average ratings
    rating_bins: int = 10
    # input columns
    text_field: str = 'Review_text'
    entity_field: str = 'Title'
    rating_field: str = 'Rating'

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> 'AnalysisConfig':
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning("ignoring unknown config keys: %s", ', '.join(unknown))
        cfg = cls(**{k: v for k, v in values.items() if k in known})
        cfg.validate()
        return cfg

    def validate(self) -> 'AnalysisConfig':
        check_config(self.n_topics, self.alpha, self.beta, self.iterations)
        if self.top_n < 0:
            raise LDAConfigError(f"top_n must be >= 0, got {self.top_n}")
        if self.min_token_length < 1:
            raise LDAConfigError(f"min_token_length must be >= 1, got {self.min_token_length}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
