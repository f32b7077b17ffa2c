import json

import pytest

from review_repro.textmine.config import AnalysisConfig
from review_repro.textmine.lexicon import Lexicon
from review_repro.textmine.model import LDAConfigError
from review_repro.textmine.pipeline import AnalysisResult, ReviewRecord, run_analysis

STOPWORDS = {'it', 'the', 'a', 'was', 'and', 'i', 'this'}
LEX = Lexicon.from_mapping({
    'great': ['joy', 'positive'],
    'loved': ['joy', 'positive'],
    'terrible': ['anger', 'disgust', 'fear', 'negative', 'sadness'],
    'hated': ['anger', 'disgust', 'fear', 'negative', 'sadness'],
    'it': ['trust'],
})

RECORDS = [
    ReviewRecord("Great book, loved it!", 5, 'A'),
    ReviewRecord("Terrible. Hated it.", 1, 'B'),
    ReviewRecord("great GREAT book", 4, 'A'),
    ReviewRecord(None, None, 'C'),
    {'text': "The plot was slow and the ending terrible", 'rating': 2, 'entity': 'B'},
    "A book I loved",
]


def small_config(**kw):
    base = dict(n_topics=2, iterations=10, top_n=3, wordcloud_min_freq=1, rating_bins=4)
    base.update(kw)
    return AnalysisConfig(**base)


def test_full_run():
    result = run_analysis(RECORDS, small_config(), lexicon=LEX, stopwords=STOPWORDS)
    assert result.dtm.n_docs == len(RECORDS)
    assert len(result.sentiment) == len(RECORDS)
    assert result.dtm.row(3) == {}
    assert result.vocabulary.tokens[:5] == ['great', 'book', 'loved', 'terrible', 'hated']
    # great and book both occur 3 times; great was seen first
    assert result.term_ranking[:2] == [(0, 'great', 3), (1, 'book', 3)]
    assert result.model is not None and result.model.check_invariants()
    assert len(result.top_terms) == 2 and all(len(t) == 3 for t in result.top_terms)
    assert result.rating_averages == {'A': 4.5, 'B': 1.5}
    assert sum(result.rating_hist[0]) == 2


def test_sentiment_uses_raw_text():
    # "it" is a stopword for the DTM but still a lexicon hit for sentiment
    result = run_analysis(RECORDS[:2], small_config(), lexicon=LEX, stopwords=STOPWORDS)
    assert 'it' not in result.vocabulary
    assert result.sentiment_totals['trust'] == 2
    assert result.sentiment_totals['negative'] == 2
    assert 'negative' not in result.emotion_totals
    assert sum(result.sentiment_totals.values()) == sum(p.total for p in result.sentiment)


def test_reproducible():
    a = run_analysis(RECORDS, small_config(), lexicon=LEX, stopwords=STOPWORDS)
    b = run_analysis(RECORDS, small_config(), lexicon=LEX, stopwords=STOPWORDS)
    assert a.top_terms == b.top_terms
    assert a.to_dict() == b.to_dict()


def test_summary_is_json_serializable():
    result = run_analysis(RECORDS, small_config(), lexicon=LEX, stopwords=STOPWORDS)
    summary = json.loads(json.dumps(result.to_dict()))
    assert summary['n_documents'] == len(RECORDS)
    assert set(summary['topics']) == {'Topic_1', 'Topic_2'}
    assert len(summary['document_topics']) == len(RECORDS)


def test_all_stopwords_skips_topics():
    result = run_analysis(["it", "it it", None], small_config(), lexicon=LEX, stopwords=STOPWORDS)
    assert result.dtm.shape == (3, 0)
    assert result.model is None and result.top_terms == []
    assert result.sentiment_totals['trust'] == 3
    assert result.to_dict()['document_topics'] == []


def test_result_defaults_not_shared():
    result = run_analysis(["great book"], small_config(), lexicon=LEX, stopwords=STOPWORDS)
    parts = dict(documents=[], vocabulary=result.vocabulary, dtm=result.dtm, term_ranking=[],
                 word_freq={}, sentiment=[], sentiment_totals={}, emotion_totals={}, model=None)
    a = AnalysisResult(**parts)
    b = AnalysisResult(**parts)
    a.rating_hist[0].append(3)
    assert b.rating_hist == ([], [])
    assert a.rating_hist[0] is not b.rating_hist[0]


def test_config():
    cfg = AnalysisConfig.from_dict({'n_topics': 3, 'not_a_key': 1})
    assert cfg.n_topics == 3 and cfg.beta == 0.1 and cfg.seed == 1234
    assert cfg.to_dict()['iterations'] == 2000
    with pytest.raises(LDAConfigError):
        AnalysisConfig(n_topics=0).validate()
    with pytest.raises(LDAConfigError):
        run_analysis(RECORDS, AnalysisConfig(n_topics=0), lexicon=LEX, stopwords=STOPWORDS)


if __name__ == '__main__':
    test_full_run()
    test_sentiment_uses_raw_text()
    test_reproducible()
    test_summary_is_json_serializable()
    test_all_stopwords_skips_topics()
    test_result_defaults_not_shared()
    test_config()
    print('pipeline tests passed')
