import os
import json
import logging
from typing import List

import pandas as pd

from review_repro.textmine.config import AnalysisConfig
from review_repro.textmine.pipeline import ReviewRecord, run_analysis
from review_repro.textmine.sentiment import profiles_to_frame

"""
Demo runner:
- Load the book review CSV (Review_text / Title / Rating); if unavailable, fall back to a small local sample.
- Build the normalized document-term matrix
- Score NRC emotion/sentiment categories on the raw review text
- Fit a 5-topic LDA by collapsed Gibbs sampling (seed 1234)
- Save the artifacts a plotting front-end needs as JSON
"""

DATA_PATH = 'data/MS4S09_CW_Book_Reviews.csv'
OUTPUT_DIR = 'output'


def load_reviews(path: str, config: AnalysisConfig, n_docs: int = None) -> List[ReviewRecord]:
    try:
        df = pd.read_csv(path)
        if n_docs is not None:
            df = df.head(n_docs)
        # missing ratings stay missing; they are dropped from the per-title averages
        ratings = pd.to_numeric(df[config.rating_field], errors='coerce') if config.rating_field in df else None
        records: List[ReviewRecord] = []
        for i in range(len(df)):
            text = df[config.text_field].iloc[i]
            rating = None if ratings is None or pd.isna(ratings.iloc[i]) else float(ratings.iloc[i])
            entity = df[config.entity_field].iloc[i] if config.entity_field in df else None
            records.append(ReviewRecord(text=text if isinstance(text, str) else None,
                                        rating=rating,
                                        entity=None if pd.isna(entity) else str(entity)))
        return records
    except FileNotFoundError as e:
        print(f"Could not load {path}: {e}; using the built-in sample")
        samples = [
            ("Great book, loved it! The characters were wonderful.", 5, "The Long Road"),
            ("Terrible. Hated it. A boring waste of time.", 1, "Grey Days"),
            ("great GREAT book, a thrilling mystery with real suspense", 5, "The Long Road"),
            ("The ending was sad but beautiful, I cried.", 4, "Letters Home"),
            ("Slow start, dull middle, disappointing ending.", 2, "Grey Days"),
            ("A delightful romance with plenty of humor.", 4, "Letters Home"),
            ("Scary and dark, a real nightmare of a thriller.", 3, "Night Shift"),
            ("I would recommend this to any friend who loves a good mystery.", 5, "Night Shift"),
            ("Poor writing and a stupid plot. Worst book this year.", 1, "Grey Days"),
            ("Excellent pacing, brilliant twist, perfect ending.", 5, "The Long Road"),
            ("Funny, charming and honest about friendship.", 4, "Letters Home"),
            ("The mystery kept me guessing, the suspense was great.", None, "Night Shift"),
        ]
        return [ReviewRecord(text=t, rating=r, entity=e) for t, r, e in samples]


def main():
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    os.makedirs(OUTPUT_DIR, exist_ok=True)
    config = AnalysisConfig()
    records = load_reviews(DATA_PATH, config)
    print(f"Loaded {len(records)} reviews")
    result = run_analysis(records, config)

    print(f"Vocabulary: {result.dtm.n_terms} terms, {result.dtm.total} tokens")
    print("Top terms:", ', '.join(t for _, t, _ in result.term_ranking[:10]))
    print("Sentiment distribution:", result.sentiment_totals)
    for k, terms in enumerate(result.top_terms):
        print(f"Topic {k + 1}: " + ', '.join(t for _, t, _ in terms))

    summary = result.to_dict()
    with open(os.path.join(OUTPUT_DIR, 'analysis_summary.json'), 'w', encoding='utf-8') as f:
        json.dump(summary, f, ensure_ascii=False, indent=2)
    profiles_to_frame(result.sentiment, list(result.sentiment_totals)).to_csv(
        os.path.join(OUTPUT_DIR, 'sentiment_scores.csv'), index=False)
    print('Artifacts saved:', os.path.join(OUTPUT_DIR, 'analysis_summary.json'),
          os.path.join(OUTPUT_DIR, 'sentiment_scores.csv'))


if __name__ == '__main__':
    main()
