import logging

import nltk
import pandas as pd
from nltk.sentiment.vader import SentimentIntensityAnalyzer

from review_analysis import config

logger = logging.getLogger(__name__)

SCORE_COLUMNS = ['sentiment_neg', 'sentiment_neu', 'sentiment_pos', 'sentiment_compound']


def get_analyzer():
    """
    Returns a VADER analyzer, downloading the lexicon on first use if it is missing.
    """
    try:
        return SentimentIntensityAnalyzer()
    except LookupError:
        logger.info("VADER lexicon not found, downloading it...")
        nltk.download("vader_lexicon", quiet=True)
        return SentimentIntensityAnalyzer()


def label_sentiment(compound):
    if compound >= config.POSITIVE_THRESHOLD:
        return 'Positive'
    elif compound <= config.NEGATIVE_THRESHOLD:
        return 'Negative'
    return 'Neutral'


def score_reviews(df, analyzer=None, text_column='text'):
    """
    Adds VADER sentiment scores and a label to every review.

    Args:
        df (pd.DataFrame): Reviews, one row each.
        analyzer: Object with a polarity_scores(text) method; a VADER analyzer by default.
        text_column (str): Column holding the review text.
    Returns:
        pd.DataFrame: Copy of df with sentiment_neg/neu/pos/compound and sentiment_label columns.
            Empty reviews get zero scores and the label 'No Review'.
    """
    analyzer = analyzer or get_analyzer()
    out = df.copy()

    rows = []
    labels = []
    for text in out[text_column].fillna('').astype(str):
        if text.strip():
            vs = analyzer.polarity_scores(text)
            rows.append([vs['neg'], vs['neu'], vs['pos'], vs['compound']])
            labels.append(label_sentiment(vs['compound']))
        else:
            rows.append([0.0, 0.0, 0.0, 0.0])
            labels.append('No Review')

    scores = pd.DataFrame(rows, columns=SCORE_COLUMNS, index=out.index, dtype=float)
    for col in SCORE_COLUMNS:
        out[col] = scores[col]
    out['sentiment_label'] = labels

    logger.info(f"Scored sentiment for {len(out)} reviews.")
    logger.debug(f"Sentiment label distribution:\n{out['sentiment_label'].value_counts()}")
    return out


def restaurant_sentiment(scored, group_column='name'):
    """
    Aggregates per-review sentiment for each restaurant.

    Reviews labelled 'No Review' are left out of the mean compound score and the ratios.
    """
    columns = [group_column, 'avg_sentiment_compound', 'scored_reviews',
               'positive_review_count', 'negative_review_count', 'neutral_review_count',
               'positive_ratio', 'negative_ratio']
    with_text = scored.loc[scored['sentiment_label'] != 'No Review']
    if with_text.empty:
        return pd.DataFrame(columns=columns)

    agg = with_text.groupby(group_column).agg(
        avg_sentiment_compound=('sentiment_compound', 'mean'),
        scored_reviews=('sentiment_label', 'size'),
        positive_review_count=('sentiment_label', lambda x: (x == 'Positive').sum()),
        negative_review_count=('sentiment_label', lambda x: (x == 'Negative').sum()),
        neutral_review_count=('sentiment_label', lambda x: (x == 'Neutral').sum()),
    ).reset_index()

    agg['positive_ratio'] = agg['positive_review_count'] / agg['scored_reviews']
    agg['negative_ratio'] = agg['negative_review_count'] / agg['scored_reviews']

    return agg.sort_values(by=['avg_sentiment_compound', group_column],
                           ascending=[False, True]).reset_index(drop=True)[columns]
