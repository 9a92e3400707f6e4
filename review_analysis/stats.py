import logging

import numpy as np
import pandas as pd
from scipy.stats import pearsonr, spearmanr

logger = logging.getLogger(__name__)


def restaurant_summary(joined):
    """
    Average rating and review counts per restaurant.

    Missing ratings are excluded from the mean; a restaurant with no rated
    reviews keeps avg_rating = NaN.
    Returns:
        pd.DataFrame: restaurant_id, name, avg_rating, review_count, rated_count
    """
    columns = ['restaurant_id', 'name', 'avg_rating', 'review_count', 'rated_count']
    if joined.empty:
        return pd.DataFrame(columns=columns)

    summary = joined.groupby('restaurant_id').agg(
        name=('name', 'first'),
        avg_rating=('rating', 'mean'),
        review_count=('review_id', 'size'),
        rated_count=('rating', 'count'),
    ).reset_index()

    return summary.sort_values(by=['review_count', 'name'], ascending=[False, True]).reset_index(drop=True)[columns]


def top_rated(summary, n=10, min_reviews=1):
    """
    The n best restaurants by average rating among those with at least min_reviews reviews.
    Ties are broken by review count, then name.
    """
    eligible = summary.loc[(summary['review_count'] >= min_reviews) & summary['avg_rating'].notna()]
    return eligible.sort_values(by=['avg_rating', 'review_count', 'name'],
                                ascending=[False, False, True]).head(n).reset_index(drop=True)


def rating_count_correlation(summary):
    """
    Pearson and Spearman correlation between review count and average rating.

    Returns:
        dict: {'pearson': r, 'spearman': rho, 'n': restaurants used}. Coefficients are NaN
            when fewer than three restaurants are rated or either column is constant.
    """
    rated = summary.dropna(subset=['avg_rating'])
    x = rated['review_count'].astype(float)
    y = rated['avg_rating'].astype(float)
    result = {'pearson': np.nan, 'spearman': np.nan, 'n': len(rated)}

    if len(rated) < 3 or x.nunique() < 2 or y.nunique() < 2:
        logger.warning(f"Not enough variation to correlate review count and rating (n={len(rated)}).")
        return result

    result['pearson'] = float(pearsonr(x, y)[0])
    result['spearman'] = float(spearmanr(x, y).correlation)
    return result


def monthly_trend(joined):
    """
    Review count and mean rating per calendar month.

    Returns an empty frame (month, review_count, avg_rating) when reviews carry no usable dates.
    """
    columns = ['month', 'review_count', 'avg_rating']
    if 'date' not in joined.columns:
        return pd.DataFrame(columns=columns)

    dated = joined.dropna(subset=['date'])
    if dated.empty:
        return pd.DataFrame(columns=columns)

    n_undated = len(joined) - len(dated)
    if n_undated:
        logger.info(f"{n_undated} reviews without a usable date are left out of the monthly trend.")

    trend = dated.groupby(pd.Grouper(key='date', freq='MS')).agg(
        review_count=('review_id', 'size'),
        avg_rating=('rating', 'mean'),
    ).reset_index().rename(columns={'date': 'month'})
    return trend[columns]
