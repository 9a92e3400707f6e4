"""
Report assembly: renders the charts and tables that answer the five review questions.

The functions here only select and format; all numbers come from stats, sentiment and tf_idf.
"""

import logging
import math
import os
import textwrap
from datetime import datetime

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from review_analysis import config
from review_analysis.loader import load_joined, to_documents
from review_analysis.sentiment import restaurant_sentiment, score_reviews
from review_analysis.stats import monthly_trend, rating_count_correlation, restaurant_summary, top_rated
from review_analysis.tf_idf import restaurant_tf_idf, tf_idf_frame, top_terms
from review_analysis.tokenizer import load_stop_words

logger = logging.getLogger(__name__)

sns.set_theme(style="whitegrid", font_scale=1.0)

QUESTIONS = {
    "01_top_rated_restaurants.png": "Which restaurants are rated highest, and how many reviews back them up?",
    "02_rating_vs_review_count.png": "Do restaurants with more reviews get better or worse average ratings?",
    "03_monthly_trend.png": "How do review volume and average rating change over time?",
    "04_sentiment_by_restaurant.png": "Which restaurants attract the most positive or negative review text?",
    "05_distinctive_terms.png": "Which words set each restaurant's reviews apart from the others?",
}

MAX_TERM_PANELS = 6


def _ensure_dir(path):
    d = os.path.dirname(path)
    if d and not os.path.exists(d):
        os.makedirs(d, exist_ok=True)


def _wrap(s, width=28):
    return "\n".join(textwrap.wrap(str(s), width=width)) or str(s)


def _save(fig, path):
    _ensure_dir(path)
    fig.tight_layout()
    fig.savefig(path, dpi=120)
    plt.close(fig)
    logger.info(f"Saved chart: {path}")
    return path


# --- Charts ---

def plot_top_rated(summary, out_path, n=10, min_reviews=1):
    top = top_rated(summary, n=n, min_reviews=min_reviews)
    if top.empty:
        logger.warning(f"No restaurant has {min_reviews}+ rated reviews; skipping top-rated chart.")
        return None

    fig, ax = plt.subplots(figsize=(9, 0.5 * len(top) + 1.5))
    labels = [_wrap(name) for name in top['name']]
    bars = ax.barh(labels[::-1], top['avg_rating'][::-1], color=sns.color_palette("crest", len(top)))
    for bar, count in zip(bars, top['review_count'][::-1]):
        ax.text(bar.get_width() + 0.05, bar.get_y() + bar.get_height() / 2,
                f"{bar.get_width():.2f} ({count} reviews)", va='center', fontsize=9)
    ax.set_xlim(0, max(5.0, top['avg_rating'].max()) * 1.25)
    ax.set_xlabel("Average rating")
    ax.set_title(f"Top {len(top)} restaurants by average rating (min. {min_reviews} reviews)")
    return _save(fig, out_path)


def plot_rating_vs_review_count(summary, correlation, out_path):
    rated = summary.dropna(subset=['avg_rating'])
    if rated.empty:
        logger.warning("No rated restaurants; skipping rating vs review count chart.")
        return None

    fig, ax = plt.subplots(figsize=(8, 6))
    sns.scatterplot(data=rated, x='review_count', y='avg_rating', ax=ax, s=60, alpha=0.8)
    ax.set_xlabel("Number of reviews")
    ax.set_ylabel("Average rating")

    def _fmt(v):
        return "n/a" if v is None or (isinstance(v, float) and math.isnan(v)) else f"{v:.2f}"

    ax.set_title(f"Review count vs average rating "
                 f"(Pearson r={_fmt(correlation.get('pearson'))}, "
                 f"Spearman rho={_fmt(correlation.get('spearman'))}, n={correlation.get('n', len(rated))})")
    return _save(fig, out_path)


def plot_monthly_trend(trend, out_path):
    if trend.empty:
        logger.warning("Reviews carry no usable dates; skipping monthly trend chart.")
        return None

    fig, ax = plt.subplots(figsize=(10, 5))
    months = pd.to_datetime(trend['month'])
    ax.bar(months, trend['review_count'], width=20, color="#9ecae1", label="Reviews")
    ax.set_ylabel("Reviews per month")
    ax.set_xlabel("Month")

    ax2 = ax.twinx()
    ax2.plot(months, trend['avg_rating'], color="#de2d26", marker="o", label="Mean rating")
    ax2.set_ylabel("Mean rating")
    ax2.grid(False)

    handles = ax.get_legend_handles_labels()[0] + ax2.get_legend_handles_labels()[0]
    ax.legend(handles, [h.get_label() for h in handles], loc="upper left")
    ax.set_title("Monthly review volume and mean rating")
    fig.autofmt_xdate()
    return _save(fig, out_path)


def plot_sentiment(sentiment, out_path, n=10):
    if sentiment.empty:
        logger.warning("No review text to score; skipping sentiment chart.")
        return None

    # Most positive and most negative restaurants, without repeating any
    ordered = sentiment.sort_values('avg_sentiment_compound', ascending=False)
    if len(ordered) > 2 * n:
        ordered = pd.concat([ordered.head(n), ordered.tail(n)])

    fig, ax = plt.subplots(figsize=(9, 0.4 * len(ordered) + 1.5))
    colors = ["#31a354" if v >= 0 else "#de2d26" for v in ordered['avg_sentiment_compound']]
    ax.barh([_wrap(name) for name in ordered['name']][::-1],
            ordered['avg_sentiment_compound'][::-1], color=colors[::-1])
    ax.axvline(0, color="black", linewidth=0.8)
    ax.set_xlim(-1, 1)
    ax.set_xlabel("Mean VADER compound score")
    ax.set_title("Review sentiment by restaurant")
    return _save(fig, out_path)


def panel_groups(top_df, summary, max_panels=MAX_TERM_PANELS):
    """
    Restaurant names for the distinctive-terms panels: most-reviewed first, only those with
    at least one scored term, each name once even when several restaurant_ids share it.
    """
    has_terms = set(top_df['group'])
    names = dict.fromkeys(g for g in summary['name'] if g in has_terms)
    return list(names)[:max_panels]


def plot_distinctive_terms(top_df, summary, out_path, max_panels=MAX_TERM_PANELS):
    if top_df.empty:
        logger.warning("No TF-IDF terms survived filtering; skipping distinctive terms chart.")
        return None

    groups = panel_groups(top_df, summary, max_panels)
    ncols = min(3, len(groups))
    nrows = int(np.ceil(len(groups) / ncols))

    fig, axes = plt.subplots(nrows, ncols, figsize=(5 * ncols, 3.5 * nrows), squeeze=False)
    for ax, group in zip(axes.flat, groups):
        sub = top_df.loc[top_df['group'] == group].sort_values(['score', 'term'], ascending=[True, False])
        ax.barh(sub['term'], sub['score'], color="#3182bd")
        ax.set_title(_wrap(group, 40), fontsize=10)
        ax.set_xlabel("TF-IDF")
    for ax in list(axes.flat)[len(groups):]:
        ax.set_visible(False)

    fig.suptitle("Most distinctive review terms per restaurant")
    return _save(fig, out_path)


# --- Tables ---

def write_manifest(outdir, figures, top_df, correlation, generated_at):
    """
    Writes report.md listing each figure with its question, plus the top-terms table.
    """
    path = os.path.join(outdir, "report.md")
    lines = ["# Restaurant review report", "", f"Generated: {generated_at}", ""]

    for i, (filename, question) in enumerate(QUESTIONS.items(), 1):
        lines.append(f"## Q{i}. {question}")
        lines.append("")
        if figures.get(filename):
            lines.append(f"![{question}]({filename})")
        else:
            lines.append("_Skipped: not enough data for this chart._")
        if filename == "02_rating_vs_review_count.png":
            lines.append("")
            lines.append(f"Pearson r = {correlation['pearson']:.3f}, "
                         f"Spearman rho = {correlation['spearman']:.3f} "
                         f"over {correlation['n']} rated restaurants.")
        lines.append("")

    lines.append("## Top TF-IDF terms per restaurant")
    lines.append("")
    if top_df.empty:
        lines.append("_No terms survived tokenization and stop-word filtering._")
    else:
        lines.append("```")
        lines.append(top_df.to_string(index=False, float_format=lambda v: f"{v:.4f}"))
        lines.append("```")
    lines.append("")

    _ensure_dir(path)
    with open(path, 'w', encoding='utf-8') as f:
        f.write("\n".join(lines))
    logger.info(f"Saved report manifest: {path}")
    return path


def build_report(restaurants_path, reviews_path, outdir, stop_words=None, top_k=10, top_n=10,
                 min_reviews=1, analyzer=None):
    """
    Runs the whole analysis and writes charts, tables and report.md into outdir.

    Args:
        restaurants_path (str): Restaurant metadata CSV.
        reviews_path (str): Reviews CSV.
        outdir (str): Output directory, created if needed.
        stop_words (set): Stop words for the TF-IDF tokenizer; loaded from config when None.
        top_k (int): TF-IDF terms kept per restaurant.
        top_n (int): Restaurants shown in the ranking charts.
        min_reviews (int): Minimum review count for the top-rated chart.
        analyzer: Sentiment analyzer with polarity_scores(); VADER when None.
    Returns:
        dict: Paths of the files written, keyed by file name.
    """
    os.makedirs(outdir, exist_ok=True)
    generated_at = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    joined = load_joined(restaurants_path, reviews_path)
    if stop_words is None:
        stop_words = load_stop_words(config.STOP_WORDS_FILE)

    logger.info("--- Summary statistics ---")
    summary = restaurant_summary(joined)
    correlation = rating_count_correlation(summary)
    trend = monthly_trend(joined)

    logger.info("--- Sentiment analysis ---")
    sentiment = restaurant_sentiment(score_reviews(joined, analyzer=analyzer))
    summary_out = summary.merge(sentiment, on='name', how='left')

    logger.info("--- TF-IDF ---")
    records = restaurant_tf_idf(to_documents(joined), stop_words)
    top_df = tf_idf_frame(top_terms(records, top_k))

    outputs = {}
    figures = {
        "01_top_rated_restaurants.png": plot_top_rated(
            summary, os.path.join(outdir, "01_top_rated_restaurants.png"), n=top_n, min_reviews=min_reviews),
        "02_rating_vs_review_count.png": plot_rating_vs_review_count(
            summary, correlation, os.path.join(outdir, "02_rating_vs_review_count.png")),
        "03_monthly_trend.png": plot_monthly_trend(trend, os.path.join(outdir, "03_monthly_trend.png")),
        "04_sentiment_by_restaurant.png": plot_sentiment(
            sentiment, os.path.join(outdir, "04_sentiment_by_restaurant.png"), n=top_n),
        "05_distinctive_terms.png": plot_distinctive_terms(
            top_df, summary, os.path.join(outdir, "05_distinctive_terms.png")),
    }
    outputs.update({name: path for name, path in figures.items() if path})

    summary_csv = os.path.join(outdir, "restaurant_summary.csv")
    summary_out.to_csv(summary_csv, index=False, encoding='utf-8-sig')
    outputs["restaurant_summary.csv"] = summary_csv

    terms_csv = os.path.join(outdir, "tf_idf_top_terms.csv")
    top_df.to_csv(terms_csv, index=False, encoding='utf-8-sig')
    outputs["tf_idf_top_terms.csv"] = terms_csv

    outputs["report.md"] = write_manifest(outdir, figures, top_df, correlation, generated_at)
    logger.info(f"Report complete: {len(outputs)} files written to {outdir}")
    return outputs
