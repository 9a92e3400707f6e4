import logging
from collections import defaultdict

import numpy as np
import pandas as pd
from scipy import sparse
from sklearn.feature_extraction import DictVectorizer
from sklearn.feature_extraction.text import CountVectorizer, TfidfTransformer

from review_analysis.models import TermFrequencyRecord, TFIDFRecord
from review_analysis.tokenizer import tokenize

logger = logging.getLogger(__name__)


def _identity(tokens):
    # Tokens arrive already normalized and filtered
    return tokens


def count_terms(group_tokens):
    """
    Builds the term-frequency table from (group, tokens) pairs.

    Args:
        group_tokens (iterable): (group, iterable of tokens) pairs. A group may appear many times,
            once per review; its counts are summed.
    Returns:
        dict: {(term, group): count}, only counts >= 1 are present.
    """
    tokens_by_group = defaultdict(list)
    for group, tokens in group_tokens:
        tokens_by_group[group].extend(tokens)

    groups = sorted(g for g, tokens in tokens_by_group.items() if tokens)
    if not groups:
        return {}

    vectorizer = CountVectorizer(analyzer=_identity)
    counts = vectorizer.fit_transform([tokens_by_group[g] for g in groups]).tocoo()
    terms = vectorizer.get_feature_names_out()
    return {(str(terms[col]), groups[row]): int(n) for row, col, n in zip(counts.row, counts.col, counts.data)}


def count_document_terms(documents, stop_words=frozenset()):
    """
    Tokenizes each Document and counts its terms under the document's group.
    """
    return count_terms((doc.group, tokenize(doc.text, stop_words)) for doc in documents)


def term_frequency_records(table):
    records = [TermFrequencyRecord(term, group, count) for (term, group), count in table.items()]
    return sorted(records, key=lambda r: (r.group, r.term))


def _count_matrix(table):
    """
    Group-by-term count matrix of the table, rows in sorted group order and columns in sorted term order.
    """
    by_group = defaultdict(dict)
    for (term, group), count in table.items():
        by_group[group][term] = count
    groups = sorted(by_group)

    vectorizer = DictVectorizer(sort=True)
    matrix = vectorizer.fit_transform([by_group[g] for g in groups]).tocsr()
    return matrix, groups, [str(t) for t in vectorizer.get_feature_names_out()]


def _idf_vector(matrix, n_groups=None):
    """
    ln(N / df) per matrix column. Groups beyond those present are added as empty rows,
    which raise N without touching any document frequency.
    """
    n_present = matrix.shape[0]
    if n_groups is None:
        n_groups = n_present
    elif n_groups < n_present:
        raise ValueError(
            f"n_groups={n_groups} is smaller than the {n_present} groups present in the table")

    if n_groups > n_present:
        padding = sparse.csr_matrix((n_groups - n_present, matrix.shape[1]))
        matrix = sparse.vstack([matrix, padding]).tocsr()

    # Unsmoothed sklearn idf is ln(N / df) + 1
    transformer = TfidfTransformer(smooth_idf=False, norm=None).fit(matrix)
    return transformer.idf_ - 1.0


def document_frequency(table):
    """
    Number of distinct groups each term appears in.
    """
    if not table:
        return {}
    matrix, _groups, terms = _count_matrix(table)
    df = np.asarray((matrix > 0).sum(axis=0)).ravel()
    return {term: int(n) for term, n in zip(terms, df)}


def inverse_document_frequency(table, n_groups=None):
    """
    idf(term) = ln(N / df(term)) for every term in the table.

    Args:
        table (dict): {(term, group): count} as returned by count_terms.
        n_groups (int): Total number of groups N. Defaults to the number of distinct
            groups present in the table.
    Returns:
        dict: {term: idf}
    """
    if not table:
        return {}
    matrix, _groups, terms = _count_matrix(table)
    return {term: float(v) for term, v in zip(terms, _idf_vector(matrix, n_groups))}


def score_tf_idf(table, n_groups=None):
    """
    Scores every (term, group) pair of the table with raw count * ln(N / df).

    Terms present in every group get idf 0 and therefore score 0.
    Returns:
        list: TFIDFRecord objects ranked by descending score, ties broken by term then group.
    """
    if not table:
        logger.info("Empty term-frequency table, no TF-IDF records to score.")
        return []

    matrix, groups, terms = _count_matrix(table)
    idf = _idf_vector(matrix, n_groups)
    cells = matrix.tocoo()
    records = [TFIDFRecord(terms[col], groups[row], float(count * idf[col]))
               for row, col, count in zip(cells.row, cells.col, cells.data)]
    records.sort(key=TFIDFRecord.sort_key)
    logger.debug(f"Scored {len(records)} (term, group) pairs over {len(terms)} distinct terms.")
    return records


def top_terms(records, k):
    """
    Keeps the k best-scoring records of each group, preserving the ranking order.
    Zero scores (terms every group uses) are not distinctive and are left out.
    """
    kept = defaultdict(int)
    result = []
    for record in sorted(records, key=TFIDFRecord.sort_key):
        if record.score > 0 and kept[record.group] < k:
            kept[record.group] += 1
            result.append(record)
    return result


def tf_idf_frame(records):
    """
    Converts TF-IDF records to a DataFrame with columns term, group, score.
    """
    return pd.DataFrame(
        [(r.term, r.group, r.score) for r in records],
        columns=["term", "group", "score"],
    )


def restaurant_tf_idf(documents, stop_words, n_groups=None):
    """
    Full pipeline: documents -> tokens -> term-frequency table -> ranked TF-IDF records.
    """
    table = count_document_terms(documents, stop_words)
    groups = {group for (_term, group) in table}
    logger.info(f"Term-frequency table: {len(table)} (term, restaurant) pairs across {len(groups)} restaurants.")
    return score_tf_idf(table, n_groups)
