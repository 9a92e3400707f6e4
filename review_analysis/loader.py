import logging
import os

import pandas as pd

from review_analysis.models import Document

logger = logging.getLogger(__name__)

RESTAURANT_COLUMNS = ["restaurant_id", "name"]
REVIEW_COLUMNS = ["review_id", "restaurant_id", "text", "rating"]
OPTIONAL_REVIEW_COLUMNS = ["date"]


def _read_csv(path, id_columns=()):
    """
    Reads a CSV, keeping the id columns (matched case-insensitively) as strings so that
    numeric-looking ids are never turned into floats.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"CSV not found: {path}")
    header = pd.read_csv(path, encoding='utf-8-sig', nrows=0).columns
    dtype = {c: str for c in header if str(c).strip().lower() in id_columns}
    df = pd.read_csv(path, encoding='utf-8-sig', dtype=dtype)
    logger.info(f"Loaded {len(df)} rows from '{path}'.")
    return df


def _normalize_columns(df, required, optional=(), source=""):
    """
    Matches column names case-insensitively and renames them to their canonical names.
    Raises ValueError listing the missing required columns.
    """
    cols = {str(c).strip().lower(): c for c in df.columns}
    missing = [r for r in required if r not in cols]
    if missing:
        raise ValueError(f"{source} CSV is missing required columns: {missing}. Found: {list(df.columns)}")
    wanted = list(required) + [o for o in optional if o in cols]
    return df.rename(columns={cols[c]: c for c in wanted})


def _drop_blank_ids(df, id_columns, source=""):
    """
    Strips the id columns and drops rows where any of them is null or empty.
    """
    blank = pd.Series(False, index=df.index)
    for col in id_columns:
        df[col] = df[col].where(df[col].notna(), "").astype(str).str.strip()
        blank |= df[col] == ""
    n_blank = int(blank.sum())
    if n_blank:
        logger.warning(f"Dropping {n_blank} {source.lower()} rows with a blank {' or '.join(id_columns)}.")
    return df.loc[~blank].reset_index(drop=True)


def load_restaurants(path):
    """
    Loads restaurant metadata. Requires restaurant_id and name; extra columns are kept.
    """
    df = _read_csv(path, id_columns=("restaurant_id",))
    df = _normalize_columns(df, RESTAURANT_COLUMNS, source="Restaurants")
    df = _drop_blank_ids(df, ["restaurant_id"], source="Restaurant")
    df["name"] = df["name"].fillna("").astype(str).str.strip()
    return df


def load_reviews(path):
    """
    Loads reviews. Requires review_id, restaurant_id, text and rating; date is optional.

    Non-numeric ratings and unparseable dates become NaN/NaT rather than failing the load.
    Reviews with a blank review_id or restaurant_id are dropped.
    """
    df = _read_csv(path, id_columns=("review_id", "restaurant_id"))
    df = _normalize_columns(df, REVIEW_COLUMNS, OPTIONAL_REVIEW_COLUMNS, source="Reviews")
    df = _drop_blank_ids(df, ["review_id", "restaurant_id"], source="Review")
    df["text"] = df["text"].fillna("").astype(str)

    df["rating"] = pd.to_numeric(df["rating"], errors='coerce')
    n_bad = int(df["rating"].isna().sum())
    if n_bad:
        logger.warning(f"{n_bad} reviews have a missing or non-numeric rating; they are left out of rating means.")

    if "date" in df.columns:
        df["date"] = pd.to_datetime(df["date"], errors='coerce')
    return df


def join_reviews(restaurants, reviews):
    """
    Keyed merge of reviews onto restaurant metadata by restaurant_id.

    Args:
        restaurants (pd.DataFrame): Output of load_restaurants.
        reviews (pd.DataFrame): Output of load_reviews.
    Returns:
        pd.DataFrame: One row per matched review, with the restaurant's name and metadata columns.
    """
    dupes = restaurants["restaurant_id"][restaurants["restaurant_id"].duplicated()].unique()
    if len(dupes):
        raise ValueError(f"Duplicate restaurant_id values in restaurant metadata: {list(dupes)[:10]}")

    keys = reviews["restaurant_id"]
    # Null or blank keys never match, even when the metadata has a blank id too
    matched = keys.notna() & (keys.astype(str).str.strip() != "") & keys.isin(restaurants["restaurant_id"])
    n_unmatched = int((~matched).sum())
    if n_unmatched:
        unknown = sorted({str(k) for k in reviews.loc[~matched, "restaurant_id"]})
        logger.warning(f"Dropping {n_unmatched} reviews with no matching restaurant "
                       f"(restaurant_id: {unknown[:10]}{'...' if len(unknown) > 10 else ''}).")

    # On column clashes "name" is the restaurant's; any other clashing metadata column gets a suffix
    reviews = reviews.rename(columns={"name": "name_review"})
    meta = restaurants.rename(columns={c: f"{c}_restaurant" for c in restaurants.columns
                                       if c in reviews.columns and c != "restaurant_id"})
    joined = reviews.loc[matched].merge(meta, on="restaurant_id", how="inner", validate="many_to_one")

    no_reviews = int((~restaurants["restaurant_id"].isin(joined["restaurant_id"])).sum())
    if no_reviews:
        logger.info(f"{no_reviews} restaurants have no reviews.")
    logger.info(f"Joined {len(joined)} reviews across {joined['restaurant_id'].nunique()} restaurants.")
    return joined.reset_index(drop=True)


def to_documents(joined):
    """
    Yields one Document per joined review, grouped by restaurant name.
    """
    for review_id, name, text in zip(joined["review_id"], joined["name"], joined["text"]):
        yield Document(doc_id=str(review_id), group=str(name), text=text)


def load_joined(restaurants_path, reviews_path):
    return join_reviews(load_restaurants(restaurants_path), load_reviews(reviews_path))
