import logging
import os
import re

import nltk
import pandas as pd

logger = logging.getLogger(__name__)

# ASCII whitespace controls become a plain space before the printable-ASCII filter,
# so words on adjacent lines are not glued together
_WHITESPACE_CONTROLS = re.compile(r"[\t\n\r\f\v]")
_NON_PRINTABLE_ASCII = re.compile(r"[^\x20-\x7E]")

# Letters/digits, optionally joined by internal apostrophes or hyphens ("it's", "co2", "well-cooked")
_CANDIDATE_WORD = re.compile(r"[A-Za-z0-9]+(?:['-][A-Za-z0-9]+)*")

# One or two alphabetic segments joined by a single hyphen
_WORD_SHAPE = re.compile(r"^[a-z]+(-[a-z]+)?$")


def normalize_text(text):
    """
    Drop everything outside printable ASCII. None/NaN count as empty text.
    """
    if text is None or (not isinstance(text, str) and pd.isna(text)):
        return ""
    text = _WHITESPACE_CONTROLS.sub(" ", str(text))
    return _NON_PRINTABLE_ASCII.sub("", text)


def is_word_shaped(token):
    return bool(_WORD_SHAPE.match(token))


def tokenize(text, stop_words=frozenset()):
    """
    Yields the normalized tokens of a review, in source order.

    Args:
        text (str): Raw review text. May contain non-ASCII characters or punctuation.
        stop_words (set): Lowercase words to drop.
    Yields:
        str: Lowercased tokens that pass the shape filter and are not stop words.
    """
    for match in _CANDIDATE_WORD.finditer(normalize_text(text)):
        token = match.group(0).lower()
        if not is_word_shaped(token):
            continue
        if token in stop_words:
            continue
        yield token


def load_stop_words(path=None):
    """
    Loads the stop-word set once, before any tokenization.

    Args:
        path (str): Optional text file with one word per line. Blank lines and
            lines starting with '#' are ignored. When omitted, the NLTK English list is used.
    Returns:
        frozenset: Lowercased stop words.
    """
    if path:
        if not os.path.exists(path):
            raise FileNotFoundError(f"Stop-word file not found: {path}")
        with open(path, 'r', encoding='utf-8') as f:
            words = [line.strip() for line in f]
        words = [w for w in words if w and not w.startswith('#')]
        logger.info(f"Loaded {len(words)} stop words from {path}")
    else:
        from nltk.corpus import stopwords
        try:
            words = stopwords.words("english")
        except LookupError:
            logger.info("NLTK stop-word corpus not found, downloading it...")
            nltk.download("stopwords", quiet=True)
            words = stopwords.words("english")
        logger.info(f"Loaded {len(words)} NLTK English stop words")

    return frozenset(w.lower() for w in words)
