"""
Record types shared by the loader, the TF-IDF scorer and the report.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Document:
    """
    One review's text, tagged with the restaurant (group) it belongs to.
    """
    doc_id: str  # Review identifier, unique across the corpus
    group: str  # Restaurant name
    text: str


@dataclass(frozen=True)
class TermFrequencyRecord:
    term: str
    group: str
    count: int  # Raw occurrences of term across all of group's reviews, always >= 1


@dataclass(frozen=True)
class TFIDFRecord:
    term: str
    group: str
    score: float

    def sort_key(self):
        # Descending score, then term, then group
        return (-self.score, self.term, self.group)
